"""
Property input sanitising and validation
"""

from typing import Any, Dict, List, Optional, Tuple

SORT_OPTIONS = ["price-low", "price-high", "newest", "oldest", "bedrooms"]

STRING_FIELDS = ["title", "description", "location"]
NUMERIC_FIELDS = ["price", "bedrooms", "bathrooms", "square_feet"]
BOOLEAN_FIELDS = ["available", "featured"]

# field -> (message, check)
FIELD_RULES = {
    "title": ("Title is required", lambda v: isinstance(v, str) and v.strip() != ""),
    "price": ("Valid price is required", lambda v: _is_number(v) and v > 0),
    "location": ("Location is required", lambda v: isinstance(v, str) and v.strip() != ""),
    "bedrooms": ("Valid number of bedrooms is required", lambda v: _is_number(v) and v >= 0),
    "bathrooms": ("Valid number of bathrooms is required", lambda v: _is_number(v) and v >= 0),
    "square_feet": ("Valid square footage is required", lambda v: _is_number(v) and v > 0),
}


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _to_number(value) -> Optional[float]:
    if _is_number(value):
        return value
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    return int(number) if number.is_integer() else number


def _to_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


def sanitize_input(data: Dict[str, Any]) -> Dict[str, Any]:
    """Trim strings and coerce numeric / boolean fields"""
    sanitized = dict(data)

    for field in STRING_FIELDS:
        if isinstance(sanitized.get(field), str):
            sanitized[field] = sanitized[field].strip()

    for field in NUMERIC_FIELDS:
        if sanitized.get(field) is not None:
            sanitized[field] = _to_number(sanitized[field])

    for field in BOOLEAN_FIELDS:
        if sanitized.get(field) is not None:
            sanitized[field] = _to_bool(sanitized[field])

    return sanitized


def validate_create(data: Dict[str, Any]) -> List[str]:
    return [message for field, (message, check) in FIELD_RULES.items() if not check(data.get(field))]


def validate_update(data: Dict[str, Any]) -> List[str]:
    """Only the fields present in the update are checked"""
    return [
        message for field, (message, check) in FIELD_RULES.items()
        if field in data and not check(data[field])
    ]


def validate_search(query: Dict[str, Any]) -> Tuple[List[str], Dict[str, Any]]:
    errors = []
    validated = {}

    for field, message in (
        ("min_price", "Invalid minimum price"),
        ("max_price", "Invalid maximum price"),
        ("bedrooms", "Invalid bedroom count"),
    ):
        raw = query.get(field)
        if raw is None or raw == "":
            continue
        try:
            value = int(str(raw).strip())
        except ValueError:
            errors.append(message)
            continue
        if value < 0:
            errors.append(message)
        else:
            validated[field] = value

    sort_by = query.get("sort_by")
    if sort_by:
        if sort_by in SORT_OPTIONS:
            validated["sort_by"] = sort_by
        else:
            errors.append("Invalid sort option")

    if query.get("search"):
        validated["search"] = str(query["search"])

    if query.get("available") is not None and query.get("available") != "":
        validated["available"] = _to_bool(query["available"])

    return errors, validated
