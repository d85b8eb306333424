"""
Property Service
Listing search, filtering and admin CRUD over the property store
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import property_validator
from errors import NotFoundError, ValidationError
from json_store import JsonStore
from real_estate_data import DEFAULT_PROPERTIES

logger = logging.getLogger(__name__)

PROPERTY_DEFAULTS = {
    "description": "",
    "images": [],
    "available": True,
    "featured": False,
    "amenities": [],
    "address": {},
}


class PropertyService:
    def __init__(self):
        self.store = JsonStore("properties.json", DEFAULT_PROPERTIES)

    def _find(self, properties: List[Dict[str, Any]], property_id: int) -> Dict[str, Any]:
        prop = next((p for p in properties if p["id"] == property_id), None)
        if prop is None:
            raise NotFoundError.for_resource("Property")
        return prop

    def get_all(self, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """All properties matching the given filters, optionally sorted"""
        filters = filters or {}
        properties = self.store.read()

        search = filters.get("search")
        if search:
            term = search.lower()
            properties = [
                p for p in properties
                if term in (p.get("title") or "").lower()
                or term in (p.get("location") or "").lower()
                or term in (p.get("description") or "").lower()
            ]

        if filters.get("min_price") is not None:
            properties = [p for p in properties if p["price"] >= filters["min_price"]]

        if filters.get("max_price") is not None:
            properties = [p for p in properties if p["price"] <= filters["max_price"]]

        if filters.get("bedrooms") is not None:
            properties = [p for p in properties if p["bedrooms"] >= filters["bedrooms"]]

        if filters.get("available") is not None:
            properties = [p for p in properties if p.get("available", True) == filters["available"]]

        sort_by = filters.get("sort_by")
        if sort_by == "price-low":
            properties.sort(key=lambda p: p["price"])
        elif sort_by == "price-high":
            properties.sort(key=lambda p: p["price"], reverse=True)
        elif sort_by == "newest":
            properties.sort(key=lambda p: p.get("created_at") or "", reverse=True)
        elif sort_by == "oldest":
            properties.sort(key=lambda p: p.get("created_at") or "")
        elif sort_by == "bedrooms":
            properties.sort(key=lambda p: p["bedrooms"], reverse=True)

        return properties

    def search(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        errors, validated = property_validator.validate_search(params)
        if errors:
            raise ValidationError(errors=errors)
        return self.get_all(validated)

    def get_by_id(self, property_id: int) -> Optional[Dict[str, Any]]:
        return next((p for p in self.store.read() if p["id"] == property_id), None)

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        sanitized = property_validator.sanitize_input(data)
        errors = property_validator.validate_create(sanitized)
        if errors:
            raise ValidationError(errors=errors)

        properties = self.store.read()
        now = datetime.now().isoformat()
        new_property = {
            **PROPERTY_DEFAULTS,
            **{k: v for k, v in sanitized.items() if v is not None},
            "id": JsonStore.next_id(properties),
            "created_at": now,
            "updated_at": now,
        }

        properties.append(new_property)
        self.store.write(properties)
        logger.info(f"🏠 Property created: {new_property['id']} ({new_property['title']})")
        return new_property

    def update(self, property_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        properties = self.store.read()
        existing = self._find(properties, property_id)

        sanitized = property_validator.sanitize_input(data)
        errors = property_validator.validate_update(sanitized)
        if errors:
            raise ValidationError(errors=errors)

        existing.update({k: v for k, v in sanitized.items() if k not in ("id", "created_at")})
        existing["updated_at"] = datetime.now().isoformat()

        self.store.write(properties)
        return existing

    def delete(self, property_id: int) -> Dict[str, Any]:
        properties = self.store.read()
        deleted = self._find(properties, property_id)
        properties.remove(deleted)
        self.store.write(properties)
        logger.info(f"🗑️ Property deleted: {property_id}")
        return deleted

    def toggle_availability(self, property_id: int) -> Dict[str, Any]:
        properties = self.store.read()
        prop = self._find(properties, property_id)
        prop["available"] = not prop.get("available", True)
        prop["updated_at"] = datetime.now().isoformat()
        self.store.write(properties)
        return prop

    def set_featured(self, property_id: int, featured: bool = True) -> Dict[str, Any]:
        properties = self.store.read()
        prop = self._find(properties, property_id)
        prop["featured"] = bool(featured)
        prop["updated_at"] = datetime.now().isoformat()
        self.store.write(properties)
        return prop

    def get_featured(self, limit: int = 6) -> List[Dict[str, Any]]:
        properties = self.store.read()
        return [p for p in properties if p.get("featured") and p.get("available", True)][:limit]

    def get_statistics(self) -> Dict[str, Any]:
        properties = self.store.read()
        total = len(properties)
        available = len([p for p in properties if p.get("available", True)])
        featured = len([p for p in properties if p.get("featured")])
        average_price = sum(p["price"] for p in properties) / total if total else 0

        return {
            "total": total,
            "available": available,
            "featured": featured,
            "unavailable": total - available,
            "average_price": round(average_price),
        }


property_service = PropertyService()
