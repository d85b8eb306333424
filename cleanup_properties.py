#!/usr/bin/env python3
"""
Remove test and junk listings from the property store
"""

import logging
import re
from typing import Any, Dict, List, Optional

from property_service import property_service

logger = logging.getLogger(__name__)

JUNK_TITLE_WORDS = ["test", "dummy", "example", "nenjelele", "mkhabeleenterprices"]
JUNK_DESCRIPTION_WORDS = ["wurbjnor", "testing persistence"]


def junk_reason(prop: Dict[str, Any]) -> Optional[str]:
    title = (prop.get("title") or "").lower()
    description = (prop.get("description") or "").lower()

    if any(re.search(rf"\b{word}\b", title) for word in JUNK_TITLE_WORDS):
        return "title"
    if any(word in description for word in JUNK_DESCRIPTION_WORDS):
        return "description"
    return None


def cleanup_properties() -> List[Dict[str, Any]]:
    """Drop junk listings and return the removed ones"""
    properties = property_service.store.read()
    kept, removed = [], []

    for prop in properties:
        reason = junk_reason(prop)
        if reason:
            logger.info(f"🧹 Removing ({reason}): [{prop.get('id')}] {prop.get('title')}")
            removed.append(prop)
        else:
            kept.append(prop)

    if removed:
        property_service.store.write(kept)
    return removed


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    total = len(property_service.store.read())
    print(f"Total properties before cleanup: {total}")
    removed = cleanup_properties()
    print(f"Total properties after cleanup: {total - len(removed)}")
    print(f"Removed: {len(removed)}")
