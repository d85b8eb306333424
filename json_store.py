"""
JSON file storage
One file per record collection under DATA_DIR, read and rewritten wholesale
"""

import copy
import json
import logging
import os
from typing import Any, Dict, List, Optional

import config

logger = logging.getLogger(__name__)


class JsonStore:
    def __init__(self, filename: str, default_data: Optional[List[Dict[str, Any]]] = None):
        if not filename.endswith(".json"):
            filename = f"{filename}.json"
        self.filename = filename
        self.default_data = default_data or []

    @property
    def file_path(self) -> str:
        return os.path.join(config.DATA_DIR, self.filename)

    def read(self) -> List[Dict[str, Any]]:
        """Load the whole collection, seeding the file with defaults if it is missing"""
        if not os.path.exists(self.file_path):
            data = copy.deepcopy(self.default_data)
            self.write(data)
            return data

        with open(self.file_path, "r", encoding="utf-8") as f:
            return json.load(f)

    def write(self, data: List[Dict[str, Any]]) -> None:
        """Overwrite the whole collection"""
        os.makedirs(os.path.dirname(self.file_path), exist_ok=True)
        with open(self.file_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, default=str)

    # ---------------------------
    # Collection helpers
    # ---------------------------
    def get_all(self) -> List[Dict[str, Any]]:
        return self.read()

    def get_by_id(self, record_id) -> Optional[Dict[str, Any]]:
        return next((r for r in self.read() if r.get("id") == record_id), None)

    def add(self, record: Dict[str, Any]) -> Dict[str, Any]:
        records = self.read()
        records.append(record)
        self.write(records)
        return record

    def update(self, record_id, record: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        records = self.read()
        index = next((i for i, r in enumerate(records) if r.get("id") == record_id), None)
        if index is None:
            return None
        records[index] = record
        self.write(records)
        return record

    def remove(self, record_id) -> Optional[Dict[str, Any]]:
        records = self.read()
        index = next((i for i, r in enumerate(records) if r.get("id") == record_id), None)
        if index is None:
            return None
        removed = records.pop(index)
        self.write(records)
        return removed

    @staticmethod
    def next_id(records: List[Dict[str, Any]]) -> int:
        """Auto-increment id for collections keyed by integers"""
        ids = [r["id"] for r in records if isinstance(r.get("id"), int)]
        return max(ids) + 1 if ids else 1
