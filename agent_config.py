"""
Dynamic Agent Configuration Management
Brand name, canned greeting / handoff / closing messages and AI switches for
the lead-qualification bot, editable at runtime from the admin panel.
"""

import copy
import json
import logging
import os
from datetime import datetime
from typing import Any, Dict, Optional

import config
from real_estate_data import BRAND_INFO

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "agent_config.json"

DEFAULT_CONFIG = {
    "brand_name": BRAND_INFO["name"],
    "greeting_message": (
        "Hi! 👋 Thanks for your interest in renting with {brand}. I'm here to help you find your perfect home.\n\n"
        "To get started, could you tell me your approximate monthly budget for rent?"
    ),
    "handoff_message": (
        "I'm connecting you with a member of our team. Someone will be in touch shortly. "
        "If urgent, call us at {phone}."
    ),
    "closed_message": "Thank you for chatting with {brand}! If you need anything else, just message us anytime. 🏠",
    "ai_enabled": True,
    "confidence_threshold": config.Config.AI_CONFIDENCE_THRESHOLD,
}

EDITABLE_FIELDS = list(DEFAULT_CONFIG.keys())


class AgentConfig:
    def __init__(self, config_filename: str = CONFIG_FILENAME):
        self.config_filename = config_filename
        self.config: Dict[str, Any] = {}
        self._loaded_path: Optional[str] = None
        self._last_modified = 0.0

    @property
    def config_file_path(self) -> str:
        return os.path.join(config.DATA_DIR, self.config_filename)

    def default_config(self) -> Dict[str, Any]:
        return {**copy.deepcopy(DEFAULT_CONFIG), "last_updated": datetime.now().isoformat()}

    def load_config(self) -> Dict[str, Any]:
        """Load configuration from file, creating it with defaults if missing"""
        path = self.config_file_path
        if not os.path.exists(path):
            self.save_config(self.default_config())
            return self.config

        with open(path, "r", encoding="utf-8") as f:
            stored = json.load(f)

        # Merge with defaults to ensure all keys exist
        self.config = {**self.default_config(), **stored}
        self._loaded_path = path
        self._last_modified = os.path.getmtime(path)
        return self.config

    def save_config(self, new_config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        to_save = dict(new_config if new_config is not None else self.config)
        to_save["last_updated"] = datetime.now().isoformat()

        path = self.config_file_path
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(to_save, f, indent=2, ensure_ascii=False)

        self.config = to_save
        self._loaded_path = path
        self._last_modified = os.path.getmtime(path)
        logger.info(f"⚙️ Agent configuration saved to {path}")
        return self.config

    def _needs_reload(self) -> bool:
        """True when the file moved, vanished or was modified since the last load"""
        path = self.config_file_path
        if path != self._loaded_path or not os.path.exists(path):
            return True
        return os.path.getmtime(path) > self._last_modified

    def reload_config(self) -> Dict[str, Any]:
        if self._needs_reload():
            self.load_config()
        return self.config

    def update_config(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        self.reload_config()
        self.config.update({k: v for k, v in updates.items() if k in EDITABLE_FIELDS})
        return self.save_config()

    def reset_to_defaults(self) -> Dict[str, Any]:
        return self.save_config(self.default_config())

    def get_all_config(self) -> Dict[str, Any]:
        return dict(self.reload_config())

    def get(self, key: str):
        return self.reload_config().get(key, DEFAULT_CONFIG.get(key))

    # ---------------------------
    # Rendered messages
    # ---------------------------
    def get_brand_name(self) -> str:
        return self.get("brand_name") or BRAND_INFO["name"]

    def get_greeting_message(self) -> str:
        return self.get("greeting_message").replace("{brand}", self.get_brand_name())

    def get_handoff_message(self, phone: str) -> str:
        return self.get("handoff_message").replace("{brand}", self.get_brand_name()).replace("{phone}", phone)

    def get_closed_message(self) -> str:
        return self.get("closed_message").replace("{brand}", self.get_brand_name())

    def is_ai_enabled(self) -> bool:
        return bool(self.get("ai_enabled"))

    def get_confidence_threshold(self) -> float:
        return float(self.get("confidence_threshold"))


# Global instance
agent_config = AgentConfig()
