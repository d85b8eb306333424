"""
Tests for the runtime agent configuration and its admin API
"""

import json
import os

from agent_config import DEFAULT_CONFIG, agent_config


def test_defaults_written_on_first_read():
    config = agent_config.get_all_config()

    assert config["brand_name"] == "Rentify"
    assert config["ai_enabled"] is True
    assert "last_updated" in config
    assert os.path.exists(agent_config.config_file_path)


def test_rendered_messages():
    assert "renting with Rentify" in agent_config.get_greeting_message()
    assert "+27110000000" in agent_config.get_handoff_message("+27110000000")
    assert agent_config.get_closed_message().startswith("Thank you for chatting with Rentify!")


def test_update_ignores_unknown_keys():
    agent_config.update_config({"brand_name": "Homely", "secret": "x"})

    assert agent_config.get_brand_name() == "Homely"
    assert "secret" not in agent_config.get_all_config()
    assert "renting with Homely" in agent_config.get_greeting_message()


def test_external_edits_are_picked_up():
    agent_config.get_all_config()
    with open(agent_config.config_file_path, "w", encoding="utf-8") as f:
        json.dump({"brand_name": "Edited", "ai_enabled": False}, f)
    os.utime(agent_config.config_file_path, (0, agent_config._last_modified + 10))

    assert agent_config.get_brand_name() == "Edited"
    assert agent_config.is_ai_enabled() is False
    assert agent_config.get("closed_message") == DEFAULT_CONFIG["closed_message"]


def test_config_api_requires_admin(client):
    assert client.get("/api/config").status_code == 401


def test_config_api(admin_client):
    body = admin_client.get("/api/config").json()
    assert body["data"]["brand_name"] == "Rentify"

    response = admin_client.put("/api/config", json={"brand_name": "  Homely  ", "confidence_threshold": 0.7})
    data = response.json()["data"]
    assert data["brand_name"] == "Homely"
    assert data["confidence_threshold"] == 0.7

    assert admin_client.put("/api/config", json={"greeting_message": "   "}).status_code == 400
    assert admin_client.put("/api/config", json={}).json()["message"] == "No valid fields to update"
    assert admin_client.put("/api/config", json={"confidence_threshold": 3}).status_code == 400

    reset = admin_client.post("/api/config/reset").json()["data"]
    assert reset["brand_name"] == "Rentify"
