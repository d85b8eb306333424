"""
Configuration API Router - Agent Configuration Management
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from agent_config import agent_config
from auth import require_admin
from errors import BadRequestError, format_response

router = APIRouter(
    prefix="/api/config",
    tags=["Configuration"],
    dependencies=[Depends(require_admin)],
)


class ConfigUpdate(BaseModel):
    brand_name: Optional[str] = None
    greeting_message: Optional[str] = None
    handoff_message: Optional[str] = None
    closed_message: Optional[str] = None
    ai_enabled: Optional[bool] = None
    confidence_threshold: Optional[float] = Field(None, ge=0, le=1)


@router.get("")
async def get_config():
    """Get current agent configuration"""
    return format_response(agent_config.get_all_config(), "Configuration retrieved")


@router.put("")
async def update_config(data: ConfigUpdate):
    """Update agent configuration"""
    updates = {}
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        if isinstance(value, str):
            value = value.strip()
            if not value:
                raise BadRequestError(f"Invalid value for {field}. Must not be empty.")
        updates[field] = value

    if not updates:
        raise BadRequestError("No valid fields to update")

    return format_response(agent_config.update_config(updates), "Configuration updated successfully")


@router.post("/reset")
async def reset_config():
    """Reset configuration to defaults"""
    return format_response(agent_config.reset_to_defaults(), "Configuration reset to defaults")
