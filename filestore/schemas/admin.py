"""
Admin API schemas.
"""
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class SettingsUpdate(BaseModel):
    """Partial update; omitted fields stay unchanged."""
    auto_delete_seconds: int | None = Field(default=None, ge=0)
    protect_content: bool | None = None
    shortener_domain: str | None = None
    shortener_api_key: str | None = None
    start_message: str | None = None
    help_message: str | None = None


class ChannelIn(BaseModel):
    handle: str = Field(..., description="@channelname or numeric chat id")


class ChannelOut(BaseModel):
    channel_id: str
    display_handle: str
    title: str | None = None
    join_url: str


class BanIn(BaseModel):
    reason: str | None = None


class UserOut(BaseModel):
    telegram_id: str
    telegram_username: str | None = None
    verified: bool
    is_banned: bool
    files_shared: int
    files_accessed: int


class BroadcastIn(BaseModel):
    message: str
    include_banned: bool = False


class AuditLogOut(BaseModel):
    id: str
    actor_type: str
    actor_id: str | None
    action: str
    entity_type: str
    entity_id: str | None
    payload: dict[str, Any]
    created_at: datetime

    model_config = {"from_attributes": True}
