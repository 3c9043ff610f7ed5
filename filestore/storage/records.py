"""
Plain records handed out by a RecordStore. Backend-agnostic: the access engine
never sees ORM objects or sessions.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class FileType(str, Enum):
    DOCUMENT = "document"
    VIDEO = "video"
    AUDIO = "audio"
    PHOTO = "photo"


class UserRecord(BaseModel):
    telegram_id: str
    telegram_username: str | None = None
    telegram_first_name: str | None = None
    verified: bool = False
    verified_at: datetime | None = None
    is_banned: bool = False
    files_shared: int = 0
    files_accessed: int = 0
    last_active: datetime | None = None

    model_config = {"frozen": True, "from_attributes": True}


class StoredFile(BaseModel):
    short_code: str
    file_ref: str
    file_type: FileType
    caption: str | None = None
    size: int | None = None
    uploaded_by: str
    views: int = 0
    downloads: int = 0
    is_active: bool = True
    created_at: datetime | None = None

    model_config = {"frozen": True, "from_attributes": True}


class GateChannelInfo(BaseModel):
    channel_id: str
    display_handle: str
    title: str | None = None

    model_config = {"frozen": True, "from_attributes": True}

    @property
    def join_url(self) -> str:
        return f"https://t.me/{self.display_handle.lstrip('@')}"
