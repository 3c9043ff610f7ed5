"""
Capability interface the access engine needs from the messaging platform.
The bot process implements it with aiogram (filestore.services.telegram.transport).
"""
from __future__ import annotations

from typing import Any, Protocol

from filestore.access.models import ChatInfo
from filestore.storage.records import FileType


class Transport(Protocol):
    async def send_file(
        self,
        chat_id: str,
        file_ref: str,
        file_type: FileType,
        caption: str | None,
        protect_content: bool,
    ) -> int:
        """Send a stored file; returns the delivered message id."""
        ...

    async def delete_message(self, chat_id: str, message_id: int) -> bool:
        ...

    async def get_chat_membership(self, channel_id: str, user_id: str) -> str:
        """Membership status string: creator, administrator, member, restricted, left, kicked."""
        ...

    async def get_chat_info(self, handle: str) -> ChatInfo:
        ...

    async def forward_message(self, to_chat_id: str, from_chat_id: str, message_id: int) -> int:
        ...

    async def send_text(
        self,
        chat_id: str,
        text: str,
        reply_markup: dict[str, Any] | None = None,
        parse_mode: str | None = None,
    ) -> int:
        ...
