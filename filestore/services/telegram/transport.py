"""
aiogram adapter for the access engine Transport protocol (bot process only).
"""
from __future__ import annotations

import logging
from typing import Any

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from aiogram.types import InlineKeyboardMarkup

from filestore.access.models import ChatInfo
from filestore.core.config import settings
from filestore.core.exceptions import MembershipLookupError
from filestore.storage.records import FileType

logger = logging.getLogger(__name__)


def _chat(chat_id: str | int) -> str | int:
    """Numeric ids go to the API as ints, @handles stay strings."""
    try:
        return int(chat_id)
    except (TypeError, ValueError):
        return chat_id


class AiogramTransport:
    def __init__(self, bot: Bot, request_timeout: float | None = None) -> None:
        self.bot = bot
        self._request_timeout = int(request_timeout if request_timeout is not None else settings.telegram_request_timeout)

    async def send_file(
        self,
        chat_id: str,
        file_ref: str,
        file_type: FileType,
        caption: str | None,
        protect_content: bool,
    ) -> int:
        kwargs = {
            "chat_id": _chat(chat_id),
            "caption": caption,
            "protect_content": protect_content,
            "request_timeout": self._request_timeout,
        }
        file_type = FileType(file_type)
        if file_type == FileType.VIDEO:
            message = await self.bot.send_video(video=file_ref, **kwargs)
        elif file_type == FileType.AUDIO:
            message = await self.bot.send_audio(audio=file_ref, **kwargs)
        elif file_type == FileType.PHOTO:
            message = await self.bot.send_photo(photo=file_ref, **kwargs)
        else:
            message = await self.bot.send_document(document=file_ref, **kwargs)
        return message.message_id

    async def delete_message(self, chat_id: str, message_id: int) -> bool:
        return await self.bot.delete_message(
            chat_id=_chat(chat_id),
            message_id=message_id,
            request_timeout=self._request_timeout,
        )

    async def get_chat_membership(self, channel_id: str, user_id: str) -> str:
        try:
            member = await self.bot.get_chat_member(
                chat_id=_chat(channel_id),
                user_id=int(user_id),
                request_timeout=self._request_timeout,
            )
        except TelegramAPIError as e:
            # bot not admin in the channel, channel gone, etc.
            raise MembershipLookupError(e.message, {"channel_id": channel_id}) from e
        return getattr(member.status, "value", str(member.status))

    async def get_chat_info(self, handle: str) -> ChatInfo:
        chat = await self.bot.get_chat(chat_id=_chat(handle), request_timeout=self._request_timeout)
        return ChatInfo(id=str(chat.id), title=chat.title)

    async def forward_message(self, to_chat_id: str, from_chat_id: str, message_id: int) -> int:
        message = await self.bot.forward_message(
            chat_id=_chat(to_chat_id),
            from_chat_id=_chat(from_chat_id),
            message_id=message_id,
            request_timeout=self._request_timeout,
        )
        return message.message_id

    async def send_text(
        self,
        chat_id: str,
        text: str,
        reply_markup: dict[str, Any] | None = None,
        parse_mode: str | None = None,
    ) -> int:
        markup = InlineKeyboardMarkup.model_validate(reply_markup) if reply_markup else None
        message = await self.bot.send_message(
            chat_id=_chat(chat_id),
            text=text,
            reply_markup=markup,
            parse_mode=parse_mode,
            request_timeout=self._request_timeout,
        )
        return message.message_id
