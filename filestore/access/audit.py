"""
Аудит: строка в audit_logs + структурный лог + best-effort сообщение в лог-канал.
Ни один из этих шагов не ломает доставку: ошибки логируются и глотаются.
"""
from __future__ import annotations

import logging
from typing import Any

from filestore.access.transport import Transport
from filestore.core.config import settings
from filestore.storage.base import RecordStore
from filestore.storage.records import StoredFile

logger = logging.getLogger(__name__)


class AuditTrail:
    def __init__(
        self,
        store: RecordStore,
        transport: Transport | None = None,
        log_channel_id: str | None = None,
    ) -> None:
        self._store = store
        self._transport = transport
        self._log_channel_id = settings.log_channel_id if log_channel_id is None else log_channel_id

    def _persist(
        self,
        action: str,
        actor_id: str | None,
        entity_id: str | None,
        payload: dict[str, Any],
        actor_type: str = "user",
        entity_type: str = "file",
    ) -> None:
        try:
            self._store.log_audit(actor_type, actor_id, action, entity_type, entity_id, payload)
        except Exception:
            logger.exception("audit_persist_failed", extra={"action": action, "actor_id": actor_id})

    async def notify(self, text: str) -> None:
        """Post a line to the log channel, if one is configured."""
        if not self._log_channel_id or self._transport is None:
            return
        try:
            await self._transport.send_text(self._log_channel_id, text)
        except Exception as e:
            logger.warning("log_channel_post_failed", extra={"chat_id": self._log_channel_id, "error": str(e)})

    async def file_downloaded(self, telegram_id: str, first_name: str | None, record: StoredFile, message_id: int) -> None:
        logger.info(
            "file_downloaded",
            extra={"user_id": telegram_id, "short_code": record.short_code, "message_id": message_id},
        )
        self._persist("file_downloaded", telegram_id, record.short_code, {"message_id": message_id})
        await self.notify(
            "📥 File Downloaded\n\n"
            f"User: {first_name or '-'} ({telegram_id})\n"
            f"File: {record.caption or 'No caption'}\n"
            f"Code: {record.short_code}"
        )

    async def file_uploaded(
        self,
        telegram_id: str,
        first_name: str | None,
        short_code: str,
        caption: str | None,
        share_link: str,
        source_chat_id: str | None = None,
        source_message_id: int | None = None,
    ) -> None:
        logger.info("file_uploaded", extra={"user_id": telegram_id, "short_code": short_code})
        self._persist("file_uploaded", telegram_id, short_code, {"caption": caption})
        if self._log_channel_id and self._transport is not None and source_message_id is not None:
            try:
                await self._transport.forward_message(self._log_channel_id, source_chat_id or telegram_id, source_message_id)
            except Exception as e:
                logger.warning("log_channel_forward_failed", extra={"chat_id": self._log_channel_id, "error": str(e)})
        await self.notify(
            "📤 New File Uploaded\n\n"
            f"User: {first_name or '-'} ({telegram_id})\n"
            f"File: {caption}\n"
            f"Code: {short_code}\n"
            f"Link: {share_link}"
        )

    async def delivery_failed(self, telegram_id: str, short_code: str, error: str) -> None:
        """Escalation: error-level log plus log-channel notice for operators."""
        logger.error(
            "file_delivery_failed",
            extra={"user_id": telegram_id, "short_code": short_code, "error": error},
        )
        self._persist("file_delivery_failed", telegram_id, short_code, {"error": error})
        await self.notify(f"⚠️ Delivery failed\n\nUser: {telegram_id}\nCode: {short_code}\nError: {error}")

    def admin_action(self, actor_id: str | None, action: str, entity_type: str, entity_id: str | None, payload: dict[str, Any] | None = None) -> None:
        logger.info("admin_action", extra={"actor_id": actor_id, "action": action})
        self._persist(action, actor_id, entity_id, payload or {}, actor_type="admin", entity_type=entity_type)
