"""
Execution: DeliveryService.deliver отправляет файл и планирует автоудаление.

Автоудаление advisory: ошибка планирования или удаления логируется и глотается,
доставка уже состоялась. Два планировщика: Celery countdown (переживает рестарт бота)
и локальный loop.call_later (для одного процесса без брокера).
"""
from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from filestore.access.config import get_auto_delete_seconds
from filestore.access.models import DeliveredMessage
from filestore.access.transport import Transport
from filestore.core.config import settings
from filestore.core.exceptions import DeliveryFailed
from filestore.storage.base import SettingsStore
from filestore.storage.records import StoredFile
from filestore.utils.metrics import auto_purge_total

logger = logging.getLogger(__name__)


class PurgeScheduler(Protocol):
    async def schedule(self, chat_id: str, message_id: int, delay_seconds: int) -> None:
        ...


class CeleryPurgeScheduler:
    """Отложенная задача purge_message с countdown."""

    async def schedule(self, chat_id: str, message_id: int, delay_seconds: int) -> None:
        from filestore.workers.tasks.purge import purge_message

        # publish может ждать недоступный брокер, не блокируем loop
        await asyncio.to_thread(
            purge_message.apply_async,
            args=[chat_id, message_id],
            countdown=delay_seconds,
        )


class LocalPurgeScheduler:
    """Таймер в event loop бота; теряется при рестарте процесса."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport
        self._tasks: set[asyncio.Task] = set()

    async def schedule(self, chat_id: str, message_id: int, delay_seconds: int) -> None:
        loop = asyncio.get_running_loop()
        loop.call_later(delay_seconds, self._spawn, chat_id, message_id)

    def _spawn(self, chat_id: str, message_id: int) -> None:
        task = asyncio.ensure_future(self._purge(chat_id, message_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _purge(self, chat_id: str, message_id: int) -> None:
        try:
            deleted = await self._transport.delete_message(chat_id, message_id)
        except Exception as e:
            deleted = False
            logger.warning(
                "auto_purge_failed",
                extra={"chat_id": chat_id, "message_id": message_id, "error": str(e)},
            )
        auto_purge_total.labels(result="deleted" if deleted else "failed").inc()


def build_purge_scheduler(transport: Transport, backend: str | None = None) -> PurgeScheduler:
    backend = backend or settings.auto_purge_backend
    if backend == "local":
        return LocalPurgeScheduler(transport)
    return CeleryPurgeScheduler()


class DeliveryService:
    def __init__(
        self,
        transport: Transport,
        settings_store: SettingsStore,
        purge_scheduler: PurgeScheduler,
        timeout: float | None = None,
    ) -> None:
        self._transport = transport
        self._settings_store = settings_store
        self._purge_scheduler = purge_scheduler
        self._timeout = timeout if timeout is not None else settings.telegram_request_timeout

    async def deliver(self, telegram_id: str, record: StoredFile, protect_content: bool) -> DeliveredMessage:
        """Send the file to the requester; raises DeliveryFailed if the transport refuses."""
        try:
            message_id = await asyncio.wait_for(
                self._transport.send_file(
                    telegram_id,
                    record.file_ref,
                    record.file_type,
                    record.caption,
                    protect_content,
                ),
                timeout=self._timeout,
            )
        except Exception as e:
            raise DeliveryFailed(
                f"send_file failed: {type(e).__name__}: {e}",
                {"user_id": telegram_id, "short_code": record.short_code},
            ) from e

        purge_in = get_auto_delete_seconds(self._settings_store)
        if purge_in > 0:
            await self._schedule_purge(telegram_id, message_id, purge_in)
        return DeliveredMessage(
            chat_id=telegram_id,
            message_id=message_id,
            purge_in_seconds=purge_in or None,
        )

    async def _schedule_purge(self, chat_id: str, message_id: int, delay_seconds: int) -> None:
        try:
            await self._purge_scheduler.schedule(chat_id, message_id, delay_seconds)
        except Exception as e:
            logger.warning(
                "auto_purge_schedule_failed",
                extra={"chat_id": chat_id, "message_id": message_id, "error": str(e)},
            )
            return
        auto_purge_total.labels(result="scheduled").inc()
        logger.info(
            "auto_purge_scheduled",
            extra={"chat_id": chat_id, "message_id": message_id, "delay_seconds": delay_seconds},
        )
