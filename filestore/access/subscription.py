"""
Subscription gate: пользователь должен состоять во всех gate-каналах.
Ошибка или таймаут запроса по каналу = канал считается не пройденным (fail closed).
"""
from __future__ import annotations

import asyncio
import logging

from filestore.access.models import SubscriptionResult
from filestore.access.transport import Transport
from filestore.core.config import settings
from filestore.storage.base import RecordStore
from filestore.storage.records import GateChannelInfo

logger = logging.getLogger(__name__)

SATISFYING_STATUSES = frozenset({"creator", "administrator", "member"})


class SubscriptionGate:
    def __init__(self, store: RecordStore, transport: Transport, timeout: float | None = None) -> None:
        self._store = store
        self._transport = transport
        self._timeout = timeout if timeout is not None else settings.telegram_request_timeout

    async def check(self, telegram_id: str) -> SubscriptionResult:
        channels = self._store.list_channels()
        if not channels:
            return SubscriptionResult(passed=True)

        statuses = await asyncio.gather(*(self._status(ch, telegram_id) for ch in channels))
        missing = [ch for ch, status in zip(channels, statuses) if status not in SATISFYING_STATUSES]
        return SubscriptionResult(passed=not missing, missing=missing)

    async def _status(self, channel: GateChannelInfo, telegram_id: str) -> str | None:
        try:
            status = await asyncio.wait_for(
                self._transport.get_chat_membership(channel.channel_id, telegram_id),
                timeout=self._timeout,
            )
        except Exception as e:
            logger.warning(
                "membership_lookup_failed",
                extra={
                    "user_id": telegram_id,
                    "channel_id": channel.channel_id,
                    "error": f"{type(e).__name__}: {e}",
                },
            )
            return None
        return str(getattr(status, "value", status)).lower()
