"""
Verification gate: одноразовая верификация через короткую ссылку.

issue_challenge оборачивает deep link в шортенер; при любой ошибке шортенера
отдаёт сырой deep link (пользователь не застревает). consume_challenge идемпотентен.
"""
from __future__ import annotations

import asyncio
import logging

from filestore.access.config import build_deep_link, get_shortener_credentials
from filestore.access.models import VERIFY_PREFIX, ChallengeLink, VerifiedResult
from filestore.core.exceptions import ShortenerError
from filestore.services.shortener.client import ShortenerClient
from filestore.storage.base import RecordStore, SettingsStore
from filestore.utils.metrics import verifications_total

logger = logging.getLogger(__name__)


class VerificationGate:
    def __init__(
        self,
        store: RecordStore,
        settings_store: SettingsStore,
        shortener: ShortenerClient,
        bot_username: str | None = None,
    ) -> None:
        self._store = store
        self._settings_store = settings_store
        self._shortener = shortener
        self._bot_username = bot_username

    def is_verified(self, telegram_id: str) -> bool:
        user = self._store.get_user(telegram_id)
        return bool(user and user.verified)

    async def issue_challenge(self, telegram_id: str, short_code: str) -> ChallengeLink:
        deep_link = build_deep_link(short_code, self._bot_username)
        ack_callback = f"{VERIFY_PREFIX}{short_code}"
        domain, api_key = get_shortener_credentials(self._settings_store)
        try:
            url = await asyncio.to_thread(self._shortener.shorten, deep_link, domain=domain, api_key=api_key)
        except ShortenerError as e:
            logger.warning(
                "shortener_fallback_raw_link",
                extra={"user_id": telegram_id, "short_code": short_code, "error": e.message},
            )
            return ChallengeLink(url=deep_link, deep_link=deep_link, shortened=False, ack_callback=ack_callback)
        return ChallengeLink(url=url, deep_link=deep_link, shortened=True, ack_callback=ack_callback)

    def consume_challenge(self, telegram_id: str) -> VerifiedResult:
        """Flip verified to True; a second call is a no-op reporting newly_verified=False."""
        newly_verified = self._store.mark_verified(telegram_id)
        user = self._store.get_user(telegram_id)
        if newly_verified:
            verifications_total.inc()
            logger.info("user_verified", extra={"user_id": telegram_id})
        return VerifiedResult(
            telegram_id=telegram_id,
            newly_verified=newly_verified,
            verified_at=user.verified_at if user else None,
        )
