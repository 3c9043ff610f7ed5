"""
AccessOrchestrator.redeem: пошаговая машина выдачи файла по короткому коду:

    LOOKUP -> BAN_CHECK -> SUBSCRIPTION_CHECK -> VERIFICATION_CHECK -> DELIVER

Переходы только вперёд; повторный вход только новым вызовом (re-check кнопка,
повторный /start). Гейты возвращают outcome, наружу не бросают.
"""
from __future__ import annotations

import logging

from filestore.access.audit import AuditTrail
from filestore.access.config import get_protect_content
from filestore.access.delivery import DeliveryService
from filestore.access.models import (
    RedemptionOutcome,
    RedemptionResult,
    VerifiedResult,
)
from filestore.access.subscription import SubscriptionGate
from filestore.access.verification import VerificationGate
from filestore.core.exceptions import DeliveryFailed, GateUnsatisfied
from filestore.storage.base import RecordStore, SettingsStore
from filestore.utils.metrics import redemptions_total

logger = logging.getLogger(__name__)


class AccessOrchestrator:
    def __init__(
        self,
        store: RecordStore,
        settings_store: SettingsStore,
        subscription: SubscriptionGate,
        verification: VerificationGate,
        delivery: DeliveryService,
        audit: AuditTrail,
    ) -> None:
        self.store = store
        self.settings_store = settings_store
        self.subscription = subscription
        self.verification = verification
        self.delivery = delivery
        self.audit = audit

    def _finish(self, telegram_id: str, result: RedemptionResult) -> RedemptionResult:
        redemptions_total.labels(outcome=result.outcome.value).inc()
        logger.info(
            "redemption",
            extra={"user_id": telegram_id, "short_code": result.short_code, "outcome": result.outcome.value},
        )
        return result

    async def redeem(
        self,
        telegram_id: str,
        short_code: str,
        username: str | None = None,
        first_name: str | None = None,
    ) -> RedemptionResult:
        # LOOKUP
        record = self.store.get_active_file(short_code)
        if record is None:
            return self._finish(telegram_id, RedemptionResult(outcome=RedemptionOutcome.NOT_FOUND, short_code=short_code))

        # BAN_CHECK
        user = self.store.get_or_create_user(telegram_id, username, first_name)
        if user.is_banned:
            return self._finish(
                telegram_id,
                RedemptionResult(outcome=RedemptionOutcome.BLOCKED, short_code=short_code, file=record),
            )

        # SUBSCRIPTION_CHECK
        subscription = await self.subscription.check(telegram_id)
        if not subscription.passed:
            return self._finish(
                telegram_id,
                RedemptionResult(
                    outcome=RedemptionOutcome.PENDING_SUBSCRIPTION,
                    short_code=short_code,
                    file=record,
                    missing_channels=subscription.missing,
                ),
            )

        # VERIFICATION_CHECK: просмотр считаем только здесь
        if not self.verification.is_verified(telegram_id):
            self.store.increment_views(short_code)
            challenge = await self.verification.issue_challenge(telegram_id, short_code)
            return self._finish(
                telegram_id,
                RedemptionResult(
                    outcome=RedemptionOutcome.PENDING_VERIFICATION,
                    short_code=short_code,
                    file=record,
                    challenge=challenge,
                ),
            )

        # DELIVER
        protect_content = get_protect_content(self.settings_store)
        try:
            delivered = await self.delivery.deliver(telegram_id, record, protect_content)
        except DeliveryFailed as e:
            await self.audit.delivery_failed(telegram_id, short_code, e.message)
            return self._finish(
                telegram_id,
                RedemptionResult(outcome=RedemptionOutcome.DELIVERY_FAILED, short_code=short_code, file=record),
            )

        try:
            self.store.record_download(short_code, telegram_id)
        except Exception as e:
            # файл уже у пользователя; счётчик потерян, эскалируем
            logger.exception("download_counter_failed", extra={"user_id": telegram_id, "short_code": short_code})
            await self.audit.notify(f"⚠️ Download counter not updated\n\nCode: {short_code}\nError: {e}")
        await self.audit.file_downloaded(telegram_id, first_name, record, delivered.message_id)

        return self._finish(
            telegram_id,
            RedemptionResult(
                outcome=RedemptionOutcome.DELIVERED,
                short_code=short_code,
                file=record,
                delivered=delivered,
            ),
        )

    async def confirm_verification(self, telegram_id: str) -> VerifiedResult:
        """
        «I have verified» callback. Завершение верификации принимается на слово,
        но только если пользователь всё ещё подписан на все gate-каналы.
        """
        subscription = await self.subscription.check(telegram_id)
        if not subscription.passed:
            raise GateUnsatisfied(
                "subscription required",
                {"user_id": telegram_id, "missing": [ch.display_handle for ch in subscription.missing]},
            )
        return self.verification.consume_challenge(telegram_id)
