"""
AccessOrchestrator.redeem на реальном SQLite сторе и фейковом транспорте:
все исходы, счётчики, сценарий a1b2c3d4 и параллельные скачивания.
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from filestore.access import (
    AccessOrchestrator,
    AuditTrail,
    DeliveryService,
    FileRegistry,
    RedemptionOutcome,
    SubscriptionGate,
    VerificationGate,
)
from filestore.access.codes import CodeGenerator
from filestore.core.exceptions import GateUnsatisfied
from filestore.services.shortener.client import ShortenerClient

LOG_CHANNEL = "-100999"
CODE = "a1b2c3d4"


def _build(store, settings_store, transport, shortener=None, scheduler=None):
    if shortener is None:
        shortener = MagicMock()
        shortener.shorten.return_value = "https://short.example/Xy12"
    return AccessOrchestrator(
        store,
        settings_store,
        SubscriptionGate(store, transport, timeout=1),
        VerificationGate(store, settings_store, shortener, "FileStoreTestBot"),
        DeliveryService(transport, settings_store, scheduler or AsyncMock(), timeout=1),
        AuditTrail(store, transport, log_channel_id=LOG_CHANNEL),
    )


def _upload(store, code=CODE, uploader="7"):
    registry = FileRegistry(store, CodeGenerator(store, draw=lambda: code))
    return registry.store(uploader, "BQACAgIAAxk-file", "document", "report.pdf", 2048)


def _redeem(orchestrator, user="42", code=CODE):
    return asyncio.run(orchestrator.redeem(user, code, "bob", "Bob"))


class TestOutcomes:
    def test_unknown_code(self, store, settings_store, transport):
        result = _redeem(_build(store, settings_store, transport), code="zzzzzzzz")

        assert result.outcome == RedemptionOutcome.NOT_FOUND
        assert store.get_user("42") is None
        assert transport.sent_files == []

    def test_soft_deleted_code(self, store, settings_store, transport):
        _upload(store)
        store.soft_delete_file(CODE)

        assert _redeem(_build(store, settings_store, transport)).outcome == RedemptionOutcome.NOT_FOUND

    def test_banned_user(self, store, settings_store, transport):
        _upload(store)
        store.set_banned("42", True, "spam")

        result = _redeem(_build(store, settings_store, transport))

        assert result.outcome == RedemptionOutcome.BLOCKED
        assert store.get_file(CODE).views == 0

    def test_pending_subscription(self, store, settings_store, transport):
        _upload(store)
        store.add_channel("-1001", "@news", "News")
        store.add_channel("-1002", "@chat", "Chat")
        transport.memberships[("-1002", "42")] = "member"

        result = _redeem(_build(store, settings_store, transport))

        assert result.outcome == RedemptionOutcome.PENDING_SUBSCRIPTION
        assert [ch.display_handle for ch in result.missing_channels] == ["@news"]
        assert result.recheck_callback == "recheck:a1b2c3d4"
        assert store.get_file(CODE).views == 0

    def test_pending_verification_counts_view(self, store, settings_store, transport):
        _upload(store)

        result = _redeem(_build(store, settings_store, transport))

        assert result.outcome == RedemptionOutcome.PENDING_VERIFICATION
        assert result.challenge.url == "https://short.example/Xy12"
        assert result.challenge.ack_callback == "verify:a1b2c3d4"
        record = store.get_file(CODE)
        assert record.views == 1
        assert record.downloads == 0
        assert transport.sent_files == []

    def test_delivered(self, store, settings_store, transport):
        _upload(store)
        store.mark_verified("42")
        settings_store.set("protect_content", True)

        result = _redeem(_build(store, settings_store, transport))

        assert result.outcome == RedemptionOutcome.DELIVERED
        assert result.delivered.message_id == transport.sent_files[0]["message_id"]
        assert transport.sent_files[0]["protect_content"] is True
        assert transport.sent_files[0]["caption"] == "report.pdf"
        assert store.get_file(CODE).downloads == 1
        assert store.get_user("42").files_accessed == 1
        assert any("File Downloaded" in t["text"] for t in transport.sent_texts if t["chat_id"] == LOG_CHANNEL)

    def test_delivery_failed_touches_nothing(self, store, settings_store, transport):
        _upload(store)
        store.mark_verified("42")
        transport.fail_send = True

        result = _redeem(_build(store, settings_store, transport))

        assert result.outcome == RedemptionOutcome.DELIVERY_FAILED
        assert store.get_file(CODE).downloads == 0
        assert store.get_user("42").files_accessed == 0
        assert any("Delivery failed" in t["text"] for t in transport.sent_texts)

    def test_auto_delete_scheduled(self, store, settings_store, transport):
        _upload(store)
        store.mark_verified("42")
        settings_store.set("auto_delete_seconds", 30)
        scheduler = AsyncMock()

        result = _redeem(_build(store, settings_store, transport, scheduler=scheduler))

        assert result.delivered.purge_in_seconds == 30
        scheduler.schedule.assert_awaited_once_with("42", result.delivered.message_id, 30)


class TestShortenerFallback:
    def test_timeout_falls_back_to_raw_link(self, store, settings_store, transport):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        settings_store.set("shortener_api_key", "key123")
        shortener = ShortenerClient(timeout=0.1, transport=httpx.MockTransport(handler))
        _upload(store)

        result = _redeem(_build(store, settings_store, transport, shortener=shortener))

        assert result.outcome == RedemptionOutcome.PENDING_VERIFICATION
        assert result.challenge.shortened is False
        assert result.challenge.url == "https://t.me/FileStoreTestBot?start=a1b2c3d4"


class TestVerificationFlow:
    def test_share_verify_download(self, store, settings_store, transport):
        """Загрузка -> первый переход (верификация) -> подтверждение -> файл."""
        store.add_channel("-1001", "@news", "News")
        transport.memberships[("-1001", "42")] = "member"
        assert _upload(store) == CODE
        orchestrator = _build(store, settings_store, transport)

        first = _redeem(orchestrator)
        assert first.outcome == RedemptionOutcome.PENDING_VERIFICATION

        verified = asyncio.run(orchestrator.confirm_verification("42"))
        assert verified.newly_verified is True

        second = _redeem(orchestrator)
        assert second.outcome == RedemptionOutcome.DELIVERED

        record = store.get_file(CODE)
        assert record.views == 1
        assert record.downloads == 1
        assert store.get_user("7").files_shared == 1

    def test_verification_carries_over_to_later_uploads(self, store, settings_store, transport):
        store.add_channel("-1001", "@news", "News")
        transport.memberships[("-1001", "42")] = "member"
        _upload(store)
        orchestrator = _build(store, settings_store, transport)
        _redeem(orchestrator)
        asyncio.run(orchestrator.confirm_verification("42"))

        later = "z9y8x7w6"
        assert _upload(store, code=later, uploader="8") == later
        result = _redeem(orchestrator, code=later)

        assert result.outcome == RedemptionOutcome.DELIVERED
        assert store.get_file(later).views == 0
        assert store.get_file(later).downloads == 1

    def test_confirm_requires_subscription(self, store, settings_store, transport):
        store.add_channel("-1001", "@news", "News")
        orchestrator = _build(store, settings_store, transport)

        with pytest.raises(GateUnsatisfied):
            asyncio.run(orchestrator.confirm_verification("42"))
        assert store.get_user("42") is None or store.get_user("42").verified is False

    def test_confirm_is_idempotent(self, store, settings_store, transport):
        orchestrator = _build(store, settings_store, transport)

        assert asyncio.run(orchestrator.confirm_verification("42")).newly_verified is True
        assert asyncio.run(orchestrator.confirm_verification("42")).newly_verified is False


class TestConcurrency:
    def test_parallel_downloads_are_both_counted(self, store, settings_store, transport):
        _upload(store)
        store.mark_verified("42")
        store.mark_verified("43")
        orchestrator = _build(store, settings_store, transport)

        async def both():
            return await asyncio.gather(
                orchestrator.redeem("42", CODE),
                orchestrator.redeem("43", CODE),
            )

        results = asyncio.run(both())

        assert all(r.outcome == RedemptionOutcome.DELIVERED for r in results)
        assert store.get_file(CODE).downloads == 2
