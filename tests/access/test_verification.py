"""VerificationGate: challenge через шортенер, фолбэк на сырой deep link, идемпотентность."""
import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from filestore.access.verification import VerificationGate
from filestore.core.exceptions import ShortenerError
from filestore.storage.records import UserRecord

DEEP_LINK = "https://t.me/FileStoreTestBot?start=a1b2c3d4"


def _settings_store(**values):
    data = {"shortener_domain": "https://short.example", "shortener_api_key": "key123"}
    data.update(values)
    store = MagicMock()
    store.get.side_effect = lambda key, default=None: data.get(key, default)
    return store


class TestIssueChallenge(unittest.IsolatedAsyncioTestCase):
    async def test_shortened_link(self):
        shortener = MagicMock()
        shortener.shorten.return_value = "https://short.example/Xy12"
        gate = VerificationGate(MagicMock(), _settings_store(), shortener, "FileStoreTestBot")

        challenge = await gate.issue_challenge("42", "a1b2c3d4")

        self.assertEqual(challenge.url, "https://short.example/Xy12")
        self.assertEqual(challenge.deep_link, DEEP_LINK)
        self.assertTrue(challenge.shortened)
        self.assertEqual(challenge.ack_callback, "verify:a1b2c3d4")
        shortener.shorten.assert_called_once_with(DEEP_LINK, domain="https://short.example", api_key="key123")

    async def test_shortener_failure_falls_back_to_raw_link(self):
        shortener = MagicMock()
        shortener.shorten.side_effect = ShortenerError("shortener timed out")
        store = MagicMock()
        gate = VerificationGate(store, _settings_store(), shortener, "FileStoreTestBot")

        challenge = await gate.issue_challenge("42", "a1b2c3d4")

        self.assertEqual(challenge.url, DEEP_LINK)
        self.assertFalse(challenge.shortened)
        store.mark_verified.assert_not_called()


class TestConsumeChallenge(unittest.TestCase):
    def test_first_call_verifies_second_is_noop(self):
        now = datetime.now(timezone.utc)
        store = MagicMock()
        store.mark_verified.side_effect = [True, False]
        store.get_user.return_value = UserRecord(telegram_id="42", verified=True, verified_at=now)
        gate = VerificationGate(store, _settings_store(), MagicMock(), "FileStoreTestBot")

        first = gate.consume_challenge("42")
        second = gate.consume_challenge("42")

        self.assertTrue(first.newly_verified)
        self.assertFalse(second.newly_verified)
        self.assertEqual(second.verified_at, now)

    def test_is_verified(self):
        store = MagicMock()
        store.get_user.side_effect = [None, UserRecord(telegram_id="42", verified=True)]
        gate = VerificationGate(store, _settings_store(), MagicMock(), "FileStoreTestBot")

        self.assertFalse(gate.is_verified("42"))
        self.assertTrue(gate.is_verified("42"))


if __name__ == "__main__":
    unittest.main()
