"""broadcast_message: пропуск забаненных, пауза между отправками, ошибки не рвут рассылку."""
import unittest
from unittest.mock import MagicMock, patch

from filestore.workers.tasks.broadcast import DELAY_BETWEEN_MESSAGES, MAX_MESSAGE_LENGTH, broadcast_message


class TestBroadcast(unittest.TestCase):
    @patch("filestore.workers.tasks.broadcast.time.sleep")
    @patch("filestore.workers.tasks.broadcast.TelegramClient")
    @patch("filestore.workers.tasks.broadcast.SqlRecordStore")
    def test_sends_and_counts_failures(self, store_cls, telegram_cls, sleep):
        store = store_cls.return_value
        store.list_recipient_ids.return_value = ["1", "2", "3"]
        store.stats.return_value = {"users_banned": 2}
        telegram = telegram_cls.return_value
        telegram.send_message.side_effect = [{"ok": True}, RuntimeError("Forbidden"), {"ok": True}]

        result = broadcast_message("  Maintenance tonight  ")

        self.assertEqual(result, {"sent": 2, "failed": 1, "skipped": 2, "total_recipients": 3})
        store.list_recipient_ids.assert_called_once_with(include_banned=False)
        telegram.send_message.assert_any_call("1", "Maintenance tonight")
        self.assertEqual(sleep.call_count, 2)
        sleep.assert_called_with(DELAY_BETWEEN_MESSAGES)
        telegram.close.assert_called_once()

    @patch("filestore.workers.tasks.broadcast.TelegramClient")
    @patch("filestore.workers.tasks.broadcast.SqlRecordStore")
    def test_rejects_empty_and_long(self, store_cls, telegram_cls):
        self.assertEqual(broadcast_message("   ")["error"], "empty_message")
        self.assertEqual(broadcast_message("x" * (MAX_MESSAGE_LENGTH + 1))["error"], "message_too_long")
        telegram_cls.assert_not_called()


if __name__ == "__main__":
    unittest.main()
