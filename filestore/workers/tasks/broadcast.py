"""
Mass broadcast to bot users via Telegram.
Respects rate limits and skips banned users.
"""
import logging
import time

from filestore.core.celery_app import celery_app
from filestore.db.session import SessionLocal
from filestore.services.telegram.client import TelegramClient
from filestore.storage.sql import SqlRecordStore

logger = logging.getLogger("broadcast")

# Telegram: ~30 msg/sec, we use 5/sec to be safe
DELAY_BETWEEN_MESSAGES = 0.2
MAX_MESSAGE_LENGTH = 4096


@celery_app.task(bind=True, name="filestore.workers.tasks.broadcast.broadcast_message")
def broadcast_message(self, message_text: str, include_banned: bool = False) -> dict:
    """
    Send message to all bot users.
    Banned users are excluded by default; one failed send never aborts the batch.
    """
    if not message_text or not message_text.strip():
        return {"sent": 0, "failed": 0, "skipped": 0, "error": "empty_message"}

    text = message_text.strip()
    if len(text) > MAX_MESSAGE_LENGTH:
        return {"sent": 0, "failed": 0, "skipped": 0, "error": "message_too_long"}

    store = SqlRecordStore(SessionLocal)
    telegram = TelegramClient()

    try:
        to_send = store.list_recipient_ids(include_banned=include_banned)
        skipped = 0 if include_banned else store.stats()["users_banned"]

        total = len(to_send)
        sent = 0
        failed = 0

        for i, telegram_id in enumerate(to_send):
            try:
                telegram.send_message(str(telegram_id), text)
                sent += 1
                if (i + 1) % 50 == 0:
                    logger.info("broadcast_progress", extra={"sent": sent, "total": total})
            except Exception as e:
                failed += 1
                logger.warning(
                    "broadcast_fail",
                    extra={"user_id": telegram_id, "error": str(e)},
                )

            if i < len(to_send) - 1:
                time.sleep(DELAY_BETWEEN_MESSAGES)

        result = {
            "sent": sent,
            "failed": failed,
            "skipped": skipped,
            "total_recipients": total,
        }
        logger.info("broadcast_completed", extra=result)
        return result
    finally:
        telegram.close()
