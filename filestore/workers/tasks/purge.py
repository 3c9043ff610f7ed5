"""
Auto-purge: delete a delivered file message after auto_delete_seconds.
Scheduled with countdown by CeleryPurgeScheduler; failures are logged, never retried.
"""
import logging

from filestore.core.celery_app import celery_app
from filestore.services.telegram.client import TelegramClient
from filestore.utils.metrics import auto_purge_total

logger = logging.getLogger(__name__)


@celery_app.task(name="filestore.workers.tasks.purge.purge_message")
def purge_message(chat_id: str, message_id: int) -> dict:
    telegram = TelegramClient()
    try:
        deleted = telegram.delete_message(str(chat_id), int(message_id))
    finally:
        telegram.close()
    auto_purge_total.labels(result="deleted" if deleted else "failed").inc()
    logger.info(
        "auto_purge_done",
        extra={"chat_id": chat_id, "message_id": message_id, "outcome": "deleted" if deleted else "failed"},
    )
    return {"chat_id": str(chat_id), "message_id": int(message_id), "deleted": deleted}
