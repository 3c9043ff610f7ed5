"""
Celery application: broker and result backend from settings.
Tasks are in filestore.workers.tasks (purge, broadcast).
"""
from celery import Celery

from filestore.core.config import settings

celery_app = Celery(
    "filestore",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "filestore.workers.tasks.purge",
        "filestore.workers.tasks.broadcast",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_track_started=True,
    task_time_limit=3600,
    result_expires=86400,
)

celery_app.conf.task_routes = {
    "filestore.workers.tasks.broadcast.broadcast_message": {"queue": "broadcast"},
}
