"""
Celery application for billing notifications.

The webhook only enqueues; workers send the email and write email_logs.
"""
from celery import Celery

from app.core.config import settings

TASK_MODULES = ["app.workers.tasks.email_tasks"]


def create_celery_app() -> Celery:
    """Build the worker app from settings."""
    celery = Celery(
        "uiblocks",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
        include=TASK_MODULES,
    )
    celery.conf.update(
        accept_content=["json"],
        task_serializer="json",
        result_serializer="json",
        timezone="UTC",
        enable_utc=True,
        broker_connection_retry_on_startup=True,
        # A notification is acknowledged only after its email_logs row is written
        task_acks_late=True,
        task_reject_on_worker_lost=True,
        worker_prefetch_multiplier=1,
        task_soft_time_limit=settings.CELERY_TASK_SOFT_TIME_LIMIT,
        task_time_limit=settings.CELERY_TASK_TIME_LIMIT,
        # Task results are only a delivery summary
        result_expires=3600,
    )
    return celery


celery_app = create_celery_app()

# Mappers must resolve before the first task runs
import app.models  # noqa: F401, E402
