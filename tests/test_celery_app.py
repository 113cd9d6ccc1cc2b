"""
Worker application configuration tests.
"""
from __future__ import annotations

from app.core.config import settings
from app.workers.celery_app import TASK_MODULES, celery_app, create_celery_app
from app.workers.tasks.email_tasks import send_payment_failed_email


def test_worker_app_uses_configured_broker() -> None:
    app = create_celery_app()

    assert app.conf.broker_url == settings.CELERY_BROKER_URL
    assert app.conf.result_backend == settings.CELERY_RESULT_BACKEND
    assert list(app.conf.include) == TASK_MODULES


def test_notifications_are_acked_after_completion() -> None:
    conf = celery_app.conf

    assert conf.task_serializer == "json"
    assert conf.accept_content == ["json"]
    assert conf.task_acks_late is True
    assert conf.task_reject_on_worker_lost is True
    assert conf.worker_prefetch_multiplier == 1
    assert conf.task_time_limit == settings.CELERY_TASK_TIME_LIMIT


def test_payment_failed_task_is_registered() -> None:
    assert send_payment_failed_email.name in celery_app.tasks
