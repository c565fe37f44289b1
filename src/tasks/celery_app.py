"""
Celery App Configuration - Notification triggers with Redis broker.

Configures Celery for:
- Document-event notification tasks (invites, task assignment, comments)
- The daily due-date reminder run (beat)

Usage:
    # Run worker
    celery -A tasks.celery_app worker --loglevel=info

    # Run with beat scheduler
    celery -A tasks.celery_app worker --beat --loglevel=info
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Dict, Optional

from celery import Celery, Task
from celery.schedules import crontab
from celery.signals import (
    after_setup_logger,
    task_postrun,
    task_prerun,
    worker_ready,
    worker_shutdown,
)

from config.logging_config import configure_logging
from config.settings import CelerySettings, RedisSettings, Settings, get_settings

logger = logging.getLogger(__name__)

DUE_REMINDERS_TASK = "tasks.notification_tasks.send_due_date_reminders"


def build_beat_schedule(settings: Settings) -> Dict[str, Any]:
    """Daily reminder run at the configured local time."""
    return {
        "send-due-date-reminders": {
            "task": DUE_REMINDERS_TASK,
            "schedule": crontab(hour=settings.reminder_hour, minute=settings.reminder_minute),
        },
    }


def create_celery_app(
    redis_settings: Optional[RedisSettings] = None,
    celery_settings: Optional[CelerySettings] = None,
) -> Celery:
    """
    Create and configure a Celery application.

    Args:
        redis_settings: Redis connection settings
        celery_settings: Celery configuration settings

    Returns:
        Configured Celery application
    """
    settings = get_settings()
    redis_settings = redis_settings or settings.redis
    celery_settings = celery_settings or settings.celery

    app = Celery(
        "yetwork_notifications",
        broker=redis_settings.url(celery_settings.broker_db),
        backend=redis_settings.url(celery_settings.result_db),
        include=[
            "tasks.notification_tasks",
        ],
    )

    app.conf.update(
        # Serialization
        task_serializer=celery_settings.task_serializer,
        result_serializer=celery_settings.result_serializer,
        accept_content=celery_settings.accept_content,
        result_accept_content=celery_settings.accept_content,

        # Task acknowledgment
        task_acks_late=celery_settings.task_acks_late,
        task_reject_on_worker_lost=celery_settings.task_reject_on_worker_lost,

        # Worker settings
        worker_prefetch_multiplier=celery_settings.worker_prefetch_multiplier,

        # Result settings
        result_expires=86400,
        task_track_started=True,

        # Crontab entries are evaluated in the reminder timezone
        timezone=settings.reminder_timezone,
        enable_utc=True,

        beat_schedule=build_beat_schedule(settings),
    )

    return app


# Global Celery app instance
celery_app = create_celery_app()


@lru_cache
def get_celery_app() -> Celery:
    """Get the global Celery app instance."""
    return celery_app


class TaskBase(Task):
    """
    Base task class with lifecycle logging. No automatic retries.
    """

    abstract = True

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        logger.error(
            f"Task {self.name}[{task_id}] failed: {exc}",
            extra={"extra_data": {"task_id": task_id, "task_name": self.name, "exception": str(exc)}},
        )
        super().on_failure(exc, task_id, args, kwargs, einfo)

    def on_success(self, retval, task_id, args, kwargs):
        logger.info(
            f"Task {self.name}[{task_id}] succeeded",
            extra={"extra_data": {"task_id": task_id, "task_name": self.name}},
        )
        super().on_success(retval, task_id, args, kwargs)


# Register base task class
celery_app.Task = TaskBase


@after_setup_logger.connect
def on_setup_logger(logger=None, **kwargs):
    """Apply LOG_LEVEL / LOG_FORMAT to the worker's root logger."""
    configure_logging()


@worker_ready.connect
def on_worker_ready(sender, **kwargs):
    logger.info(f"Celery worker ready: {sender}")


@worker_shutdown.connect
def on_worker_shutdown(sender, **kwargs):
    logger.info(f"Celery worker shutting down: {sender}")


@task_prerun.connect
def on_task_prerun(task_id, task, args, kwargs, **other):
    """Log task start."""
    logger.debug(
        f"Task starting: {task.name}[{task_id}]",
        extra={"extra_data": {"task_id": task_id, "task_name": task.name}},
    )


@task_postrun.connect
def on_task_postrun(task_id, task, args, kwargs, retval, state, **other):
    """Log task completion."""
    logger.debug(
        f"Task completed: {task.name}[{task_id}] state={state}",
        extra={"extra_data": {"task_id": task_id, "task_name": task.name, "state": state}},
    )
