"""Celery application configuration."""

import os

from celery import Celery

# Create Celery app
celery = Celery(
    "cleangreen",
    broker=os.environ.get("CELERY_BROKER_URL", "redis://localhost:6379/1"),
    backend=os.environ.get("CELERY_RESULT_BACKEND", "redis://localhost:6379/1"),
    include=["app.tasks.notification_tasks"],
)

# Celery configuration
celery.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_time_limit=60,
    task_soft_time_limit=45,
    task_acks_late=True,
    task_routes={"app.tasks.notification_tasks.*": {"queue": "notifications"}},
    task_reject_on_worker_lost=True,
    result_expires=3600,  # Results expire after 1 hour
    broker_connection_retry_on_startup=True,
)


def init_celery(app):
    """Initialize Celery with Flask app context."""
    if app.config.get("TESTING"):
        celery.conf.update(task_always_eager=True, task_eager_propagates=True)

    class ContextTask(celery.Task):
        """Task that runs within Flask app context."""

        def __call__(self, *args, **kwargs):
            with app.app_context():
                return self.run(*args, **kwargs)

    celery.Task = ContextTask
    return celery
