"""Celery tasks package."""

from app.tasks.notification_tasks import deliver_domain_event

__all__ = ["deliver_domain_event"]
