"""Notification tasks: deliver domain events to the push notifier."""

import requests
import structlog

from app.celery_app import celery

logger = structlog.get_logger()


@celery.task(bind=True, max_retries=3, default_retry_delay=30)
def deliver_domain_event(self, event_name: str, payload: dict, webhook_url: str = ""):
    """POST a domain event (level_up, reward_issued) to the notifier webhook."""
    if not webhook_url:
        logger.info("deliver_event_skipped", domain_event=event_name, reason="no_webhook")
        return {"success": False, "error": "No webhook configured"}

    try:
        logger.info(
            "deliver_event_started",
            domain_event=event_name,
            user_id=payload.get("user_id"),
        )
        response = requests.post(
            webhook_url,
            json={"event": event_name, "payload": payload},
            timeout=10,
        )
        response.raise_for_status()
        logger.info(
            "deliver_event_completed",
            domain_event=event_name,
            status=response.status_code,
        )
        return {"success": True}

    except requests.RequestException as e:
        logger.error("deliver_event_error", domain_event=event_name, error=str(e))
        raise self.retry(exc=e)
