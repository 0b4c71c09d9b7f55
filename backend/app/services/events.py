"""In-process domain events.

Services emit events after their database transaction has committed.
Handler errors are logged and never reach the emitter.
"""

import logging
from collections import defaultdict
from typing import Callable

from flask import current_app

logger = logging.getLogger(__name__)

SUBMISSION_RECORDED = "submission_recorded"
LEVEL_UP = "level_up"
REWARD_ISSUED = "reward_issued"
SPIN_CLAIMED = "spin_claimed"

_subscribers: dict[str, list[Callable]] = defaultdict(list)


def subscribe(event_name: str, handler: Callable) -> Callable:
    """Register a handler. Returns it so this can be used as a decorator."""
    if handler not in _subscribers[event_name]:
        _subscribers[event_name].append(handler)
    return handler


def unsubscribe(event_name: str, handler: Callable) -> None:
    """Remove a handler if registered."""
    if handler in _subscribers.get(event_name, []):
        _subscribers[event_name].remove(handler)


def clear_subscribers() -> None:
    """Drop every handler (used by tests and app re-creation)."""
    _subscribers.clear()


def emit(event_name: str, **payload) -> int:
    """Deliver an event to all handlers. Returns the number that succeeded."""
    delivered = 0
    for handler in list(_subscribers.get(event_name, [])):
        try:
            handler(event_name, payload)
            delivered += 1
        except Exception as e:
            logger.error(f"Event handler {handler!r} failed for {event_name}: {e}")
    return delivered


def forward_to_notifier(event_name: str, payload: dict) -> None:
    """Queue the event for the push/webhook notifier."""
    from app.tasks.notification_tasks import deliver_domain_event

    deliver_domain_event.delay(
        event_name, payload, current_app.config.get("NOTIFY_WEBHOOK_URL", "")
    )


def register_default_subscribers(app) -> None:
    """Forward user-facing events to the notification task when enabled."""
    if not app.config.get("NOTIFICATIONS_ENABLED"):
        return

    subscribe(LEVEL_UP, forward_to_notifier)
    subscribe(REWARD_ISSUED, forward_to_notifier)
