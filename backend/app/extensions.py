"""Flask extensions initialization."""

import os

from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address


def rate_limit_key() -> str:
    """Limit authenticated callers per user, anonymous ones per address."""
    verify_jwt_in_request(optional=True)
    identity = get_jwt_identity()
    if identity:
        return f"user:{identity}"
    return get_remote_address()


# Rate limiter (shared storage in Redis when REDIS_URL is set)
limiter = Limiter(
    key_func=rate_limit_key,
    default_limits=["1000 per day", "200 per hour"],
    storage_uri=os.environ.get("REDIS_URL", "memory://"),
)


def init_sentry(app):
    """Initialize Sentry error tracking."""
    sentry_dsn = app.config.get("SENTRY_DSN")
    if not sentry_dsn:
        app.logger.debug("SENTRY_DSN not set, error tracking disabled")
        return

    import sentry_sdk
    from sentry_sdk.integrations.celery import CeleryIntegration
    from sentry_sdk.integrations.flask import FlaskIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=sentry_dsn,
        integrations=[
            FlaskIntegration(),
            SqlalchemyIntegration(),
            CeleryIntegration(),
        ],
        traces_sample_rate=app.config.get("SENTRY_TRACES_SAMPLE_RATE", 0.1),
        environment=os.environ.get("FLASK_ENV", "production"),
        release=app.config.get("APP_VERSION"),
        send_default_pii=False,
    )
    app.logger.info("Sentry initialized")
