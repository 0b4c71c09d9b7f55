"""Structured logging configuration."""

import logging
import sys
import time
import uuid

import structlog
from flask import g, request
from pythonjsonlogger import jsonlogger

QUIET_PATHS = ("/health", "/ready")


def setup_logging(app):
    """Configure structlog and JSON stdlib logging for production."""
    log_level = logging.DEBUG if app.debug else logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            (
                structlog.processors.JSONRenderer()
                if not app.debug
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if not app.debug:
        json_formatter = jsonlogger.JsonFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            rename_fields={"levelname": "level", "asctime": "timestamp"},
        )

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(json_formatter)
        handler.setLevel(log_level)

        app.logger.handlers = []
        app.logger.addHandler(handler)
        app.logger.setLevel(log_level)

        # Service modules log under "app.*"
        app_logger = logging.getLogger("app")
        app_logger.handlers = []
        app_logger.addHandler(handler)
        app_logger.setLevel(log_level)

        for logger_name in ["werkzeug", "sqlalchemy.engine"]:
            logger = logging.getLogger(logger_name)
            logger.handlers = []
            logger.addHandler(handler)
            logger.setLevel(logging.WARNING)

    @app.before_request
    def log_request_info():
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        g.request_start_time = time.time()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=g.request_id,
            method=request.method,
            path=request.path,
            remote_addr=request.remote_addr,
        )

    @app.after_request
    def log_response_info(response):
        if hasattr(g, "request_start_time") and request.path not in QUIET_PATHS:
            duration_ms = (time.time() - g.request_start_time) * 1000
            logger = structlog.get_logger()
            log = logger.warning if response.status_code >= 500 else logger.info
            log(
                "request_completed",
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
                content_length=response.content_length,
            )

        response.headers["X-Request-ID"] = getattr(g, "request_id", "")
        return response

    return app
