"""Flask application factory."""

import os

from flask import Flask
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

from app.config import config

db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()


def create_app(config_name: str | None = None) -> Flask:
    """Create and configure the Flask application."""
    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    # Logging and error tracking
    from app.extensions import init_sentry, limiter
    from app.logging_config import setup_logging

    setup_logging(app)
    init_sentry(app)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)

    # CORS
    CORS(app, origins=app.config["CORS_ORIGINS"], supports_credentials=True)

    # Celery tasks run inside this app's context
    from app.celery_app import init_celery

    init_celery(app)

    # Domain event subscribers
    from app.services.events import register_default_subscribers

    register_default_subscribers(app)

    # Register blueprints
    from app.api import api_bp

    app.register_blueprint(api_bp, url_prefix="/api/v1")

    # CLI commands
    from app.cli import reconcile_progress_command

    app.cli.add_command(reconcile_progress_command)

    # Health check endpoint
    @app.route("/health")
    def health():
        return {"status": "ok"}

    # Shell context
    @app.shell_context_processor
    def make_shell_context():
        from app.models import Reward, User, UserProgress, WasteTransaction

        return {
            "db": db,
            "User": User,
            "UserProgress": UserProgress,
            "WasteTransaction": WasteTransaction,
            "Reward": Reward,
        }

    return app
