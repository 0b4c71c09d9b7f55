"""API blueprints."""

import logging

from flask import Blueprint

from app.services.exceptions import PersistenceError, RewardsError
from app.utils.response import rewards_error_response

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)


@api_bp.errorhandler(RewardsError)
def handle_rewards_error(error: RewardsError):
    """Turn service errors into the standard error envelope."""
    if isinstance(error, PersistenceError):
        # Details stay in the logs
        logger.error(f"Persistence failure: {error.message}")
        return rewards_error_response(PersistenceError())
    return rewards_error_response(error)


from app.api import admin, points, progress, rewards  # noqa: E402, F401
