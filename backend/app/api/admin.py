"""Admin API endpoints."""

import logging

from app.api import api_bp
from app.services import ProgressLedger
from app.utils import success_response
from app.utils.auth import admin_required

logger = logging.getLogger(__name__)


@api_bp.route("/admin/progress/<int:user_id>", methods=["GET"])
@admin_required
def admin_get_progress(user_id: int):
    """Inspect a user's ledger next to the transaction total."""
    ledger = ProgressLedger()
    snapshot = ledger.get_snapshot(user_id)
    snapshot["ledger_points"] = ledger.ledger_points(user_id)
    return success_response(snapshot)


@api_bp.route("/admin/progress/<int:user_id>/reconcile", methods=["POST"])
@admin_required
def admin_reconcile_progress(user_id: int):
    """Recompute a user's points and level from their transactions."""
    ledger = ProgressLedger()
    report = ledger.reconcile(user_id)
    logger.info(f"Admin reconcile for user {user_id}: {report}")
    return success_response(report)
