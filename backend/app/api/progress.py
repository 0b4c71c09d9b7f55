"""Progress API endpoints: waste submissions and spin-wheel claims."""

import logging

from flask import request
from flask_jwt_extended import jwt_required

from app.api import api_bp
from app.extensions import limiter
from app.services import ProgressLedger, SpinWheel
from app.utils import success_response, validation_error
from app.utils.auth import current_user_id

logger = logging.getLogger(__name__)


def _progress_payload(snapshot: dict) -> dict:
    """Client-facing (camelCase) view of a ledger snapshot."""
    return {
        "totalWaste": snapshot["total_waste"],
        "totalPoints": snapshot["total_points"],
        "currentLevel": snapshot["current_level"],
        "cycleProgress": snapshot["cycle_progress"],
        "wheelSpunThisCycle": snapshot["wheel_spun_this_cycle"],
        "canSpin": snapshot["can_spin"],
        "wasteTypes": snapshot["waste_types"],
        "totalSubmissions": snapshot["total_submissions"],
        "nextLevelPoints": snapshot["next_level_points"],
        "levelProgressPercent": snapshot["level_progress_percent"],
    }


@api_bp.route("/progress/update", methods=["POST"])
@jwt_required()
def update_progress():
    """
    Record a completed pickup and award points.

    Request body:
    {
        "pickupId": "p-123",
        "weight": 2.5,          // kg
        "category": "bottles"   // optional, defaults to mixed
    }
    """
    data = request.get_json(silent=True)
    if not data:
        return validation_error({"body": "Request body is required"})

    # Older clients wrap the payload in "post"
    if isinstance(data.get("post"), dict):
        data = data["post"]

    ledger = ProgressLedger()
    result = ledger.apply_submission(
        current_user_id(),
        pickup_id=data.get("pickupId", data.get("pickup_id")),
        category=data.get("category"),
        weight_kg=data.get("weight"),
    )

    payload = _progress_payload(result)
    payload.update(
        {
            "earnedPoints": result["earned_points"],
            "levelUp": result["level_up"],
            "rewards": result["rewards"],
            "duplicate": result["duplicate"],
        }
    )
    message = "Pickup already recorded" if result["duplicate"] else "Progress updated"
    return success_response(payload, message=message)


@api_bp.route("/progress", methods=["GET"])
@jwt_required()
def get_progress():
    """Get the user's progress and spin eligibility."""
    ledger = ProgressLedger()
    snapshot = ledger.get_snapshot(current_user_id())
    return success_response(_progress_payload(snapshot))


@api_bp.route("/progress/wheel-reward", methods=["POST"])
@jwt_required()
@limiter.limit("10 per minute")
def claim_wheel_reward():
    """
    Claim the spin-wheel prize for the current cycle.

    Request body (optional; the server draws the prize):
    {
        "type": "seeds",
        "value": 5
    }
    """
    data = request.get_json(silent=True) or {}
    if isinstance(data.get("result"), dict):
        data = data["result"]

    wheel = SpinWheel()
    result = wheel.claim_spin(current_user_id(), data)
    return success_response(result.to_dict(), status_code=201)
