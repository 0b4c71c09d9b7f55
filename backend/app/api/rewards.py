"""Rewards API endpoints."""

from flask import request
from flask_jwt_extended import jwt_required

from app.api import api_bp
from app.services import RewardIssuer
from app.utils import success_response, validation_error
from app.utils.auth import current_user_id


@api_bp.route("/rewards", methods=["GET"])
@jwt_required()
def list_rewards():
    """List the user's rewards. Query: page, limit, status (active|expired|redeemed|all)."""
    try:
        page = int(request.args.get("page", 1))
        limit = int(request.args.get("limit", 20))
    except (ValueError, TypeError):
        return validation_error({"page": "page and limit must be integers"})

    status = request.args.get("status", "all")
    issuer = RewardIssuer()
    return success_response(
        issuer.list_rewards(current_user_id(), status=status, page=page, limit=limit)
    )


@api_bp.route("/rewards/stats", methods=["GET"])
@jwt_required()
def get_reward_stats():
    """Reward counts by status and kind."""
    issuer = RewardIssuer()
    return success_response(issuer.reward_stats(current_user_id()))


@api_bp.route("/rewards/<int:reward_id>/redeem", methods=["PUT"])
@jwt_required()
def redeem_reward(reward_id: int):
    """Redeem an active reward."""
    issuer = RewardIssuer()
    reward = issuer.redeem_reward(current_user_id(), reward_id)
    return success_response({"reward": reward.to_dict()}, message="Reward redeemed")
