"""Points quote endpoint."""

from flask import current_app, request
from flask_jwt_extended import jwt_required

from app.api import api_bp
from app.services import PointsCalculator
from app.services.points_calculator import ROLE_SUBMITTER
from app.utils import success_response, validation_error


@api_bp.route("/points/quote", methods=["GET"])
@jwt_required()
def quote_points():
    """Preview points (submitter) or earnings (collector) for a pickup.

    Query: category, weight, role
    """
    try:
        weight = float(request.args.get("weight", 0))
    except (ValueError, TypeError):
        return validation_error({"weight": "weight must be a number"})

    calculator = PointsCalculator.from_config(current_app.config)
    result = calculator.compute_points(
        request.args.get("category"),
        weight,
        request.args.get("role", ROLE_SUBMITTER),
    )
    return success_response(result.to_dict())
