"""API response envelope helpers."""

from typing import Any
from flask import jsonify


def success_response(
    data: Any = None, message: str | None = None, status_code: int = 200
):
    """Create a success response."""
    response = {"success": True}

    if data is not None:
        response["data"] = data

    if message is not None:
        response["message"] = message

    return jsonify(response), status_code


def error_response(
    code: str, message: str, details: dict | None = None, status_code: int = 400
):
    """Create an error response."""
    response = {"success": False, "error": {"code": code, "message": message}}

    if details:
        response["error"]["details"] = details

    return jsonify(response), status_code


def unauthorized(message: str = "Unauthorized"):
    """401 Unauthorized response."""
    return error_response("UNAUTHORIZED", message, status_code=401)


def forbidden(message: str = "Access denied"):
    """403 Forbidden response."""
    return error_response("FORBIDDEN", message, status_code=403)


def validation_error(details: dict):
    """400 Validation Error response for malformed request input."""
    return error_response(
        "VALIDATION_ERROR", "Invalid input data", details, status_code=400
    )


def rewards_error_response(exc):
    """Map a service error (RewardsError subclass) onto the envelope."""
    return error_response(
        exc.code, exc.message, exc.details, status_code=exc.status_code
    )
