"""Authentication utilities."""

import os
from functools import wraps

from flask import current_app
from flask_jwt_extended import get_jwt_identity, jwt_required

from app import db
from app.models.user import User, UserRole
from app.utils.response import forbidden, unauthorized


def current_user_id() -> int:
    """User id from the verified JWT identity."""
    return int(get_jwt_identity())


def get_admin_ids() -> list[int]:
    """Get admin user IDs from app config or environment."""
    if current_app and current_app.config.get("ADMIN_USER_IDS"):
        return current_app.config["ADMIN_USER_IDS"]
    admin_ids_str = os.environ.get("ADMIN_USER_IDS", "")
    if admin_ids_str:
        return [int(x.strip()) for x in admin_ids_str.split(",") if x.strip()]
    return []


def admin_required(fn):
    """
    Decorator that requires the user to be an admin.

    Must be used instead of @jwt_required().
    """

    @wraps(fn)
    @jwt_required()
    def wrapper(*args, **kwargs):
        user_id = current_user_id()
        user = db.session.get(User, user_id)

        if not user:
            return unauthorized("User not found")

        if user.role != UserRole.ADMIN.value and user_id not in get_admin_ids():
            return forbidden("Admin access required")

        return fn(*args, **kwargs)

    return wrapper
