"""Utility functions."""

from app.utils.response import (
    error_response,
    forbidden,
    rewards_error_response,
    success_response,
    unauthorized,
    validation_error,
)

__all__ = [
    "success_response",
    "error_response",
    "unauthorized",
    "forbidden",
    "validation_error",
    "rewards_error_response",
]
