"""Database models."""

from app.models.progress import UserProgress, WasteTransaction
from app.models.reward import Reward, RewardKind, RewardStatus
from app.models.user import User, UserRole

__all__ = [
    "User",
    "UserRole",
    "UserProgress",
    "WasteTransaction",
    "Reward",
    "RewardKind",
    "RewardStatus",
]
