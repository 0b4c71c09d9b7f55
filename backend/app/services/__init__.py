"""Business logic services."""

from app.services.level_resolver import resolve_level
from app.services.points_calculator import PointsCalculator
from app.services.progress_ledger import ProgressLedger
from app.services.reward_issuer import RewardIssuer
from app.services.spin_wheel import SpinWheel

__all__ = [
    "PointsCalculator",
    "resolve_level",
    "ProgressLedger",
    "RewardIssuer",
    "SpinWheel",
]
