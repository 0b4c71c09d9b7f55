"""Points and earnings calculation for waste pickups."""

import math
from dataclasses import dataclass, field

from app.config import DEFAULT_CATEGORY_RATES
from app.services.exceptions import ValidationError

ROLE_SUBMITTER = "submitter"
ROLE_COLLECTOR = "collector"

DEFAULT_CATEGORY = "mixed"


def normalize_category(category: str | None) -> str:
    """Normalize a category name: 'E-Waste ' -> 'e_waste'."""
    if not category or not str(category).strip():
        return DEFAULT_CATEGORY
    return str(category).strip().lower().replace("-", "_").replace(" ", "_")


@dataclass(frozen=True)
class PointsPolicy:
    """Tunable points/earnings policy."""

    category_rates: dict = field(default_factory=lambda: dict(DEFAULT_CATEGORY_RATES))
    default_rate: float = 10
    base_points: int = 10
    max_points: int = 50
    base_earnings: int = 10
    earnings_per_kg: float = 5
    max_earnings: int = 40

    @classmethod
    def from_config(cls, config) -> "PointsPolicy":
        """Build the policy from a Flask config mapping."""
        rates = config.get("POINTS_CATEGORY_RATES") or DEFAULT_CATEGORY_RATES
        return cls(
            category_rates={normalize_category(k): v for k, v in rates.items()},
            default_rate=config.get("POINTS_DEFAULT_RATE", 10),
            base_points=config.get("POINTS_BASE", 10),
            max_points=config.get("POINTS_MAX", 50),
            base_earnings=config.get("COLLECTOR_BASE_EARNINGS", 10),
            earnings_per_kg=config.get("COLLECTOR_EARNINGS_PER_KG", 5),
            max_earnings=config.get("COLLECTOR_MAX_EARNINGS", 40),
        )


@dataclass(frozen=True)
class PointsResult:
    points: int
    earnings: int

    def to_dict(self) -> dict:
        return {"points": self.points, "earnings": self.earnings}


class PointsCalculator:
    """Maps (category, weight, role) to points or collector earnings."""

    def __init__(self, policy: PointsPolicy | None = None):
        self.policy = policy or PointsPolicy()

    @classmethod
    def from_config(cls, config) -> "PointsCalculator":
        return cls(PointsPolicy.from_config(config))

    def rate_for(self, category: str | None) -> float:
        """Per-kg rate for a category. Unknown categories use the default rate."""
        return self.policy.category_rates.get(
            normalize_category(category), self.policy.default_rate
        )

    def compute_points(
        self, category: str | None, weight_kg: float, role: str = ROLE_SUBMITTER
    ) -> PointsResult:
        """
        Compute points (submitter) or earnings (collector) for a pickup.

        Results are clamped to the policy range, so a non-positive weight
        yields the base value and never anything lower. Non-finite weights
        raise ValidationError.
        """
        weight = float(weight_kg or 0)
        if not math.isfinite(weight):
            raise ValidationError(
                "Invalid weight", {"weight": "weight must be a finite number"}
            )
        if weight < 0:
            weight = 0.0

        if role == ROLE_SUBMITTER:
            raw = self.policy.base_points + self.rate_for(category) * weight
            points = self._clamp(raw, self.policy.base_points, self.policy.max_points)
            return PointsResult(points=points, earnings=0)

        if role == ROLE_COLLECTOR:
            raw = self.policy.base_earnings + self.policy.earnings_per_kg * weight
            earnings = self._clamp(
                raw, self.policy.base_earnings, self.policy.max_earnings
            )
            return PointsResult(points=0, earnings=earnings)

        raise ValidationError(
            "Unknown role", {"role": f"Must be '{ROLE_SUBMITTER}' or '{ROLE_COLLECTOR}'"}
        )

    @staticmethod
    def _clamp(raw: float, low: int, high: int) -> int:
        """Floor into [low, high]. Clamping first keeps huge weights finite."""
        return int(math.floor(max(low, min(high, raw))))
