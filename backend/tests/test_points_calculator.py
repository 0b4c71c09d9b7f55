"""Tests for points and earnings calculation."""

import pytest

from app.config import DEFAULT_CATEGORY_RATES
from app.services.exceptions import ValidationError
from app.services.points_calculator import (
    ROLE_COLLECTOR,
    ROLE_SUBMITTER,
    PointsCalculator,
    PointsPolicy,
    normalize_category,
)

WEIGHTS = [0, 0.1, 0.5, 1, 1.7, 2, 3, 10, 250]
CATEGORIES = list(DEFAULT_CATEGORY_RATES) + ["unknown", None, ""]


class TestSubmitterPoints:
    """Points for the user who hands over the waste."""

    def test_bottles_three_kg_is_capped(self):
        """10 + 25 * 3 = 85 is capped at 50."""
        result = PointsCalculator().compute_points("bottles", 3, ROLE_SUBMITTER)
        assert result.points == 50
        assert result.earnings == 0

    def test_mixed_one_kg(self):
        """10 + 10 * 1 = 20."""
        assert PointsCalculator().compute_points("mixed", 1).points == 20

    def test_result_is_floored(self):
        """10 + 12 * 0.5 = 16; 10 + 8 * 0.3 = 12.4 -> 12."""
        calc = PointsCalculator()
        assert calc.compute_points("paper", 0.5).points == 16
        assert calc.compute_points("organic", 0.3).points == 12

    def test_points_within_bounds(self):
        """Every category/weight combination stays within [10, 50]."""
        calc = PointsCalculator()
        for category in CATEGORIES:
            for weight in WEIGHTS:
                points = calc.compute_points(category, weight).points
                assert 10 <= points <= 50, (category, weight, points)

    @pytest.mark.parametrize("weight", [0, -1, -100, None])
    def test_non_positive_weight_yields_base(self, weight):
        """Zero or negative weight is never below the base value."""
        assert PointsCalculator().compute_points("bottles", weight).points == 10

    @pytest.mark.parametrize("weight", [float("nan"), float("inf"), float("-inf"), "nan"])
    def test_non_finite_weight_rejected(self, weight):
        with pytest.raises(ValidationError):
            PointsCalculator().compute_points("bottles", weight)

    def test_huge_weight_is_capped(self):
        calc = PointsCalculator()
        assert calc.compute_points("bottles", 1e308).points == 50
        assert calc.compute_points("mixed", 1e308, ROLE_COLLECTOR).earnings == 40

    def test_unknown_category_uses_default_rate(self):
        """Unknown categories fall back to the default rate."""
        calc = PointsCalculator()
        assert calc.rate_for("mystery-waste") == calc.policy.default_rate
        assert (
            calc.compute_points("mystery", 2).points
            == calc.compute_points("mixed", 2).points
        )

    def test_higher_value_recyclables_earn_more(self):
        """Bottles earn more per kg than generic waste."""
        calc = PointsCalculator()
        assert calc.rate_for("bottles") > calc.rate_for("mixed")
        assert calc.compute_points("bottles", 1).points > calc.compute_points(
            "mixed", 1
        ).points

    def test_deterministic(self):
        """Same input always gives the same output."""
        calc = PointsCalculator()
        assert calc.compute_points("glass", 1.3) == calc.compute_points("glass", 1.3)


class TestCollectorEarnings:
    """Earnings for the delivery agent who collects the waste."""

    def test_earnings_mode_has_no_points(self):
        result = PointsCalculator().compute_points("plastic", 2, ROLE_COLLECTOR)
        assert result.points == 0
        assert result.earnings == 20  # 10 + 5 * 2

    def test_earnings_within_bounds(self):
        """Earnings stay within [10, 40]."""
        calc = PointsCalculator()
        for weight in WEIGHTS:
            earnings = calc.compute_points("mixed", weight, ROLE_COLLECTOR).earnings
            assert 10 <= earnings <= 40

    def test_earnings_capped(self):
        assert (
            PointsCalculator().compute_points("mixed", 100, ROLE_COLLECTOR).earnings
            == 40
        )

    def test_unknown_role_rejected(self):
        with pytest.raises(ValidationError):
            PointsCalculator().compute_points("mixed", 1, "driver")


class TestPolicyConfiguration:
    """Rates come from configuration, not hard-coded switches."""

    def test_policy_from_config(self):
        """Config overrides rates and caps; keys are normalized."""
        calc = PointsCalculator.from_config(
            {
                "POINTS_CATEGORY_RATES": {"E-Waste": 40},
                "POINTS_DEFAULT_RATE": 1,
                "POINTS_MAX": 100,
            }
        )
        assert calc.compute_points("e_waste", 2).points == 90
        assert calc.compute_points("bottles", 2).points == 12

    def test_custom_policy(self):
        calc = PointsCalculator(PointsPolicy(category_rates={"mixed": 0}))
        assert calc.compute_points("mixed", 5).points == 10

    def test_app_config_policy(self, app):
        """The app exposes the default table through its config."""
        calc = PointsCalculator.from_config(app.config)
        assert calc.rate_for("bottles") == 25

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Bottles", "bottles"),
            (" E-Waste ", "e_waste"),
            ("mixed waste", "mixed_waste"),
            (None, "mixed"),
            ("   ", "mixed"),
        ],
    )
    def test_normalize_category(self, raw, expected):
        assert normalize_category(raw) == expected
