"""Spin-wheel prize resolution and claiming."""

import logging
import random
import threading
from dataclasses import dataclass

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.models.progress import UserProgress
from app.models.reward import Reward, RewardKind
from app.models.user import User
from app.services import events
from app.services.exceptions import (
    NotEligible,
    NotFoundError,
    PersistenceError,
    RewardsError,
    ValidationError,
)
from app.services.reward_issuer import RewardIssuer

logger = logging.getLogger(__name__)

PRIZE_TYPES = ("plant", "seeds", "vermicompost", "cashback", "coupon", "gift")

# Wheel segments: {type, value, weight}. Weight is the relative draw chance.
PRIZE_TABLE = (
    {"type": "coupon", "value": 20, "weight": 25},
    {"type": "coupon", "value": 50, "weight": 10},
    {"type": "cashback", "value": 10, "weight": 20},
    {"type": "seeds", "value": 5, "weight": 20},
    {"type": "vermicompost", "value": 1, "weight": 10},
    {"type": "plant", "value": 1, "weight": 10},
    {"type": "gift", "value": 1, "weight": 5},
)


_rng_lock = threading.Lock()
_seeded_rngs: dict[int, random.Random] = {}
_system_rng = random.SystemRandom()


def shared_rng(seed: int | None = None) -> random.Random:
    """Process-wide draw source.

    A seeded generator is created once per seed and advances across claims.
    Without a seed the OS source is used.
    """
    if seed is None:
        return _system_rng
    with _rng_lock:
        rng = _seeded_rngs.get(seed)
        if rng is None:
            rng = _seeded_rngs[seed] = random.Random(seed)
        return rng


def reset_shared_rngs() -> None:
    """Forget seeded generators so the next claim restarts the sequence."""
    with _rng_lock:
        _seeded_rngs.clear()


@dataclass(frozen=True)
class Prize:
    type: str
    value: int

    def to_dict(self) -> dict:
        return {"type": self.type, "value": self.value}


def describe_prize(prize: Prize, currency: str = "₹") -> dict:
    """Human-readable title, description and discount for a prize."""
    value = prize.value
    if prize.type == "plant":
        title, won = "Plant", "1 Plant"
    elif prize.type == "seeds":
        title, won = "Seeds", f"{value} Seeds"
    elif prize.type == "vermicompost":
        title, won = "Vermicompost", f"{value} Vermicompost"
    elif prize.type == "cashback":
        title = won = f"{currency}{value} Cashback"
    elif prize.type == "coupon":
        title = won = f"{currency}{value} Coupon"
    elif prize.type == "gift":
        title, won = "Gift", "1 Gift"
    else:
        raise ValidationError("Unknown prize type", {"type": prize.type})

    # Coupons read as a discount, everything else as the item won
    discount = f"{currency}{value} OFF" if prize.type == "coupon" else won
    return {
        "title": f"Spin Win: {title}",
        "description": f"You won: {won}",
        "discount": discount,
    }


def parse_declared_prize(data: dict | None) -> Prize | None:
    """Validate a client-declared prize. Returns None when nothing was declared."""
    if not data or (data.get("type") is None and data.get("value") is None):
        return None

    errors = {}
    prize_type = data.get("type")
    if not isinstance(prize_type, str) or prize_type.strip().lower() not in PRIZE_TYPES:
        errors["type"] = f"type must be one of {', '.join(PRIZE_TYPES)}"

    value = data.get("value", 1)
    try:
        if isinstance(value, bool):
            raise ValueError()
        value = int(value)
        if value <= 0:
            raise ValueError()
    except (ValueError, TypeError):
        errors["value"] = "value must be a positive integer"

    if errors:
        raise ValidationError("Invalid prize", errors)

    return Prize(type=prize_type.strip().lower(), value=value)


@dataclass
class SpinResult:
    reward: Reward
    prize: Prize

    def to_dict(self) -> dict:
        return {"reward": self.reward.to_dict(), "prize": self.prize.to_dict()}


class SpinWheel:
    """Validates spin eligibility, draws a prize and records the reward."""

    def __init__(
        self,
        issuer: RewardIssuer | None = None,
        rng: random.Random | None = None,
        server_side: bool | None = None,
    ):
        config = current_app.config
        self.issuer = issuer or RewardIssuer()
        self.rng = rng if rng is not None else shared_rng(config.get("SPIN_RNG_SEED"))
        self.server_side = (
            config.get("SPIN_SERVER_SIDE_SELECTION", True)
            if server_side is None
            else server_side
        )
        self.currency = config.get("CURRENCY_SYMBOL", "₹")

    def draw_prize(self) -> Prize:
        """Weighted random draw over the prize table."""
        weights = [entry["weight"] for entry in PRIZE_TABLE]
        entry = self.rng.choices(PRIZE_TABLE, weights=weights, k=1)[0]
        return Prize(type=entry["type"], value=entry["value"])

    def select_prize(self, declared: Prize | None) -> Prize:
        """Pick the prize to award.

        Server-side mode ignores the declared outcome. Legacy mode requires a
        declared prize that matches a wheel segment.
        """
        if self.server_side:
            return self.draw_prize()

        if declared is None:
            raise ValidationError("Prize is required", {"type": "type is required"})
        allowed = {(e["type"], e["value"]) for e in PRIZE_TABLE}
        if (declared.type, declared.value) not in allowed:
            raise ValidationError(
                "Prize is not on the wheel",
                {"value": f"{declared.value} is not a valid {declared.type} prize"},
            )
        return declared

    def claim_spin(self, user_id: int, declared_prize: dict | None = None) -> SpinResult:
        """Claim the spin for the current cycle.

        The Spinnable -> Locked transition is a single conditional UPDATE, so
        of two concurrent claims exactly one wins and issues a reward.
        """
        declared = parse_declared_prize(declared_prize)

        if not db.session.get(User, user_id):
            raise NotFoundError("User not found")

        prize = self.select_prize(declared)
        details = describe_prize(prize, self.currency)

        try:
            result = db.session.execute(
                update(UserProgress)
                .where(
                    UserProgress.user_id == user_id,
                    UserProgress.wheel_spun_this_cycle.is_(False),
                    UserProgress.total_submissions > 0,
                )
                .values(wheel_spun_this_cycle=True, cycle_progress=0.0)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                db.session.rollback()
                raise NotEligible(
                    "Wheel already spun this cycle or no waste submitted yet"
                )

            reward = self.issuer.issue_reward(
                user_id,
                RewardKind.SPIN_PRIZE,
                {**details, "prize_type": prize.type, "value": prize.value},
            )
            db.session.commit()
        except RewardsError:
            db.session.rollback()
            raise
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.exception(f"Failed to record spin for user {user_id}")
            raise PersistenceError() from e

        logger.info(
            f"User {user_id} claimed spin: {prize.type} x{prize.value} "
            f"({reward.coupon_code})"
        )

        reward_data = reward.to_dict()
        events.emit(events.SPIN_CLAIMED, user_id=user_id, prize=prize.to_dict())
        events.emit(events.REWARD_ISSUED, user_id=user_id, reward=reward_data)

        return SpinResult(reward=reward, prize=prize)
