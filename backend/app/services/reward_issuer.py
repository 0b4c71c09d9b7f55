"""Reward (coupon) issuance, listing and redemption."""

import base64
import logging
import secrets
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy import update

from app import db
from app.models.reward import Reward, RewardKind, RewardStatus
from app.services.exceptions import (
    ConflictError,
    NotEligible,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

PARTNER_NAME = "Clean Green App"

CODE_PREFIXES = {
    RewardKind.LEVEL_UP.value: "LVL",
    RewardKind.FIRST_SUBMISSION.value: "FIRST",
    RewardKind.SPIN_PRIZE.value: "SPIN",
}

MAX_CODE_ATTEMPTS = 5
MAX_PAGE_SIZE = 100


def generate_coupon_code(prefix: str, length: int = 10) -> str:
    """Random base32 token with a readable prefix, e.g. FIRST-K3J9QX2M7A."""
    token = base64.b32encode(secrets.token_bytes(10)).decode("ascii")
    return f"{prefix}-{token[:length]}"


class RewardIssuer:
    """Creates and manages reward records.

    Issuing adds and flushes the reward inside the caller's transaction.
    The caller commits or rolls back, so a reward can never outlive a
    rolled-back ledger update.
    """

    def __init__(self, config=None):
        config = config if config is not None else current_app.config
        self.expiry_days = config.get("REWARD_EXPIRY_DAYS", 30)
        self.currency = config.get("CURRENCY_SYMBOL", "₹")
        self.first_submission_discount = config.get("FIRST_SUBMISSION_DISCOUNT", 50)
        self.level_discount_step = config.get("LEVEL_UP_DISCOUNT_PER_LEVEL", 10)

    # ============ Issuance ============

    def issue_reward(self, user_id: int, kind: str, context: dict | None = None) -> Reward:
        """Create a reward of the given kind for a user."""
        context = context or {}
        kind = kind.value if isinstance(kind, RewardKind) else kind

        if kind == RewardKind.LEVEL_UP.value:
            fields = self._level_up_fields(context)
        elif kind == RewardKind.FIRST_SUBMISSION.value:
            fields = self._first_submission_fields()
        elif kind == RewardKind.SPIN_PRIZE.value:
            fields = self._spin_prize_fields(context)
        else:
            raise ValidationError("Unknown reward kind", {"kind": str(kind)})

        now = datetime.utcnow()
        reward = Reward(
            user_id=user_id,
            kind=kind,
            coupon_code=self._unique_code(fields.pop("code_prefix")),
            partner=PARTNER_NAME,
            created_at=now,
            expires_at=now + timedelta(days=self.expiry_days),
            **fields,
        )
        db.session.add(reward)
        db.session.flush()

        logger.info(
            f"Issued {kind} reward {reward.coupon_code} to user {user_id}"
        )
        return reward

    def _level_up_fields(self, context: dict) -> dict:
        level = int(context.get("level", 0))
        if level < 2:
            raise ValidationError("Level-up reward needs a level", {"level": level})
        amount = level * self.level_discount_step
        return {
            "code_prefix": f"{CODE_PREFIXES[RewardKind.LEVEL_UP.value]}{level}",
            "title": f"Level {level} Achievement",
            "description": f"Congratulations! You've reached Level {level}!",
            "discount": f"{self.currency}{amount} OFF",
            "meta": {"level": level, "amount": amount},
        }

    def _first_submission_fields(self) -> dict:
        amount = self.first_submission_discount
        return {
            "code_prefix": CODE_PREFIXES[RewardKind.FIRST_SUBMISSION.value],
            "title": "First-Time Pickup Coupon",
            "description": "Congratulations on your first waste submission!",
            "discount": f"{self.currency}{amount} OFF",
            "meta": {"amount": amount},
        }

    def _spin_prize_fields(self, context: dict) -> dict:
        for key in ("title", "description", "discount"):
            if not context.get(key):
                raise ValidationError("Spin prize is incomplete", {key: "required"})
        return {
            "code_prefix": CODE_PREFIXES[RewardKind.SPIN_PRIZE.value],
            "title": context["title"],
            "description": context["description"],
            "discount": context["discount"],
            "meta": {
                "prize_type": context.get("prize_type"),
                "value": context.get("value"),
            },
        }

    def _unique_code(self, prefix: str) -> str:
        """Generate a code not yet in use. The unique index is the final guard."""
        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_coupon_code(prefix)
            exists = (
                db.session.query(Reward.id).filter_by(coupon_code=code).first()
            )
            if not exists:
                return code
        raise ConflictError("Could not generate a unique coupon code")

    # ============ Queries ============

    def list_rewards(
        self, user_id: int, status: str = "all", page: int = 1, limit: int = 20
    ) -> dict:
        """Paginated rewards for a user, newest first."""
        allowed = {s.value for s in RewardStatus} | {"all"}
        if status not in allowed:
            raise ValidationError(
                "Invalid status", {"status": f"Must be one of {sorted(allowed)}"}
            )
        page = max(1, int(page))
        limit = max(1, min(MAX_PAGE_SIZE, int(limit)))

        now = datetime.utcnow()
        query = Reward.query.filter(Reward.user_id == user_id)
        if status == RewardStatus.REDEEMED.value:
            query = query.filter(Reward.redeemed_at.isnot(None))
        elif status == RewardStatus.ACTIVE.value:
            query = query.filter(Reward.redeemed_at.is_(None), Reward.expires_at > now)
        elif status == RewardStatus.EXPIRED.value:
            query = query.filter(Reward.redeemed_at.is_(None), Reward.expires_at <= now)

        total = query.count()
        rewards = (
            query.order_by(Reward.created_at.desc(), Reward.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return {
            "rewards": [r.to_dict() for r in rewards],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": (total + limit - 1) // limit,
            },
        }

    def reward_stats(self, user_id: int) -> dict:
        """Counts of a user's rewards by status and by kind."""
        now = datetime.utcnow()
        by_status = {s.value: 0 for s in RewardStatus}
        by_kind = {k.value: 0 for k in RewardKind}
        for reward in Reward.query.filter_by(user_id=user_id).all():
            by_status[reward.status_at(now)] += 1
            by_kind[reward.kind] = by_kind.get(reward.kind, 0) + 1
        return {
            "total": sum(by_status.values()),
            "by_status": by_status,
            "by_kind": by_kind,
        }

    # ============ Redemption ============

    def redeem_reward(self, user_id: int, reward_id: int) -> Reward:
        """Mark an active reward as redeemed. Safe against double redemption."""
        reward = Reward.query.filter_by(id=reward_id, user_id=user_id).first()
        if not reward:
            raise NotFoundError("Reward not found")

        now = datetime.utcnow()
        status = reward.status_at(now)
        if status == RewardStatus.REDEEMED.value:
            raise ConflictError("Reward already redeemed")
        if status == RewardStatus.EXPIRED.value:
            raise NotEligible("Reward has expired")

        result = db.session.execute(
            update(Reward)
            .where(
                Reward.id == reward.id,
                Reward.redeemed_at.is_(None),
                Reward.expires_at > now,
            )
            .values(redeemed_at=now)
        )
        if result.rowcount != 1:
            db.session.rollback()
            raise ConflictError("Reward already redeemed")

        db.session.commit()
        db.session.refresh(reward)
        logger.info(f"User {user_id} redeemed reward {reward.coupon_code}")
        return reward
