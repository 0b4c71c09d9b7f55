"""Reward (coupon) model."""

from datetime import datetime
from enum import Enum

from app import db


class RewardKind(str, Enum):
    """Why a reward was issued."""

    LEVEL_UP = "level_up"
    FIRST_SUBMISSION = "first_submission"
    SPIN_PRIZE = "spin_prize"


class RewardStatus(str, Enum):
    """Derived reward status used for filtering."""

    ACTIVE = "active"
    EXPIRED = "expired"
    REDEEMED = "redeemed"


class Reward(db.Model):
    """Redeemable coupon issued to a user. Immutable apart from redemption."""

    __tablename__ = "rewards"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    kind = db.Column(db.String(30), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.String(500), nullable=True)
    coupon_code = db.Column(db.String(40), nullable=False, unique=True)
    discount = db.Column(db.String(100), nullable=True)  # e.g. "₹50 OFF", "5 Seeds"
    partner = db.Column(db.String(100), nullable=True)
    # Free-form context: {"level": 3} or {"prize_type": "seeds", "value": 5}
    meta = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)
    redeemed_at = db.Column(db.DateTime, nullable=True)

    def status_at(self, now: datetime | None = None) -> str:
        """Status at a point in time."""
        now = now or datetime.utcnow()
        if self.redeemed_at is not None:
            return RewardStatus.REDEEMED.value
        if self.expires_at <= now:
            return RewardStatus.EXPIRED.value
        return RewardStatus.ACTIVE.value

    @property
    def status(self) -> str:
        return self.status_at()

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "kind": self.kind,
            "title": self.title,
            "description": self.description,
            "coupon_code": self.coupon_code,
            "discount": self.discount,
            "partner": self.partner,
            "meta": self.meta,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "redeemed_at": self.redeemed_at.isoformat() if self.redeemed_at else None,
        }

    def __repr__(self) -> str:
        return f"<Reward {self.coupon_code} kind={self.kind}>"
