"""Progress ledger and waste transaction models."""

from datetime import datetime

from app import db


class UserProgress(db.Model):
    """Mutable per-user points aggregate.

    `current_level` is always derived from `total_points`, and
    `total_points` must equal the sum of the user's waste transactions.
    """

    __tablename__ = "user_progress"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    total_points = db.Column(db.Integer, default=0, nullable=False)
    current_level = db.Column(db.Integer, default=1, nullable=False)
    total_submissions = db.Column(db.Integer, default=0, nullable=False)

    # Weight (kg) collected since the last spin claim
    cycle_progress = db.Column(db.Float, default=0.0, nullable=False)
    wheel_spun_this_cycle = db.Column(db.Boolean, default=False, nullable=False)
    first_pickup_coupon_used = db.Column(db.Boolean, default=False, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    @property
    def can_spin(self) -> bool:
        """Wheel is spinnable after at least one submission and no claim this cycle."""
        return (self.total_submissions or 0) > 0 and not self.wheel_spun_this_cycle

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "user_id": self.user_id,
            "total_points": self.total_points,
            "current_level": self.current_level,
            "total_submissions": self.total_submissions,
            "cycle_progress": round(self.cycle_progress or 0.0, 3),
            "wheel_spun_this_cycle": self.wheel_spun_this_cycle,
            "first_pickup_coupon_used": self.first_pickup_coupon_used,
            "can_spin": self.can_spin,
        }

    def __repr__(self) -> str:
        return f"<UserProgress user={self.user_id} points={self.total_points}>"


class WasteTransaction(db.Model):
    """Append-only record of points awarded for one pickup."""

    __tablename__ = "waste_transactions"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Idempotency key: one transaction per pickup
    pickup_id = db.Column(db.String(64), nullable=False, unique=True)
    category = db.Column(db.String(50), nullable=False)
    weight_kg = db.Column(db.Float, nullable=False)
    points_awarded = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "pickup_id": self.pickup_id,
            "category": self.category,
            "weight_kg": self.weight_kg,
            "points_awarded": self.points_awarded,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<WasteTransaction pickup={self.pickup_id} points={self.points_awarded}>"
