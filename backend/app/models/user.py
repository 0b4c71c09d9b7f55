"""User model."""

from datetime import datetime
from enum import Enum

from app import db


class UserRole(str, Enum):
    """User role enum."""

    USER = "user"
    DELIVERY = "delivery"
    ADMIN = "admin"


class User(db.Model):
    """Account owned by the auth service. Only the fields the engine reads."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=True)
    email = db.Column(db.String(255), unique=True, nullable=True, index=True)
    role = db.Column(db.String(20), default=UserRole.USER.value, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    # Relationships
    progress = db.relationship(
        "UserProgress",
        backref="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    transactions = db.relationship(
        "WasteTransaction", backref="user", lazy="dynamic", cascade="all, delete-orphan"
    )
    rewards = db.relationship(
        "Reward", backref="user", lazy="dynamic", cascade="all, delete-orphan"
    )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<User {self.id}>"
