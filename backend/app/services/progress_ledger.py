"""Progress ledger: turns completed pickups into points, levels and rewards."""

import logging
import math

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from app import db
from app.models.progress import UserProgress, WasteTransaction
from app.models.reward import RewardKind
from app.models.user import User
from app.services import events
from app.services.exceptions import (
    ConflictError,
    NotFoundError,
    PersistenceError,
    RewardsError,
    ValidationError,
)
from app.services.level_resolver import level_progress, resolve_level
from app.services.points_calculator import (
    ROLE_SUBMITTER,
    PointsCalculator,
    normalize_category,
)
from app.services.reward_issuer import RewardIssuer

logger = logging.getLogger(__name__)

MAX_PICKUP_ID_LENGTH = 64
MAX_CATEGORY_LENGTH = 50


def validate_submission(pickup_id, category, weight_kg) -> tuple[str, str, float]:
    """Validate and normalize submission input.

    Returns (pickup_id, category, weight_kg). Raises ValidationError with
    per-field details.
    """
    errors = {}

    pickup = str(pickup_id).strip() if pickup_id is not None else ""
    if not pickup:
        errors["pickupId"] = "pickupId is required"
    elif len(pickup) > MAX_PICKUP_ID_LENGTH:
        errors["pickupId"] = f"pickupId must be at most {MAX_PICKUP_ID_LENGTH} characters"

    weight = None
    if weight_kg is None or isinstance(weight_kg, bool):
        errors["weight"] = "weight is required"
    else:
        try:
            weight = float(weight_kg)
            if not math.isfinite(weight) or weight <= 0:
                raise ValueError()
        except (ValueError, TypeError):
            errors["weight"] = "weight must be a positive number"

    if category is not None and not isinstance(category, str):
        errors["category"] = "category must be a string"
    elif category and len(category) > MAX_CATEGORY_LENGTH:
        errors["category"] = f"category must be at most {MAX_CATEGORY_LENGTH} characters"

    if errors:
        raise ValidationError("Invalid submission", errors)

    return pickup, normalize_category(category), weight


class ProgressLedger:
    """Owns per-user progress and keeps it consistent with the transactions."""

    def __init__(
        self,
        calculator: PointsCalculator | None = None,
        issuer: RewardIssuer | None = None,
    ):
        self.calculator = calculator or PointsCalculator.from_config(current_app.config)
        self.issuer = issuer or RewardIssuer()

    # ============ Submissions ============

    def apply_submission(
        self, user_id: int, pickup_id, category=None, weight_kg=None
    ) -> dict:
        """Record a completed pickup for a user.

        Ledger update, transaction append and reward issuance commit together.
        A pickup is processed at most once: replays return the current state
        with `duplicate=True`.
        """
        pickup_id, category, weight = validate_submission(pickup_id, category, weight_kg)

        if not db.session.get(User, user_id):
            raise NotFoundError("User not found")

        self.ensure_progress(user_id)

        try:
            progress = self._locked_progress(user_id)

            existing = self._find_transaction(pickup_id)
            if existing:
                db.session.rollback()
                return self._replay(user_id, existing)

            points = self.calculator.compute_points(category, weight, ROLE_SUBMITTER).points

            transaction = WasteTransaction(
                user_id=user_id,
                pickup_id=pickup_id,
                category=category,
                weight_kg=weight,
                points_awarded=points,
            )
            db.session.add(transaction)
            db.session.flush()

            progress.total_points = (progress.total_points or 0) + points
            progress.cycle_progress = (progress.cycle_progress or 0.0) + weight
            progress.total_submissions = (progress.total_submissions or 0) + 1

            old_level = progress.current_level or 1
            new_level = resolve_level(progress.total_points)
            progress.current_level = new_level

            issued = []
            level_up = None
            if new_level > old_level:
                # One coupon for the final level, even across several thresholds
                reward = self.issuer.issue_reward(
                    user_id, RewardKind.LEVEL_UP, {"level": new_level}
                )
                issued.append(reward)
                level_up = {"old_level": old_level, "new_level": new_level}

            # Every submission re-opens the wheel
            progress.wheel_spun_this_cycle = False

            transaction_count = WasteTransaction.query.filter_by(user_id=user_id).count()
            if transaction_count == 1 and not progress.first_pickup_coupon_used:
                reward = self.issuer.issue_reward(user_id, RewardKind.FIRST_SUBMISSION)
                issued.append(reward)
                progress.first_pickup_coupon_used = True

            db.session.commit()
        except IntegrityError:
            # Lost a race on the pickup_id unique constraint
            db.session.rollback()
            existing = self._find_transaction(pickup_id)
            if existing is None:
                logger.exception(f"Integrity error recording pickup {pickup_id}")
                raise PersistenceError()
            return self._replay(user_id, existing)
        except RewardsError:
            db.session.rollback()
            raise
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.exception(f"Failed to record pickup {pickup_id} for user {user_id}")
            raise PersistenceError() from e

        logger.info(
            f"Pickup {pickup_id}: user {user_id} +{points} points "
            f"({weight}kg {category}), total {progress.total_points}"
        )

        rewards = [r.to_dict() for r in issued]
        self._emit_submission_events(user_id, transaction, level_up, rewards)

        snapshot = self.get_snapshot(user_id)
        snapshot.update(
            {
                "earned_points": points,
                "level_up": level_up,
                "rewards": rewards,
                "duplicate": False,
            }
        )
        return snapshot

    def _find_transaction(self, pickup_id: str) -> WasteTransaction | None:
        return WasteTransaction.query.filter_by(pickup_id=pickup_id).first()

    def _replay(self, user_id: int, existing: WasteTransaction) -> dict:
        """Idempotent answer for a pickup that was already recorded."""
        if existing.user_id != user_id:
            raise ConflictError("Pickup already recorded for another user")

        logger.info(f"Duplicate submission for pickup {existing.pickup_id} ignored")
        snapshot = self.get_snapshot(user_id)
        snapshot.update(
            {
                "earned_points": existing.points_awarded,
                "level_up": None,
                "rewards": [],
                "duplicate": True,
            }
        )
        return snapshot

    def _emit_submission_events(
        self, user_id: int, transaction: WasteTransaction, level_up, rewards: list
    ) -> None:
        events.emit(
            events.SUBMISSION_RECORDED,
            user_id=user_id,
            pickup_id=transaction.pickup_id,
            points=transaction.points_awarded,
            weight_kg=transaction.weight_kg,
            category=transaction.category,
        )
        if level_up:
            events.emit(events.LEVEL_UP, user_id=user_id, **level_up)
        for reward in rewards:
            events.emit(events.REWARD_ISSUED, user_id=user_id, reward=reward)

    # ============ Progress rows ============

    def ensure_progress(self, user_id: int) -> UserProgress:
        """Get the user's progress row, creating a zero-valued one if missing."""
        progress = UserProgress.query.filter_by(user_id=user_id).first()
        if progress:
            return progress

        progress = UserProgress(
            user_id=user_id,
            total_points=0,
            current_level=1,
            total_submissions=0,
            cycle_progress=0.0,
            wheel_spun_this_cycle=False,
            first_pickup_coupon_used=False,
        )
        try:
            db.session.add(progress)
            db.session.commit()
            return progress
        except IntegrityError:
            db.session.rollback()
            progress = UserProgress.query.filter_by(user_id=user_id).first()
            if progress:
                return progress
            raise

    def _locked_progress(self, user_id: int) -> UserProgress:
        """Progress row locked for the rest of the transaction."""
        return (
            UserProgress.query.filter_by(user_id=user_id)
            .with_for_update()
            .populate_existing()
            .one()
        )

    # ============ Reads ============

    def get_snapshot(self, user_id: int) -> dict:
        """Current progress plus aggregates derived from transactions."""
        if not db.session.get(User, user_id):
            raise NotFoundError("User not found")

        progress = UserProgress.query.filter_by(user_id=user_id).first()
        if progress is None:
            progress = self.ensure_progress(user_id)

        waste_types = self.waste_breakdown(user_id)
        level_info = level_progress(progress.total_points)

        return {
            "total_waste": round(sum(waste_types.values()), 3),
            "total_points": progress.total_points,
            "current_level": progress.current_level,
            "cycle_progress": round(progress.cycle_progress or 0.0, 3),
            "wheel_spun_this_cycle": progress.wheel_spun_this_cycle,
            "can_spin": progress.can_spin,
            "waste_types": waste_types,
            "total_submissions": progress.total_submissions,
            "next_level_points": level_info["next_level_points"],
            "level_progress_percent": level_info["progress_percent"],
        }

    def waste_breakdown(self, user_id: int) -> dict:
        """Total weight per category from the transaction log."""
        rows = (
            db.session.query(
                WasteTransaction.category,
                func.coalesce(func.sum(WasteTransaction.weight_kg), 0.0),
            )
            .filter(WasteTransaction.user_id == user_id)
            .group_by(WasteTransaction.category)
            .all()
        )
        return {category: round(float(total), 3) for category, total in rows}

    def ledger_points(self, user_id: int) -> int:
        """Sum of points awarded across all of the user's transactions."""
        return int(
            db.session.query(
                func.coalesce(func.sum(WasteTransaction.points_awarded), 0)
            )
            .filter(WasteTransaction.user_id == user_id)
            .scalar()
            or 0
        )

    # ============ Administrative correction ============

    def reconcile(self, user_id: int) -> dict:
        """Recompute total points and level from the transaction log.

        No rewards are issued or revoked by a correction.
        """
        if not db.session.get(User, user_id):
            raise NotFoundError("User not found")
        self.ensure_progress(user_id)

        try:
            progress = self._locked_progress(user_id)
            stored = progress.total_points
            computed = self.ledger_points(user_id)
            submissions = WasteTransaction.query.filter_by(user_id=user_id).count()

            corrected = (
                stored != computed
                or progress.total_submissions != submissions
                or progress.current_level != resolve_level(computed)
            )
            if corrected:
                progress.total_points = computed
                progress.total_submissions = submissions
                progress.current_level = resolve_level(computed)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.exception(f"Failed to reconcile progress for user {user_id}")
            raise PersistenceError() from e

        if corrected:
            logger.warning(
                f"Reconciled user {user_id}: stored {stored} points, ledger {computed}"
            )

        return {
            "user_id": user_id,
            "stored_points": stored,
            "ledger_points": computed,
            "current_level": progress.current_level,
            "corrected": corrected,
        }

    def reconcile_all(self, limit: int = 500) -> dict:
        """Reconcile every progress row (batch job / CLI)."""
        checked = 0
        corrected = 0
        user_ids = [
            row.user_id
            for row in UserProgress.query.order_by(UserProgress.user_id.asc())
            .limit(int(limit))
            .all()
        ]
        for user_id in user_ids:
            report = self.reconcile(user_id)
            checked += 1
            if report["corrected"]:
                corrected += 1
        return {"checked": checked, "corrected": corrected}
