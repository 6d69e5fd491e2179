from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..database import atomic
from ..errors import Conflict, EligibilityDenied, FixtureNotOpen, Locked, NotFound
from ..logger import get_logger
from ..models.fixture import Fixture, FixtureStatus
from ..models.prediction import Prediction
from ..timeutils import ensure_aware_utc, utcnow
from ..validation import validate_score
from .eligibility import EligibilityGate
from .fixtures import get_fixture_for_update
from .locking import is_locked
from .scoring import outcome_for
from .users import get_user

logger = get_logger(__name__)


def get_user_prediction(db: Session, user_id: str, fixture_id: int) -> Optional[Prediction]:
    """Get a user's prediction for a specific fixture."""
    statement = (
        select(Prediction)
        .where(Prediction.user_id == user_id, Prediction.fixture_id == fixture_id)
        .execution_options(populate_existing=True)
    )
    return db.exec(statement).first()


def list_user_predictions(db: Session, user_id: str) -> List[Prediction]:
    statement = (
        select(Prediction)
        .join(Fixture, Prediction.fixture_id == Fixture.id)
        .where(Prediction.user_id == user_id)
        .order_by(Fixture.scheduled_at, Fixture.match_number)
    )
    return list(db.exec(statement).all())


def _apply_scores(prediction: Prediction, home_score: int, away_score: int, now: datetime) -> None:
    prediction.home_score = home_score
    prediction.away_score = away_score
    prediction.outcome = outcome_for(home_score, away_score)
    prediction.updated_at = now


def submit_prediction(
    db: Session,
    user_id: str,
    fixture_id: int,
    home_score: Any,
    away_score: Any,
    now: Optional[datetime] = None,
    gate: Optional[EligibilityGate] = None
) -> Prediction:
    """
    Create or update a user's prediction for a fixture.

    Checks run in a fixed order, each with its own failure: fixture and user
    exist, fixture is still scheduled, scores are valid, prediction is not locked,
    stage gate allows it. The lock check and the write share one transaction.
    """
    now = ensure_aware_utc(now or utcnow())
    gate = gate or EligibilityGate.from_config()

    with atomic(db):
        fixture = get_fixture_for_update(db, fixture_id)
        get_user(db, user_id)

        if fixture.status != FixtureStatus.SCHEDULED:
            raise FixtureNotOpen(
                "Cannot predict for a fixture that has started or finished",
                {"fixture_id": fixture_id}
            )

        home_score = validate_score(home_score, "home_score")
        away_score = validate_score(away_score, "away_score")

        existing = get_user_prediction(db, user_id, fixture_id)
        if is_locked(existing, fixture, now):
            raise Locked("Prediction is locked and cannot be modified", {"fixture_id": fixture_id})

        decision = gate.check(db, user_id, fixture, now)
        if not decision.allowed:
            raise EligibilityDenied(
                decision.reason or "Predictions for this stage are closed",
                completed=decision.progress.completed,
                total=decision.progress.total
            )

        if existing:
            prediction = existing
            _apply_scores(prediction, home_score, away_score, now)
            db.add(prediction)
        else:
            prediction = _insert_or_update(db, user_id, fixture, home_score, away_score, now)

    db.refresh(prediction)
    return prediction


def _insert_or_update(
    db: Session,
    user_id: str,
    fixture: Fixture,
    home_score: int,
    away_score: int,
    now: datetime
) -> Prediction:
    """Insert under the unique (user, fixture) constraint; a lost race becomes an update."""
    prediction = Prediction(
        user_id=user_id,
        fixture_id=fixture.id,
        home_score=home_score,
        away_score=away_score,
        outcome=outcome_for(home_score, away_score),
        created_at=now,
        updated_at=now
    )
    try:
        with db.begin_nested():
            db.add(prediction)
        return prediction
    except IntegrityError:
        logger.warning("Concurrent submission for user %s fixture %s", user_id, fixture.id)

    existing = get_user_prediction(db, user_id, fixture.id)
    if existing is None:
        raise Conflict("Prediction could not be saved", {"fixture_id": fixture.id})
    if is_locked(existing, fixture, now):
        raise Locked("Prediction is locked and cannot be modified", {"fixture_id": fixture.id})
    _apply_scores(existing, home_score, away_score, now)
    db.add(existing)
    return existing


def withdraw_prediction(
    db: Session,
    user_id: str,
    fixture_id: int,
    now: Optional[datetime] = None
) -> None:
    """Delete a user's own prediction while it is still unlocked."""
    now = ensure_aware_utc(now or utcnow())
    with atomic(db):
        fixture = get_fixture_for_update(db, fixture_id)
        prediction = get_user_prediction(db, user_id, fixture_id)
        if not prediction:
            raise NotFound("Prediction not found", {"fixture_id": fixture_id})
        if is_locked(prediction, fixture, now):
            raise Locked("Cannot delete a locked prediction", {"fixture_id": fixture_id})
        db.delete(prediction)


def user_prediction_stats(db: Session, user_id: str) -> Dict[str, int]:
    """Counts over a user's predictions; exact = 3 points, correct = 1-2 points."""
    predictions = db.exec(select(Prediction).where(Prediction.user_id == user_id)).all()
    completed = [p for p in predictions if p.points_earned is not None]
    return {
        "total_predictions": len(predictions),
        "completed_predictions": len(completed),
        "exact_scores": sum(1 for p in completed if p.points_earned >= 3),
        "correct_results": sum(1 for p in completed if 1 <= p.points_earned < 3),
        "points_from_predictions": sum(p.points_earned for p in completed),
    }
