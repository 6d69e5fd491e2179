"""
Administrative corrections.

Every change to a user's total here is a signed delta through
adjust_user_total. The one exception is the full reset, which zeroes every
user at once because it also removes every prediction.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy import delete, update
from sqlmodel import Session, select, func

from ..config import RESET_CONFIRMATION_TEXT
from ..database import atomic
from ..errors import InvalidInput, Locked, NotFound
from ..logger import get_logger
from ..models.fixture import Fixture, FixtureStatus
from ..models.leaderboard_snapshot import LeaderboardSnapshot
from ..models.prediction import Prediction
from ..models.user import User
from ..timeutils import ensure_aware_utc, utcnow
from ..validation import validate_points, validate_score
from .fixtures import get_fixture
from .locking import is_locked
from .scoring import adjust_user_total, outcome_for, points_delta
from .users import get_user

logger = get_logger(__name__)

CORRECTABLE_FIELDS = {"home_score", "away_score", "points_earned", "is_locked"}


def get_prediction(db: Session, prediction_id: int) -> Prediction:
    prediction = db.get(Prediction, prediction_id)
    if not prediction:
        raise NotFound("Prediction not found", {"prediction_id": prediction_id})
    return prediction


def get_prediction_detail(db: Session, prediction_id: int) -> Dict[str, Any]:
    prediction = get_prediction(db, prediction_id)
    return {
        "prediction": prediction,
        "fixture": db.get(Fixture, prediction.fixture_id),
        "user": db.get(User, prediction.user_id),
    }


def list_fixture_predictions(db: Session, fixture_id: int) -> Dict[str, Any]:
    """Every prediction on one fixture with its owner, highest points first."""
    fixture = get_fixture(db, fixture_id)
    rows = db.exec(
        select(Prediction, User)
        .join(User, Prediction.user_id == User.id)
        .where(Prediction.fixture_id == fixture_id)
        .order_by(func.coalesce(Prediction.points_earned, -1).desc(), User.id)
    ).all()
    return {
        "fixture": fixture,
        "predictions": [
            {
                "prediction": prediction,
                "user_id": user.id,
                "display_name": user.display_name
            }
            for prediction, user in rows
        ],
    }


def list_predictions_for_user(db: Session, user_id: str) -> List[Dict[str, Any]]:
    """One user's predictions in kickoff order, each with its fixture."""
    get_user(db, user_id)
    rows = db.exec(
        select(Prediction, Fixture)
        .join(Fixture, Prediction.fixture_id == Fixture.id)
        .where(Prediction.user_id == user_id)
        .order_by(Fixture.scheduled_at, Fixture.match_number)
    ).all()
    return [{"prediction": prediction, "fixture": fixture} for prediction, fixture in rows]


def _validate_updates(updates: Dict[str, Any]) -> Dict[str, Any]:
    unknown = set(updates) - CORRECTABLE_FIELDS
    if unknown:
        raise InvalidInput(f"Unknown fields: {', '.join(sorted(unknown))}")

    cleaned = {}
    for name in ("home_score", "away_score"):
        if name in updates:
            cleaned[name] = validate_score(updates[name], name)
    if "points_earned" in updates:
        cleaned["points_earned"] = validate_points(updates["points_earned"])
    if "is_locked" in updates:
        if not isinstance(updates["is_locked"], bool):
            raise InvalidInput("is_locked must be a boolean", {"field": "is_locked"})
        cleaned["is_locked"] = updates["is_locked"]
    return cleaned


def correct_prediction(
    db: Session,
    prediction_id: int,
    updates: Dict[str, Any],
    now: Optional[datetime] = None
) -> Prediction:
    """
    Apply an admin correction to a prediction.

    Score changes recompute the outcome and are refused once the prediction is
    locked (judged with the lock flag as it will be after this update). A
    points change moves the user's total by new minus old.
    """
    cleaned = _validate_updates(updates)
    now = ensure_aware_utc(now or utcnow())

    with atomic(db):
        prediction = get_prediction(db, prediction_id)
        fixture = db.get(Fixture, prediction.fixture_id)

        home_score = cleaned.get("home_score", prediction.home_score)
        away_score = cleaned.get("away_score", prediction.away_score)
        scores_changed = (home_score, away_score) != (prediction.home_score, prediction.away_score)

        if "is_locked" in cleaned:
            prediction.is_locked = cleaned["is_locked"]

        if scores_changed:
            if is_locked(prediction, fixture, now):
                raise Locked(
                    "Scores of a locked prediction cannot be changed",
                    {"prediction_id": prediction_id}
                )
            prediction.home_score = home_score
            prediction.away_score = away_score
            prediction.outcome = outcome_for(home_score, away_score)

        if "points_earned" in cleaned and cleaned["points_earned"] != prediction.points_earned:
            delta = points_delta(cleaned["points_earned"], prediction.points_earned)
            prediction.points_earned = cleaned["points_earned"]
            adjust_user_total(db, prediction.user_id, delta)
            logger.info(
                "Corrected points on prediction %s: user %s total %+d",
                prediction_id, prediction.user_id, delta
            )

        prediction.updated_at = now
        db.add(prediction)

    db.refresh(prediction)
    return prediction


def delete_prediction(db: Session, prediction_id: int) -> Dict[str, Any]:
    """Delete any prediction, first taking its points back from the owner's total."""
    with atomic(db):
        prediction = get_prediction(db, prediction_id)
        deleted = {
            "id": prediction.id,
            "user_id": prediction.user_id,
            "fixture_id": prediction.fixture_id,
            "points_earned": prediction.points_earned,
        }
        if prediction.points_earned is not None and prediction.points_earned > 0:
            adjust_user_total(db, prediction.user_id, -prediction.points_earned)
        db.delete(prediction)

    logger.info("Deleted prediction %s of user %s", prediction_id, deleted["user_id"])
    return deleted


def reset_all_predictions(
    db: Session,
    confirmation: Optional[str],
    reset_fixture_results: bool = False,
    clear_snapshots: bool = True
) -> Dict[str, Any]:
    """
    Delete every prediction and zero every user's total.

    Irreversible; requires the typed confirmation text. Optionally reverts all
    fixtures to scheduled without scores and clears leaderboard snapshots.
    Runs as a single transaction.
    """
    if confirmation != RESET_CONFIRMATION_TEXT:
        logger.warning("Refused prediction reset: confirmation text did not match")
        raise InvalidInput(
            f"Confirmation text does not match. Please type exactly: {RESET_CONFIRMATION_TEXT}",
            {"field": "confirmation"}
        )

    with atomic(db):
        predictions_deleted, users_affected, points_reset = db.exec(
            select(
                func.count(Prediction.id),
                func.count(func.distinct(Prediction.user_id)),
                func.coalesce(func.sum(Prediction.points_earned), 0)
            )
        ).one()

        fixtures_reset = 0
        if reset_fixture_results:
            fixtures_reset = db.exec(
                select(func.count(Fixture.id)).where(Fixture.status != FixtureStatus.SCHEDULED)
            ).one()

        db.exec(delete(Prediction))
        db.exec(update(User).values(total_points=0, updated_at=utcnow()))

        if reset_fixture_results:
            db.exec(
                update(Fixture).values(
                    home_score=None,
                    away_score=None,
                    home_penalty_score=None,
                    away_penalty_score=None,
                    status=FixtureStatus.SCHEDULED
                )
            )

        snapshots_cleared = 0
        if clear_snapshots:
            snapshots_cleared = db.exec(delete(LeaderboardSnapshot)).rowcount or 0

    stats = {
        "predictions_deleted": predictions_deleted,
        "users_affected": users_affected,
        "points_reset": points_reset,
        "fixtures_reset": fixtures_reset,
        "snapshots_cleared": snapshots_cleared,
    }
    logger.warning("Reset all predictions: %s", stats)
    return stats
