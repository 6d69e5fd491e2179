from datetime import datetime
from typing import Optional
from sqlalchemy import update
from sqlmodel import Session, select

from ..database import atomic
from ..errors import NotReady
from ..logger import get_logger
from ..models.fixture import Fixture, FixtureStatus
from ..models.prediction import Outcome, Prediction
from ..models.user import User
from ..timeutils import utcnow
from .fixtures import get_fixture_for_update

logger = get_logger(__name__)

EXACT_SCORE_POINTS = 3
CORRECT_OUTCOME_POINTS = 1


def outcome_for(home_score: int, away_score: int) -> Outcome:
    """Classify a score pair as home win, draw or away win."""
    if home_score > away_score:
        return Outcome.HOME
    elif home_score == away_score:
        return Outcome.DRAW
    return Outcome.AWAY


def calculate_points(
    predicted_home: int,
    predicted_away: int,
    actual_home: int,
    actual_away: int
) -> int:
    """
    Calculate points for a single prediction.

    Scoring:
    - Exact score: 3 points
    - Correct outcome (home win / draw / away win): 1 point
    - Otherwise: 0 points

    Stage multipliers are not applied.
    """
    if predicted_home == actual_home and predicted_away == actual_away:
        return EXACT_SCORE_POINTS

    if outcome_for(predicted_home, predicted_away) == outcome_for(actual_home, actual_away):
        return CORRECT_OUTCOME_POINTS

    return 0


def points_delta(points: Optional[int], previous: Optional[int]) -> int:
    """Signed change to a user's total when a prediction's points move from previous to points."""
    return (points or 0) - (previous or 0)


def adjust_user_total(db: Session, user_id: str, delta: int) -> None:
    """
    Apply a relative change to a user's total points. Does not commit.

    The increment is done in SQL so concurrent adjustments for the same user compose.
    """
    if delta == 0:
        return
    statement = (
        update(User)
        .where(User.id == user_id)
        .values(total_points=User.total_points + delta, updated_at=utcnow())
    )
    db.exec(statement)


def score_fixture_predictions(
    db: Session,
    fixture: Fixture,
    now: Optional[datetime] = None
) -> int:
    """
    Write points for every prediction on a finished fixture and move user totals.

    Each stored points_earned is passed as the previous value, so a never
    scored row moves the total by its full points and an already scored or
    admin-corrected row only by the difference. Safe to repeat. Does not commit.
    """
    if not fixture.is_finished or not fixture.has_result:
        raise NotReady(
            "Fixture is not finished or its scores are not set",
            {"fixture_id": fixture.id, "status": FixtureStatus(fixture.status).value}
        )

    now = now or utcnow()
    predictions = db.exec(select(Prediction).where(Prediction.fixture_id == fixture.id)).all()

    for prediction in predictions:
        points = calculate_points(
            prediction.home_score,
            prediction.away_score,
            fixture.home_score,
            fixture.away_score
        )
        delta = points_delta(points, prediction.points_earned)

        prediction.points_earned = points
        prediction.updated_at = now
        db.add(prediction)
        adjust_user_total(db, prediction.user_id, delta)

    return len(predictions)


def score_fixture(db: Session, fixture_id: int) -> int:
    """Score (or re-score) all predictions on a finished fixture in one transaction."""
    with atomic(db):
        fixture = get_fixture_for_update(db, fixture_id)
        count = score_fixture_predictions(db, fixture)

    logger.info("Scored fixture %s: %d predictions", fixture_id, count)
    return count
