from datetime import datetime
from typing import Optional, Union
from sqlmodel import Session

from ..database import atomic
from ..errors import InvalidInput
from ..logger import get_logger
from ..models.fixture import Fixture, FixtureStatus
from ..timeutils import utcnow
from ..validation import validate_optional_score
from .fixtures import get_fixture_for_update
from .locking import lock_predictions_for_fixture
from .scoring import score_fixture_predictions

logger = get_logger(__name__)

RESULT_STATUSES = (FixtureStatus.LIVE, FixtureStatus.FINISHED)


def _parse_result_status(status: Union[str, FixtureStatus]) -> FixtureStatus:
    try:
        parsed = FixtureStatus(status)
    except ValueError:
        raise InvalidInput("status must be 'live' or 'finished'", {"field": "status"}) from None
    if parsed not in RESULT_STATUSES:
        raise InvalidInput("status must be 'live' or 'finished'", {"field": "status"})
    return parsed


def set_result(
    db: Session,
    fixture_id: int,
    home_score: Optional[int],
    away_score: Optional[int],
    status: Union[str, FixtureStatus] = FixtureStatus.FINISHED,
    home_penalty_score: Optional[int] = None,
    away_penalty_score: Optional[int] = None,
    now: Optional[datetime] = None
) -> Fixture:
    """
    Enter a live or final result for a fixture (admin only).

    All predictions on the fixture are locked. The first move into finished
    scores them; a later correction of a finished score re-scores them with
    compensating deltas, so points are never counted twice.
    """
    status = _parse_result_status(status)
    home_score = validate_optional_score(home_score, "home_score")
    away_score = validate_optional_score(away_score, "away_score")
    home_penalty_score = validate_optional_score(home_penalty_score, "home_penalty_score")
    away_penalty_score = validate_optional_score(away_penalty_score, "away_penalty_score")

    if status == FixtureStatus.FINISHED and (home_score is None or away_score is None):
        raise InvalidInput("A finished fixture needs both scores", {"field": "home_score"})

    now = now or utcnow()
    with atomic(db):
        fixture = get_fixture_for_update(db, fixture_id)
        was_finished = fixture.is_finished
        if was_finished and status == FixtureStatus.LIVE:
            raise InvalidInput(
                "A finished fixture can only be corrected with a new final score",
                {"field": "status"}
            )

        fixture.home_score = home_score
        fixture.away_score = away_score
        fixture.home_penalty_score = home_penalty_score
        fixture.away_penalty_score = away_penalty_score
        fixture.status = status
        db.add(fixture)
        db.flush()

        locked = lock_predictions_for_fixture(db, fixture.id, now)
        scored = 0
        if status == FixtureStatus.FINISHED:
            scored = score_fixture_predictions(db, fixture, now=now)

    logger.info(
        "Result for fixture %s: %s-%s (%s); %d predictions locked, %d scored%s",
        fixture_id, home_score, away_score, status.value, locked, scored,
        " (re-score)" if was_finished else ""
    )
    db.refresh(fixture)
    return fixture
