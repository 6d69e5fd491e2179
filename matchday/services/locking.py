"""
Prediction locking.

A prediction is locked when its persisted flag is set, when its fixture has
left the scheduled state, or once kickoff time is reached. The flag is only a
cache written by explicit lock actions; status and clock are always checked
live, so callers must evaluate `is_locked` at the moment of each write.
"""
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import update
from sqlmodel import Session, select

from ..config import LOCK_SWEEP_WINDOW_MINUTES
from ..database import atomic
from ..logger import get_logger
from ..models.fixture import Fixture, FixtureStatus
from ..models.prediction import Prediction
from ..timeutils import ensure_aware_utc, utcnow

logger = get_logger(__name__)


def is_locked(prediction: Optional[Prediction], fixture: Fixture, now: datetime) -> bool:
    if prediction is not None and prediction.is_locked:
        return True
    if fixture.status != FixtureStatus.SCHEDULED:
        return True
    return ensure_aware_utc(now) >= ensure_aware_utc(fixture.scheduled_at)


def lock_predictions_for_fixture(
    db: Session,
    fixture_id: int,
    now: Optional[datetime] = None
) -> int:
    """Set the lock flag on every prediction of a fixture. Does not commit."""
    statement = (
        update(Prediction)
        .where(Prediction.fixture_id == fixture_id, Prediction.is_locked == False)
        .values(is_locked=True, updated_at=now or utcnow())
    )
    result = db.exec(statement)
    return result.rowcount or 0


def lock_started_fixtures(
    db: Session,
    now: Optional[datetime] = None,
    window_minutes: int = LOCK_SWEEP_WINDOW_MINUTES
) -> int:
    """
    Lock predictions for every scheduled fixture kicking off within the window.

    Safe to call as often as a cron likes; returns how many fixtures were swept.
    """
    now = ensure_aware_utc(now or utcnow())
    cutoff = now + timedelta(minutes=window_minutes)

    statement = select(Fixture.id).where(
        Fixture.status == FixtureStatus.SCHEDULED,
        Fixture.scheduled_at <= cutoff
    )
    fixture_ids = db.exec(statement).all()

    locked = 0
    with atomic(db):
        for fixture_id in fixture_ids:
            locked += lock_predictions_for_fixture(db, fixture_id, now)

    logger.info("Lock sweep: %d fixtures, %d predictions newly locked", len(fixture_ids), locked)
    return len(fixture_ids)
