from datetime import datetime
from typing import Any, Dict, List, Optional
from sqlalchemy import delete
from sqlmodel import Session, select, func

from ..config import LEADERBOARD_PAGE_SIZE
from ..database import atomic
from ..errors import InvalidInput, NotFound
from ..logger import get_logger
from ..models.fixture import Fixture
from ..models.leaderboard_snapshot import LeaderboardSnapshot
from ..models.prediction import Prediction
from ..models.stage import Stage
from ..models.user import User
from ..timeutils import utcnow
from .users import get_user

logger = get_logger(__name__)


def get_leaderboard(
    db: Session,
    page: int = 1,
    per_page: int = LEADERBOARD_PAGE_SIZE
) -> List[Dict[str, Any]]:
    """
    Users ordered by total points, highest first.

    Rank is the 1-based position after sorting; equal totals keep a stable
    order (by user id) and still get consecutive ranks.
    """
    if page < 1 or per_page < 1:
        raise InvalidInput("page and per_page must be positive")
    offset = (page - 1) * per_page

    statement = (
        select(User)
        .order_by(User.total_points.desc(), User.id)
        .offset(offset)
        .limit(per_page)
    )
    users = db.exec(statement).all()

    return [
        {
            "rank": offset + i + 1,
            "user_id": user.id,
            "display_name": user.display_name,
            "total_points": user.total_points
        }
        for i, user in enumerate(users)
    ]


def count_users(db: Session) -> int:
    return db.exec(select(func.count(User.id))).one()


def get_user_position(db: Session, user_id: str) -> int:
    """1 + number of users with strictly more points."""
    user = get_user(db, user_id)
    users_above = db.exec(
        select(func.count(User.id)).where(User.total_points > user.total_points)
    ).one()
    return users_above + 1


def _ranking_rows(db: Session, stage_id: Optional[int]) -> List[Dict[str, Any]]:
    """Per-user totals and counters, overall or restricted to one stage's fixtures."""
    users = db.exec(select(User).order_by(User.id)).all()
    rows = {
        user.id: {
            "user_id": user.id,
            "total_points": user.total_points if stage_id is None else 0,
            "matches_predicted": 0,
            "exact_scores": 0,
            "correct_results": 0
        }
        for user in users
    }

    statement = select(Prediction)
    if stage_id is not None:
        statement = (
            statement
            .join(Fixture, Prediction.fixture_id == Fixture.id)
            .where(Fixture.stage_id == stage_id)
        )

    for prediction in db.exec(statement).all():
        row = rows.get(prediction.user_id)
        if row is None:
            continue
        row["matches_predicted"] += 1
        points = prediction.points_earned
        if points is None:
            continue
        if stage_id is not None:
            row["total_points"] += points
        if points >= 3:
            row["exact_scores"] += 1
        elif points >= 1:
            row["correct_results"] += 1

    ranked = sorted(rows.values(), key=lambda r: r["total_points"], reverse=True)
    for i, row in enumerate(ranked):
        row["rank"] = i + 1
    return ranked


def take_leaderboard_snapshot(
    db: Session,
    stage_id: Optional[int] = None,
    now: Optional[datetime] = None
) -> List[LeaderboardSnapshot]:
    """Persist the current ranking (overall, or for one stage) as a snapshot."""
    if stage_id is not None and db.get(Stage, stage_id) is None:
        raise NotFound("Stage not found", {"stage_id": stage_id})

    snapshot_at = now or utcnow()
    snapshots = [
        LeaderboardSnapshot(stage_id=stage_id, snapshot_at=snapshot_at, **row)
        for row in _ranking_rows(db, stage_id)
    ]
    with atomic(db):
        db.add_all(snapshots)

    logger.info("Leaderboard snapshot (stage %s): %d rows", stage_id, len(snapshots))
    for snapshot in snapshots:
        db.refresh(snapshot)
    return snapshots


def latest_snapshot(db: Session, stage_id: Optional[int] = None) -> List[LeaderboardSnapshot]:
    """Rows of the most recent snapshot for the stage (None = overall), by rank."""
    stage_filter = (
        LeaderboardSnapshot.stage_id.is_(None)
        if stage_id is None
        else LeaderboardSnapshot.stage_id == stage_id
    )
    latest_at = db.exec(
        select(func.max(LeaderboardSnapshot.snapshot_at)).where(stage_filter)
    ).one()
    if latest_at is None:
        return []

    statement = (
        select(LeaderboardSnapshot)
        .where(stage_filter, LeaderboardSnapshot.snapshot_at == latest_at)
        .order_by(LeaderboardSnapshot.rank)
    )
    return list(db.exec(statement).all())


def clear_snapshots(db: Session) -> int:
    with atomic(db):
        cleared = db.exec(delete(LeaderboardSnapshot)).rowcount or 0
    return cleared
