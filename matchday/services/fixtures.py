from datetime import datetime
from typing import Dict, List, Optional
from sqlmodel import Session, select, func

from ..errors import InvalidInput, NotFound
from ..models.fixture import Fixture, FixtureStatus
from ..models.stage import Stage
from ..models.team import Team
from ..timeutils import ensure_aware_utc, utcnow


def get_fixture(db: Session, fixture_id: int) -> Fixture:
    fixture = db.get(Fixture, fixture_id)
    if not fixture:
        raise NotFound("Fixture not found", {"fixture_id": fixture_id})
    return fixture


def get_fixture_for_update(db: Session, fixture_id: int) -> Fixture:
    """
    Re-read a fixture with a row lock for the rest of the transaction.

    Submission and result entry both go through here, so a submission racing a
    status change always sees the post-transition row.
    """
    statement = (
        select(Fixture)
        .where(Fixture.id == fixture_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    fixture = db.exec(statement).first()
    if not fixture:
        raise NotFound("Fixture not found", {"fixture_id": fixture_id})
    return fixture


def list_fixtures(
    db: Session,
    stage_id: Optional[int] = None,
    status: Optional[FixtureStatus] = None,
    group_letter: Optional[str] = None,
    upcoming_only: bool = False,
    now: Optional[datetime] = None
) -> List[Fixture]:
    """List fixtures in kickoff order, optionally filtered."""
    statement = select(Fixture)
    if stage_id is not None:
        statement = statement.where(Fixture.stage_id == stage_id)
    if status is not None:
        statement = statement.where(Fixture.status == status)
    if group_letter:
        group_team_ids = select(Team.id).where(Team.group_letter == group_letter)
        statement = statement.where(
            Fixture.home_team_id.in_(group_team_ids),
            Fixture.away_team_id.in_(group_team_ids)
        )
    if upcoming_only:
        statement = statement.where(
            Fixture.status == FixtureStatus.SCHEDULED,
            Fixture.scheduled_at > ensure_aware_utc(now or utcnow())
        )
    statement = statement.order_by(Fixture.scheduled_at, Fixture.match_number)
    return list(db.exec(statement).all())


def get_stage_by_slug(db: Session, slug: str) -> Optional[Stage]:
    return db.exec(select(Stage).where(Stage.slug == slug)).first()


def get_first_fixture_of_stage(db: Session, stage_id: int) -> Optional[Fixture]:
    """Earliest fixture of a stage (the stage's opening kickoff)."""
    statement = (
        select(Fixture)
        .where(Fixture.stage_id == stage_id)
        .order_by(Fixture.scheduled_at, Fixture.match_number)
    )
    return db.exec(statement).first()


def fixture_status_counts(db: Session) -> Dict[str, int]:
    rows = db.exec(select(Fixture.status, func.count(Fixture.id)).group_by(Fixture.status)).all()
    counts = {status.value: 0 for status in FixtureStatus}
    for status, count in rows:
        counts[FixtureStatus(status).value] = count
    counts["total"] = sum(counts.values())
    return counts


def create_fixture(
    db: Session,
    match_number: int,
    stage_id: int,
    scheduled_at: datetime,
    home_team_id: Optional[int] = None,
    away_team_id: Optional[int] = None,
    home_placeholder: Optional[str] = None,
    away_placeholder: Optional[str] = None
) -> Fixture:
    """Administrative fixture setup; stores kickoff in UTC."""
    if db.get(Stage, stage_id) is None:
        raise InvalidInput("Unknown stage", {"stage_id": stage_id})

    fixture = Fixture(
        match_number=match_number,
        stage_id=stage_id,
        scheduled_at=ensure_aware_utc(scheduled_at),
        home_team_id=home_team_id,
        away_team_id=away_team_id,
        home_placeholder=home_placeholder,
        away_placeholder=away_placeholder
    )
    db.add(fixture)
    db.commit()
    db.refresh(fixture)
    return fixture
