from typing import Optional
from fastapi import APIRouter, Depends
from sqlmodel import Session

from ..database import get_session
from ..models.fixture import FixtureStatus
from ..services.fixtures import fixture_status_counts, get_fixture, list_fixtures

router = APIRouter(prefix="/api/fixtures", tags=["fixtures"])


@router.get("")
async def fixtures(
    stage_id: Optional[int] = None,
    status: Optional[FixtureStatus] = None,
    group_letter: Optional[str] = None,
    upcoming_only: bool = False,
    db: Session = Depends(get_session)
):
    return list_fixtures(
        db,
        stage_id=stage_id,
        status=status,
        group_letter=group_letter,
        upcoming_only=upcoming_only
    )


@router.get("/stats")
async def fixture_stats(db: Session = Depends(get_session)):
    return fixture_status_counts(db)


@router.get("/{fixture_id}")
async def fixture_detail(fixture_id: int, db: Session = Depends(get_session)):
    return get_fixture(db, fixture_id)
