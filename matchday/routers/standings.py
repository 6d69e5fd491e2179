from fastapi import APIRouter, Depends
from sqlmodel import Session

from ..database import get_session
from ..services.standings import calculate_all_group_standings, calculate_group_standings

router = APIRouter(prefix="/standings", tags=["standings"])


@router.get("")
async def all_standings(db: Session = Depends(get_session)):
    return calculate_all_group_standings(db)


@router.get("/{group_letter}")
async def group_standings(group_letter: str, db: Session = Depends(get_session)):
    return calculate_group_standings(db, group_letter.upper())
