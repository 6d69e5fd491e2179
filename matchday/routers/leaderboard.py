from typing import Optional
from fastapi import APIRouter, Depends
from sqlmodel import Session

from ..config import LEADERBOARD_PAGE_SIZE
from ..database import get_session
from ..dependencies import require_user
from ..models.user import User
from ..services.leaderboard import count_users, get_leaderboard, get_user_position, latest_snapshot

router = APIRouter(prefix="/leaderboard", tags=["leaderboard"])


@router.get("")
async def leaderboard(
    page: int = 1,
    per_page: int = LEADERBOARD_PAGE_SIZE,
    db: Session = Depends(get_session)
):
    total_count = count_users(db)
    return {
        "leaderboard": get_leaderboard(db, page=page, per_page=per_page),
        "page": page,
        "total_pages": (total_count + per_page - 1) // per_page
    }


@router.get("/me")
async def my_position(
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    return {
        "user_id": current_user.id,
        "total_points": current_user.total_points,
        "rank": get_user_position(db, current_user.id)
    }


@router.get("/snapshot")
async def snapshot(stage_id: Optional[int] = None, db: Session = Depends(get_session)):
    """Most recent cached ranking; empty when no snapshot has been taken."""
    return latest_snapshot(db, stage_id)
