from typing import Optional
from fastapi import APIRouter, Depends
from sqlmodel import Session

from ..database import get_session
from ..services.matrix import build_prediction_matrix

router = APIRouter(prefix="/matrix", tags=["matrix"])


@router.get("")
async def prediction_matrix(
    stage_id: Optional[int] = None,
    finished_only: bool = False,
    db: Session = Depends(get_session)
):
    return build_prediction_matrix(db, stage_id=stage_id, finished_only=finished_only)
