from fastapi import APIRouter, Depends
from sqlmodel import Session
from pydantic import BaseModel

from ..database import get_session
from ..dependencies import require_user
from ..models.user import User
from ..services.eligibility import EligibilityGate
from ..services.predictions import (
    get_user_prediction,
    list_user_predictions,
    submit_prediction,
    user_prediction_stats,
    withdraw_prediction,
)

router = APIRouter(prefix="/api/predictions", tags=["predictions"])


class PredictionCreate(BaseModel):
    home_score: int
    away_score: int


@router.post("/fixture/{fixture_id}")
async def submit(
    fixture_id: int,
    prediction_data: PredictionCreate,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    prediction = submit_prediction(
        db,
        current_user.id,
        fixture_id,
        prediction_data.home_score,
        prediction_data.away_score
    )
    return {"success": True, "prediction": prediction}


@router.get("/fixture/{fixture_id}")
async def get_prediction(
    fixture_id: int,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    """Get user's prediction for a specific fixture."""
    return get_user_prediction(db, current_user.id, fixture_id)


@router.delete("/fixture/{fixture_id}")
async def delete_prediction(
    fixture_id: int,
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    """Withdraw a prediction for a fixture that has not started."""
    withdraw_prediction(db, current_user.id, fixture_id)
    return {"success": True, "message": "Prediction deleted successfully"}


@router.get("")
async def my_predictions(
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    return list_user_predictions(db, current_user.id)


@router.get("/stats")
async def my_stats(
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    stats = user_prediction_stats(db, current_user.id)
    stats["total_points"] = current_user.total_points
    return stats


@router.get("/eligibility")
async def eligibility_status(
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    """Stage gate banner: deadline and the user's progress through the gated stage."""
    return EligibilityGate.from_config().status(db, current_user.id)
