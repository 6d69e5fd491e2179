from typing import Optional
from fastapi import APIRouter, Depends
from sqlmodel import Session
from pydantic import BaseModel

from ..database import get_session
from ..dependencies import require_admin
from ..models.fixture import FixtureStatus
from ..models.user import User
from ..services.admin import (
    correct_prediction,
    delete_prediction,
    get_prediction_detail,
    list_fixture_predictions,
    list_predictions_for_user,
    reset_all_predictions,
)
from ..services.leaderboard import clear_snapshots, take_leaderboard_snapshot
from ..services.locking import lock_started_fixtures
from ..services.results import set_result
from ..services.scoring import score_fixture
from ..services.users import Identity, delete_user, upsert_user_from_identity

router = APIRouter(prefix="/admin", tags=["admin"])


class ResultUpdate(BaseModel):
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    status: FixtureStatus = FixtureStatus.FINISHED
    home_penalty_score: Optional[int] = None
    away_penalty_score: Optional[int] = None


class PredictionCorrection(BaseModel):
    home_score: Optional[int] = None
    away_score: Optional[int] = None
    points_earned: Optional[int] = None
    is_locked: Optional[bool] = None


class ResetRequest(BaseModel):
    confirmation: str
    reset_fixture_results: bool = False
    clear_snapshots: bool = True


class IdentitySync(BaseModel):
    user_id: str
    email: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


# Results
@router.post("/fixtures/{fixture_id}/result")
async def update_fixture_result(
    fixture_id: int,
    result: ResultUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    fixture = set_result(
        db,
        fixture_id,
        result.home_score,
        result.away_score,
        result.status,
        home_penalty_score=result.home_penalty_score,
        away_penalty_score=result.away_penalty_score
    )
    return {"success": True, "fixture": fixture}


@router.post("/fixtures/{fixture_id}/rescore")
async def rescore_fixture(
    fixture_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    """Recompute points for a finished fixture, adjusting totals by the difference only."""
    count = score_fixture(db, fixture_id)
    return {"success": True, "predictions_scored": count}


@router.post("/lock-sweep")
async def lock_sweep(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    return {"success": True, "fixtures_locked": lock_started_fixtures(db)}


# Predictions Management
@router.get("/fixtures/{fixture_id}/predictions")
async def fixture_predictions(
    fixture_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    return list_fixture_predictions(db, fixture_id)


@router.get("/users/{user_id}/predictions")
async def user_predictions(
    user_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    return list_predictions_for_user(db, user_id)


@router.get("/predictions/{prediction_id}")
async def prediction_detail(
    prediction_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    return get_prediction_detail(db, prediction_id)


@router.patch("/predictions/{prediction_id}")
async def update_prediction(
    prediction_id: int,
    correction: PredictionCorrection,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    prediction = correct_prediction(db, prediction_id, correction.model_dump(exclude_unset=True))
    return {"success": True, "prediction": prediction}


@router.delete("/predictions/{prediction_id}")
async def remove_prediction(
    prediction_id: int,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    return {"success": True, "deleted": delete_prediction(db, prediction_id)}


@router.post("/predictions/reset")
async def reset_predictions(
    request: ResetRequest,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    stats = reset_all_predictions(
        db,
        request.confirmation,
        reset_fixture_results=request.reset_fixture_results,
        clear_snapshots=request.clear_snapshots
    )
    message = f"Deleted {stats['predictions_deleted']} predictions from {stats['users_affected']} users"
    if stats["fixtures_reset"]:
        message += f" and reset {stats['fixtures_reset']} fixture results"
    return {"success": True, "message": message, "stats": stats}


# Leaderboard snapshots
@router.post("/snapshots")
async def create_snapshot(
    stage_id: Optional[int] = None,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    rows = take_leaderboard_snapshot(db, stage_id)
    return {"success": True, "rows": len(rows)}


@router.delete("/snapshots")
async def remove_snapshots(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    return {"success": True, "cleared": clear_snapshots(db)}


# Users
@router.post("/users/sync")
async def sync_user(
    identity: IdentitySync,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    """Identity provider profile sync (created/updated events)."""
    user = upsert_user_from_identity(db, Identity(**identity.model_dump()))
    return {"success": True, "user": user}


@router.delete("/users/{user_id}")
async def remove_user(
    user_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_session)
):
    delete_user(db, user_id)
    return {"success": True}
