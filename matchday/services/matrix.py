from enum import Enum
from typing import Any, Dict, Optional
from sqlmodel import Session, select

from ..models.fixture import FixtureStatus
from ..models.prediction import Prediction
from ..models.user import User
from .fixtures import list_fixtures


class MatrixBand(str, Enum):
    EXACT = "exact"
    OUTCOME = "outcome"
    WRONG = "wrong"
    PENDING = "pending"
    ABSENT = "absent"


def band_for(prediction: Optional[Prediction]) -> MatrixBand:
    """Display band derived from points_earned alone."""
    if prediction is None:
        return MatrixBand.ABSENT
    points = prediction.points_earned
    if points is None:
        return MatrixBand.PENDING
    if points >= 3:
        return MatrixBand.EXACT
    if points >= 1:
        return MatrixBand.OUTCOME
    return MatrixBand.WRONG


def build_prediction_matrix(
    db: Session,
    stage_id: Optional[int] = None,
    finished_only: bool = False
) -> Dict[str, Any]:
    """
    Every fixture against every user.

    Returns fixtures in kickoff order, users by total points, and
    cells[fixture_id][user_id] holding the prediction (or None) and its band.
    """
    fixtures = list_fixtures(
        db,
        stage_id=stage_id,
        status=FixtureStatus.FINISHED if finished_only else None
    )
    users = db.exec(select(User).order_by(User.total_points.desc(), User.id)).all()

    fixture_ids = [fixture.id for fixture in fixtures]
    lookup: Dict[int, Dict[str, Prediction]] = {}
    if fixture_ids:
        predictions = db.exec(
            select(Prediction).where(Prediction.fixture_id.in_(fixture_ids))
        ).all()
        for prediction in predictions:
            lookup.setdefault(prediction.fixture_id, {})[prediction.user_id] = prediction

    cells: Dict[int, Dict[str, Dict[str, Any]]] = {}
    for fixture in fixtures:
        row = lookup.get(fixture.id, {})
        cells[fixture.id] = {}
        for user in users:
            prediction = row.get(user.id)
            cells[fixture.id][user.id] = {
                "prediction": prediction,
                "band": band_for(prediction).value
            }

    return {
        "fixtures": fixtures,
        "users": users,
        "cells": cells,
    }
