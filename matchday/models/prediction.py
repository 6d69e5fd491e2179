from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import SQLModel, Field, UniqueConstraint

from ..timeutils import utcnow


class Outcome(str, Enum):
    HOME = "HOME"
    DRAW = "DRAW"
    AWAY = "AWAY"


class Prediction(SQLModel, table=True):
    __tablename__ = "predictions"
    __table_args__ = (UniqueConstraint("user_id", "fixture_id", name="unique_user_fixture"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(foreign_key="users.id", ondelete="CASCADE", index=True)
    fixture_id: int = Field(foreign_key="fixtures.id", ondelete="CASCADE", index=True)

    # Prediction
    home_score: int
    away_score: int
    outcome: Outcome  # always derived from the two scores

    is_locked: bool = Field(default=False)

    # Null until the fixture is scored
    points_earned: Optional[int] = Field(default=None)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
