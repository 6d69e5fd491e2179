from datetime import datetime
from enum import Enum
from typing import Optional
from sqlalchemy import Column, DateTime
from sqlmodel import SQLModel, Field


class FixtureStatus(str, Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    FINISHED = "finished"


class Fixture(SQLModel, table=True):
    __tablename__ = "fixtures"

    id: Optional[int] = Field(default=None, primary_key=True)
    match_number: int = Field(unique=True, index=True)
    stage_id: int = Field(foreign_key="stages.id", index=True)

    # Teams (nullable for undecided knockout slots)
    home_team_id: Optional[int] = Field(default=None, foreign_key="teams.id", index=True)
    away_team_id: Optional[int] = Field(default=None, foreign_key="teams.id", index=True)
    home_placeholder: Optional[str] = Field(default=None)  # e.g. "Winner Match 49"
    away_placeholder: Optional[str] = Field(default=None)

    scheduled_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
    status: FixtureStatus = Field(default=FixtureStatus.SCHEDULED, index=True)

    # Actual result, set by admin; non-null once finished
    home_score: Optional[int] = Field(default=None)
    away_score: Optional[int] = Field(default=None)
    home_penalty_score: Optional[int] = Field(default=None)
    away_penalty_score: Optional[int] = Field(default=None)

    @property
    def is_finished(self) -> bool:
        return self.status == FixtureStatus.FINISHED

    @property
    def has_result(self) -> bool:
        return self.home_score is not None and self.away_score is not None
