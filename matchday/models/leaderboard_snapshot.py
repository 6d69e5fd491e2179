from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field

from ..timeutils import utcnow


class LeaderboardSnapshot(SQLModel, table=True):
    """Pre-computed leaderboard row. A cache only; rankings can always be rebuilt."""
    __tablename__ = "leaderboard_snapshots"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(foreign_key="users.id", ondelete="CASCADE", index=True)
    stage_id: Optional[int] = Field(default=None, foreign_key="stages.id", index=True)  # None = overall
    total_points: int
    rank: int = Field(index=True)
    matches_predicted: int
    exact_scores: int = Field(default=0)
    correct_results: int = Field(default=0)
    snapshot_at: datetime = Field(default_factory=utcnow, index=True)
