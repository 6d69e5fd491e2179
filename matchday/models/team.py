from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field

from ..timeutils import utcnow


class Team(SQLModel, table=True):
    __tablename__ = "teams"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    code: str = Field(unique=True, index=True)  # e.g. USA, MEX
    group_letter: Optional[str] = Field(default=None, index=True)  # A-L
    created_at: datetime = Field(default_factory=utcnow)
