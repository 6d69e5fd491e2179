from enum import Enum
from typing import Optional
from sqlmodel import SQLModel, Field


class StageKey(str, Enum):
    GROUP_STAGE = "group_stage"
    ROUND_OF_16 = "round_of_16"
    QUARTER_FINALS = "quarter_finals"
    SEMI_FINALS = "semi_finals"
    THIRD_PLACE = "third_place"
    FINAL = "final"


class Stage(SQLModel, table=True):
    __tablename__ = "stages"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    slug: str = Field(unique=True, index=True)  # StageKey value
    sort_order: int
    # Stored for display; scoring does not apply it
    points_multiplier: float = Field(default=1.0, ge=0)
