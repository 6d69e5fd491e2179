from datetime import datetime
from typing import Optional
from sqlmodel import SQLModel, Field

from ..timeutils import utcnow


class User(SQLModel, table=True):
    __tablename__ = "users"

    # Opaque id issued by the identity provider
    id: str = Field(primary_key=True)
    email: str = Field(unique=True, index=True)
    username: Optional[str] = Field(default=None)
    display_name: Optional[str] = Field(default=None)

    # Running sum of points_earned; only changed through delta updates
    total_points: int = Field(default=0, index=True)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
