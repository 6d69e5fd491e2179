"""
Stage completion gate.

One configured stage (normally the group stage) closes to new submissions at
the kickoff of its earliest fixture. Before that deadline anything may be
submitted; afterwards only fixtures outside the gated stage are accepted.
The gate never locks existing predictions; that is the locking module's job.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
from sqlmodel import Session, select, func

from ..config import GATED_STAGE
from ..models.fixture import Fixture
from ..models.prediction import Prediction
from ..models.stage import Stage, StageKey
from ..timeutils import ensure_aware_utc, utcnow
from .fixtures import get_first_fixture_of_stage, get_stage_by_slug


@dataclass
class GateProgress:
    completed: int = 0
    total: int = 0


@dataclass
class GateDecision:
    allowed: bool
    progress: GateProgress = field(default_factory=GateProgress)
    reason: Optional[str] = None


class EligibilityGate:
    def __init__(self, stage: Optional[StageKey]):
        self.stage = stage

    @classmethod
    def from_config(cls) -> "EligibilityGate":
        return cls(StageKey(GATED_STAGE) if GATED_STAGE else None)

    def gated_stage(self, db: Session) -> Optional[Stage]:
        if self.stage is None:
            return None
        return get_stage_by_slug(db, self.stage.value)

    def deadline(self, db: Session) -> Optional[datetime]:
        stage = self.gated_stage(db)
        if stage is None:
            return None
        first_fixture = get_first_fixture_of_stage(db, stage.id)
        if first_fixture is None:
            return None
        return ensure_aware_utc(first_fixture.scheduled_at)

    def progress(self, db: Session, user_id: str) -> GateProgress:
        stage = self.gated_stage(db)
        if stage is None:
            return GateProgress()

        total = db.exec(
            select(func.count(Fixture.id)).where(Fixture.stage_id == stage.id)
        ).one()
        completed = db.exec(
            select(func.count(Prediction.id))
            .join(Fixture, Prediction.fixture_id == Fixture.id)
            .where(Prediction.user_id == user_id, Fixture.stage_id == stage.id)
        ).one()
        return GateProgress(completed=completed, total=total)

    def check(self, db: Session, user_id: str, fixture: Fixture, now: datetime) -> GateDecision:
        stage = self.gated_stage(db)
        if stage is None or fixture.stage_id != stage.id:
            return GateDecision(allowed=True)

        progress = self.progress(db, user_id)
        deadline = self.deadline(db)
        if deadline is None or ensure_aware_utc(now) < deadline:
            return GateDecision(allowed=True, progress=progress)

        return GateDecision(
            allowed=False,
            progress=progress,
            reason=f"{stage.name} predictions closed at the opening kickoff"
        )

    def status(self, db: Session, user_id: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Banner data: deadline, whether it passed, time left and the user's progress."""
        now = ensure_aware_utc(now or utcnow())
        deadline = self.deadline(db)
        progress = self.progress(db, user_id)
        passed = deadline is not None and now >= deadline
        seconds_remaining = None
        if deadline is not None and not passed:
            seconds_remaining = int((deadline - now).total_seconds())

        return {
            "stage": self.stage.value if self.stage else None,
            "deadline": deadline,
            "deadline_passed": passed,
            "seconds_remaining": seconds_remaining,
            "completed": progress.completed,
            "total": progress.total,
        }
