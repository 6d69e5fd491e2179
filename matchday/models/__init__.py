from .user import User
from .stage import Stage, StageKey
from .team import Team
from .fixture import Fixture, FixtureStatus
from .prediction import Prediction, Outcome
from .leaderboard_snapshot import LeaderboardSnapshot

__all__ = [
    "User",
    "Stage",
    "StageKey",
    "Team",
    "Fixture",
    "FixtureStatus",
    "Prediction",
    "Outcome",
    "LeaderboardSnapshot",
]
