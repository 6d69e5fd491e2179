from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from main import app
from matchday.database import get_session
from matchday.models import Stage, StageKey, Team, User
from matchday.services.fixtures import create_fixture

# Create in-memory database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Opening kickoff used across tests
KICKOFF = datetime(2026, 6, 11, 19, 0, tzinfo=timezone.utc)


@pytest.fixture(name="session")
def session_fixture():
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="group_stage")
def group_stage_fixture(session: Session) -> Stage:
    stage = Stage(name="Group Stage", slug=StageKey.GROUP_STAGE.value, sort_order=1, points_multiplier=1.0)
    session.add(stage)
    session.commit()
    session.refresh(stage)
    return stage


@pytest.fixture(name="knockout_stage")
def knockout_stage_fixture(session: Session) -> Stage:
    stage = Stage(name="Round of 16", slug=StageKey.ROUND_OF_16.value, sort_order=2, points_multiplier=1.5)
    session.add(stage)
    session.commit()
    session.refresh(stage)
    return stage


@pytest.fixture(name="make_user")
def make_user_fixture(session: Session):
    def _make_user(user_id: str, total_points: int = 0) -> User:
        user = User(
            id=user_id,
            email=f"{user_id}@example.com",
            display_name=user_id,
            total_points=total_points
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make_user


@pytest.fixture(name="make_team")
def make_team_fixture(session: Session):
    def _make_team(name: str, code: str, group_letter: str = "A") -> Team:
        team = Team(name=name, code=code, group_letter=group_letter)
        session.add(team)
        session.commit()
        session.refresh(team)
        return team

    return _make_team


@pytest.fixture(name="make_fixture")
def make_fixture_fixture(session: Session, group_stage: Stage):
    def _make_fixture(match_number: int = 1, scheduled_at: datetime = KICKOFF, stage: Stage = None, **kwargs):
        return create_fixture(
            session,
            match_number=match_number,
            stage_id=(stage or group_stage).id,
            scheduled_at=scheduled_at,
            **kwargs
        )

    return _make_fixture
