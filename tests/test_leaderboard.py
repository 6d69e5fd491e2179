from datetime import timedelta

import pytest

from matchday.errors import Conflict, InvalidInput, NotFound
from matchday.models import LeaderboardSnapshot, User
from matchday.services.leaderboard import (
    count_users,
    get_leaderboard,
    get_user_position,
    latest_snapshot,
    take_leaderboard_snapshot,
)
from matchday.services.matrix import MatrixBand, band_for, build_prediction_matrix
from matchday.services.predictions import submit_prediction
from matchday.services.results import set_result
from matchday.services.users import Identity, delete_user, upsert_user_from_identity
from sqlmodel import select

from .conftest import KICKOFF

BEFORE_KICKOFF = KICKOFF - timedelta(hours=1)


@pytest.fixture(name="ranked_users")
def ranked_users_fixture(make_user):
    make_user("carol", total_points=12)
    make_user("alice", total_points=20)
    make_user("bob", total_points=12)
    make_user("dave", total_points=0)


def test_leaderboard_orders_by_points(session, ranked_users):
    rows = get_leaderboard(session)

    assert [r["user_id"] for r in rows] == ["alice", "bob", "carol", "dave"]
    assert [r["rank"] for r in rows] == [1, 2, 3, 4]
    assert rows[0]["total_points"] == 20


def test_leaderboard_pages(session, ranked_users):
    rows = get_leaderboard(session, page=2, per_page=3)

    assert [r["user_id"] for r in rows] == ["dave"]
    assert rows[0]["rank"] == 4
    assert count_users(session) == 4


def test_leaderboard_rejects_bad_page(session, ranked_users):
    with pytest.raises(InvalidInput):
        get_leaderboard(session, page=0)


def test_user_position_shares_rank_on_ties(session, ranked_users):
    assert get_user_position(session, "alice") == 1
    assert get_user_position(session, "bob") == 2
    assert get_user_position(session, "carol") == 2
    assert get_user_position(session, "dave") == 4


def test_user_position_unknown_user(session):
    with pytest.raises(NotFound):
        get_user_position(session, "nobody")


def test_snapshot_overall(session, ranked_users):
    take_leaderboard_snapshot(session)

    rows = latest_snapshot(session)

    assert [r.rank for r in rows] == [1, 2, 3, 4]
    assert rows[0].user_id == "alice"
    assert rows[0].total_points == 20
    assert all(r.stage_id is None for r in rows)


def test_snapshot_for_stage_counts_stage_points(session, make_user, make_fixture, group_stage):
    fixture = make_fixture()
    make_user("u1", total_points=10)
    make_user("u2")
    submit_prediction(session, "u1", fixture.id, 1, 0, now=BEFORE_KICKOFF)
    submit_prediction(session, "u2", fixture.id, 2, 0, now=BEFORE_KICKOFF)
    set_result(session, fixture.id, 2, 0, "finished")

    take_leaderboard_snapshot(session, stage_id=group_stage.id)
    rows = latest_snapshot(session, stage_id=group_stage.id)

    assert [(r.user_id, r.total_points) for r in rows] == [("u2", 3), ("u1", 1)]
    assert rows[0].exact_scores == 1
    assert rows[1].correct_results == 1
    assert latest_snapshot(session) == []


def test_snapshot_unknown_stage(session):
    with pytest.raises(NotFound):
        take_leaderboard_snapshot(session, stage_id=99)


def test_band_for():
    assert band_for(None) == MatrixBand.ABSENT


def test_prediction_matrix(session, make_user, make_fixture):
    finished = make_fixture(match_number=1)
    upcoming = make_fixture(match_number=2, scheduled_at=KICKOFF + timedelta(days=1))
    make_user("u1")
    make_user("u2")
    make_user("u3")
    submit_prediction(session, "u1", finished.id, 2, 1, now=BEFORE_KICKOFF)
    submit_prediction(session, "u2", finished.id, 1, 0, now=BEFORE_KICKOFF)
    submit_prediction(session, "u3", finished.id, 0, 0, now=BEFORE_KICKOFF)
    submit_prediction(session, "u1", upcoming.id, 0, 0, now=BEFORE_KICKOFF)
    set_result(session, finished.id, 2, 1, "finished")

    matrix = build_prediction_matrix(session)

    assert [f.id for f in matrix["fixtures"]] == [finished.id, upcoming.id]
    assert [u.id for u in matrix["users"]] == ["u1", "u2", "u3"]
    row = matrix["cells"][finished.id]
    assert row["u1"]["band"] == "exact"
    assert row["u2"]["band"] == "outcome"
    assert row["u3"]["band"] == "wrong"
    assert matrix["cells"][upcoming.id]["u1"]["band"] == "pending"
    assert matrix["cells"][upcoming.id]["u2"]["band"] == "absent"
    assert matrix["cells"][upcoming.id]["u2"]["prediction"] is None


def test_prediction_matrix_finished_only(session, make_fixture):
    finished = make_fixture(match_number=1)
    make_fixture(match_number=2)
    set_result(session, finished.id, 0, 0, "finished")

    matrix = build_prediction_matrix(session, finished_only=True)

    assert [f.id for f in matrix["fixtures"]] == [finished.id]


def test_identity_sync_creates_and_updates(session):
    identity = Identity(user_id="idp|1", email="ana@example.com", first_name="Ana", last_name="Silva")

    user = upsert_user_from_identity(session, identity)
    assert user.display_name == "Ana Silva"
    assert user.total_points == 0

    identity.username = "ana10"
    user = upsert_user_from_identity(session, identity)
    assert user.display_name == "ana10"
    assert count_users(session) == 1


def test_identity_sync_email_taken(session, make_user):
    make_user("u1")

    with pytest.raises(Conflict):
        upsert_user_from_identity(session, Identity(user_id="u2", email="u1@example.com"))


def test_delete_user_cascades(session, make_user, make_fixture):
    fixture = make_fixture()
    make_user("u1")
    make_user("u2")
    submit_prediction(session, "u1", fixture.id, 1, 0, now=BEFORE_KICKOFF)
    take_leaderboard_snapshot(session)

    delete_user(session, "u1")

    session.expire_all()
    assert session.get(User, "u1") is None
    assert build_prediction_matrix(session)["cells"][fixture.id] == {
        "u2": {"prediction": None, "band": "absent"}
    }
    assert [s.user_id for s in session.exec(select(LeaderboardSnapshot)).all()] == ["u2"]
