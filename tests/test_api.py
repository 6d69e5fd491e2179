from datetime import timedelta

import pytest

from matchday.models import Prediction, User
from matchday.timeutils import utcnow
from sqlmodel import select


def _headers(user_id="user1"):
    return {
        "X-User-Id": user_id,
        "X-User-Email": f"{user_id}@example.com",
        "X-User-Name": user_id,
    }


@pytest.fixture(name="admin_headers")
def admin_headers_fixture(monkeypatch):
    monkeypatch.setattr("matchday.dependencies.ADMIN_USER_IDS", {"admin"})
    return _headers("admin")


@pytest.fixture(name="upcoming")
def upcoming_fixture(make_fixture):
    return make_fixture(scheduled_at=utcnow() + timedelta(days=1))


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_read_fixtures_empty(client, group_stage):
    response = client.get("/api/fixtures")
    assert response.status_code == 200
    assert response.json() == []


def test_create_and_read_prediction(client, session, upcoming):
    payload = {"home_score": 2, "away_score": 1}
    response = client.post(f"/api/predictions/fixture/{upcoming.id}", json=payload, headers=_headers())
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["prediction"]["outcome"] == "HOME"

    # First authenticated action creates the user
    assert session.get(User, "user1") is not None

    response = client.get(f"/api/predictions/fixture/{upcoming.id}", headers=_headers())
    assert response.status_code == 200
    assert response.json()["home_score"] == 2

    response = client.get("/api/predictions", headers=_headers())
    assert len(response.json()) == 1


def test_prediction_requires_identity(client, upcoming):
    response = client.post(f"/api/predictions/fixture/{upcoming.id}", json={"home_score": 1, "away_score": 0})
    assert response.status_code == 401


def test_invalid_score_error_envelope(client, upcoming):
    response = client.post(
        f"/api/predictions/fixture/{upcoming.id}",
        json={"home_score": 21, "away_score": 0},
        headers=_headers()
    )
    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "InvalidInput"
    assert body["field"] == "home_score"


def test_malformed_body_is_invalid_input(client, upcoming):
    response = client.post(
        f"/api/predictions/fixture/{upcoming.id}",
        json={"home_score": "two"},
        headers=_headers()
    )
    assert response.status_code == 422
    assert response.json()["error"] == "InvalidInput"


def test_unknown_fixture_not_found(client, group_stage):
    response = client.post("/api/predictions/fixture/999", json={"home_score": 1, "away_score": 0}, headers=_headers())
    assert response.status_code == 404
    assert response.json()["error"] == "NotFound"


def test_started_fixture_is_locked(client, make_fixture):
    fixture = make_fixture(scheduled_at=utcnow() - timedelta(minutes=1))
    response = client.post(f"/api/predictions/fixture/{fixture.id}", json={"home_score": 1, "away_score": 0}, headers=_headers())
    assert response.status_code == 423
    assert response.json()["error"] == "Locked"


def test_withdraw_prediction(client, session, upcoming):
    client.post(f"/api/predictions/fixture/{upcoming.id}", json={"home_score": 1, "away_score": 1}, headers=_headers())

    response = client.delete(f"/api/predictions/fixture/{upcoming.id}", headers=_headers())
    assert response.status_code == 200
    assert response.json()["success"] is True

    response = client.delete(f"/api/predictions/fixture/{upcoming.id}", headers=_headers())
    assert response.status_code == 404


def test_eligibility_banner(client, upcoming):
    response = client.get("/api/predictions/eligibility", headers=_headers())
    assert response.status_code == 200
    data = response.json()
    assert data["stage"] == "group_stage"
    assert data["deadline_passed"] is False
    assert data["total"] == 1


def test_admin_requires_admin(client, upcoming):
    response = client.post(
        f"/admin/fixtures/{upcoming.id}/result",
        json={"home_score": 1, "away_score": 0},
        headers=_headers()
    )
    assert response.status_code == 403
    assert response.json()["error"] == "Unauthorized"


def test_admin_result_scores_predictions(client, session, upcoming, admin_headers):
    client.post(f"/api/predictions/fixture/{upcoming.id}", json={"home_score": 2, "away_score": 0}, headers=_headers())

    response = client.post(
        f"/admin/fixtures/{upcoming.id}/result",
        json={"home_score": 2, "away_score": 0, "status": "finished"},
        headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["fixture"]["status"] == "finished"

    response = client.get("/api/predictions/stats", headers=_headers())
    assert response.json()["exact_scores"] == 1
    assert response.json()["total_points"] == 3

    response = client.get("/leaderboard")
    assert response.json()["leaderboard"][0]["user_id"] == "user1"

    response = client.get("/leaderboard/me", headers=_headers())
    assert response.json()["rank"] == 1


def test_rescore_unfinished_fixture_not_ready(client, upcoming, admin_headers):
    response = client.post(f"/admin/fixtures/{upcoming.id}/rescore", headers=admin_headers)
    assert response.status_code == 409
    assert response.json()["error"] == "NotReady"


def test_admin_correction_and_delete(client, session, upcoming, admin_headers):
    client.post(f"/api/predictions/fixture/{upcoming.id}", json={"home_score": 1, "away_score": 0}, headers=_headers())
    client.post(
        f"/admin/fixtures/{upcoming.id}/result",
        json={"home_score": 3, "away_score": 0},
        headers=admin_headers
    )
    prediction_id = session.exec(select(Prediction).where(Prediction.user_id == "user1")).one().id

    response = client.patch(f"/admin/predictions/{prediction_id}", json={"points_earned": 3}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["prediction"]["points_earned"] == 3
    session.expire_all()
    assert session.get(User, "user1").total_points == 3

    response = client.delete(f"/admin/predictions/{prediction_id}", headers=admin_headers)
    assert response.status_code == 200
    session.expire_all()
    assert session.get(User, "user1").total_points == 0


def test_admin_reset_requires_confirmation(client, upcoming, admin_headers):
    response = client.post("/admin/predictions/reset", json={"confirmation": "yes"}, headers=admin_headers)
    assert response.status_code == 422

    response = client.post(
        "/admin/predictions/reset",
        json={"confirmation": "DELETE ALL PREDICTIONS"},
        headers=admin_headers
    )
    assert response.status_code == 200
    assert response.json()["stats"]["predictions_deleted"] == 0


def test_standings_endpoint(client, make_team, group_stage):
    make_team("Qatar", "QAT", group_letter="A")
    response = client.get("/standings/A")
    assert response.status_code == 200
    assert response.json()[0]["team_code"] == "QAT"


def test_admin_fixture_and_user_prediction_lists(client, upcoming, admin_headers):
    client.post(f"/api/predictions/fixture/{upcoming.id}", json={"home_score": 1, "away_score": 0}, headers=_headers())

    response = client.get(f"/admin/fixtures/{upcoming.id}/predictions", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["predictions"][0]["user_id"] == "user1"

    response = client.get("/admin/users/user1/predictions", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()[0]["fixture"]["id"] == upcoming.id

    response = client.get("/admin/users/nobody/predictions", headers=admin_headers)
    assert response.status_code == 404
