from datetime import timedelta

import pytest

from matchday.errors import EligibilityDenied
from matchday.models import StageKey
from matchday.services.eligibility import EligibilityGate
from matchday.services.predictions import submit_prediction

from .conftest import KICKOFF

BEFORE_KICKOFF = KICKOFF - timedelta(hours=1)


@pytest.fixture(name="gate")
def gate_fixture():
    return EligibilityGate(StageKey.GROUP_STAGE)


def test_group_stage_open_before_first_kickoff(session, make_user, make_fixture, gate):
    fixture = make_fixture()
    make_user("u1")

    decision = gate.check(session, "u1", fixture, BEFORE_KICKOFF)

    assert decision.allowed is True
    assert decision.progress.total == 1


def test_group_stage_closed_after_first_kickoff(session, make_user, make_fixture, gate):
    make_fixture(match_number=1)
    later = make_fixture(match_number=2, scheduled_at=KICKOFF + timedelta(days=3))
    make_user("u1")
    submit_prediction(session, "u1", later.id, 1, 0, now=BEFORE_KICKOFF)

    decision = gate.check(session, "u1", later, KICKOFF + timedelta(hours=1))

    assert decision.allowed is False
    assert decision.progress.completed == 1
    assert decision.progress.total == 2
    assert "Group Stage" in decision.reason


def test_closed_gate_denies_new_submission(session, make_user, make_fixture):
    make_fixture(match_number=1)
    later = make_fixture(match_number=2, scheduled_at=KICKOFF + timedelta(days=3))
    make_user("u1")

    with pytest.raises(EligibilityDenied) as exc_info:
        submit_prediction(session, "u1", later.id, 1, 0, now=KICKOFF + timedelta(hours=1))

    assert exc_info.value.completed == 0
    assert exc_info.value.total == 2
    assert exc_info.value.to_dict()["progress"] == {"completed": 0, "total": 2}


def test_other_stages_unaffected(session, make_user, make_fixture, knockout_stage):
    make_fixture(match_number=1)
    knockout = make_fixture(match_number=49, scheduled_at=KICKOFF + timedelta(days=20), stage=knockout_stage)
    make_user("u1")

    prediction = submit_prediction(
        session, "u1", knockout.id, 2, 1, now=KICKOFF + timedelta(days=10)
    )

    assert prediction.id is not None


def test_disabled_gate_allows_everything(session, make_user, make_fixture):
    make_fixture(match_number=1)
    later = make_fixture(match_number=2, scheduled_at=KICKOFF + timedelta(days=3))
    make_user("u1")

    prediction = submit_prediction(
        session, "u1", later.id, 1, 0,
        now=KICKOFF + timedelta(hours=1),
        gate=EligibilityGate(None)
    )

    assert prediction.id is not None


def test_gate_without_stage_row_allows(session, make_user, make_fixture, knockout_stage):
    fixture = make_fixture(stage=knockout_stage)
    make_user("u1")

    decision = EligibilityGate(StageKey.FINAL).check(session, "u1", fixture, KICKOFF + timedelta(days=1))

    assert decision.allowed is True


def test_status_banner(session, make_user, make_fixture, gate):
    first = make_fixture(match_number=1)
    make_fixture(match_number=2, scheduled_at=KICKOFF + timedelta(days=1))
    make_user("u1")
    submit_prediction(session, "u1", first.id, 0, 0, now=BEFORE_KICKOFF)

    status = gate.status(session, "u1", now=BEFORE_KICKOFF)

    assert status["stage"] == "group_stage"
    assert status["deadline"] == KICKOFF
    assert status["deadline_passed"] is False
    assert status["seconds_remaining"] == 3600
    assert status["completed"] == 1
    assert status["total"] == 2


def test_status_banner_after_deadline(session, make_user, make_fixture, gate):
    make_fixture()
    make_user("u1")

    status = gate.status(session, "u1", now=KICKOFF)

    assert status["deadline_passed"] is True
    assert status["seconds_remaining"] is None
