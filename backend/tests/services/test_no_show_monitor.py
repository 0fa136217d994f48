"""No-show sweep."""

from datetime import timedelta
from unittest.mock import patch

import pytest

from focuspair.core.exceptions import RepositoryException
from focuspair.models.profile import ParticipantProfile
from focuspair.models.session import FocusSession, SessionStatus
from focuspair.services.no_show_monitor import NoShowMonitor
from focuspair.services.notification_service import SessionEvent

from tests.helpers.clock import FIXED_NOW


@pytest.fixture
def monitor(db, dispatcher):
    return NoShowMonitor(db, dispatcher=dispatcher)


@pytest.fixture
def pair(make_profile):
    make_profile("alice")
    make_profile("bob")


def _counts(db, user_id):
    profile = db.get(ParticipantProfile, user_id, populate_existing=True)
    return profile.no_show_count, profile.strike_count


def test_absent_partner_is_penalized_once(db, monitor, pair, make_session, dispatcher):
    session = make_session(
        "alice",
        FIXED_NOW - timedelta(minutes=6),
        status=SessionStatus.MATCHED.value,
        user2_id="bob",
        user1_joined=True,
    )
    session_id = session.id

    results = monitor.run(now=FIXED_NOW)

    assert results["marked"] == 1
    assert results["penalized"] == 1
    assert db.get(FocusSession, session_id).status == SessionStatus.NO_SHOW.value
    assert _counts(db, "bob") == (1, 1)
    assert _counts(db, "alice") == (0, 0)
    dispatcher.dispatch.assert_called_once_with(SessionEvent.NO_SHOW, session_id, ["bob"])

    second = monitor.run(now=FIXED_NOW + timedelta(minutes=1))

    assert second["processed"] == 0
    assert _counts(db, "bob") == (1, 1)


def test_both_absent_are_both_penalized(db, monitor, pair, make_session):
    make_session(
        "alice",
        FIXED_NOW - timedelta(minutes=30),
        status=SessionStatus.MATCHED.value,
        user2_id="bob",
    )

    results = monitor.run(now=FIXED_NOW)

    assert results["penalized"] == 2
    assert _counts(db, "alice") == (1, 1)
    assert _counts(db, "bob") == (1, 1)


def test_inside_grace_period_is_left_alone(db, monitor, pair, make_session):
    session = make_session(
        "alice",
        FIXED_NOW - timedelta(minutes=4),
        status=SessionStatus.MATCHED.value,
        user2_id="bob",
    )

    results = monitor.run(now=FIXED_NOW)

    assert results["processed"] == 0
    assert db.get(FocusSession, session.id).status == SessionStatus.MATCHED.value


def test_waiting_and_attended_sessions_are_ignored(monitor, pair, make_session):
    make_session("alice", FIXED_NOW - timedelta(minutes=30))
    make_session(
        "alice",
        FIXED_NOW - timedelta(minutes=20),
        status=SessionStatus.MATCHED.value,
        user2_id="bob",
        user1_joined=True,
        user2_joined=True,
    )

    assert monitor.run(now=FIXED_NOW)["processed"] == 0


def test_lost_race_is_skipped(db, monitor, pair, make_session):
    session = make_session(
        "alice",
        FIXED_NOW - timedelta(minutes=10),
        status=SessionStatus.MATCHED.value,
        user2_id="bob",
    )
    candidates = monitor.session_repository.find_no_show_candidates(FIXED_NOW)
    monitor.session_repository.cancel_if_active(session.id, "alice", FIXED_NOW)
    db.commit()

    with patch.object(
        monitor.session_repository, "find_no_show_candidates", return_value=candidates
    ):
        results = monitor.run(now=FIXED_NOW)

    assert results["skipped"] == 1
    assert results["penalized"] == 0
    assert _counts(db, "bob") == (0, 0)


def test_failure_on_one_session_does_not_stop_the_sweep(db, monitor, pair, make_session):
    broken = make_session(
        "alice",
        FIXED_NOW - timedelta(minutes=30),
        status=SessionStatus.MATCHED.value,
        user2_id="bob",
        user1_joined=True,
    )
    healthy = make_session(
        "bob",
        FIXED_NOW - timedelta(minutes=20),
        status=SessionStatus.MATCHED.value,
        user2_id="alice",
        user1_joined=True,
    )
    broken_id, healthy_id = broken.id, healthy.id
    original = monitor.session_repository.mark_no_show_if_matched

    def _flaky(session_id, cutoff):
        if session_id == broken_id:
            raise RepositoryException("write failed")
        return original(session_id, cutoff)

    with patch.object(
        monitor.session_repository, "mark_no_show_if_matched", side_effect=_flaky
    ):
        results = monitor.run(now=FIXED_NOW)

    assert results["processed"] == 2
    assert results["failed"] == 1
    assert results["marked"] == 1
    assert db.get(FocusSession, broken_id, populate_existing=True).status == SessionStatus.MATCHED.value
    assert db.get(FocusSession, healthy_id, populate_existing=True).status == SessionStatus.NO_SHOW.value
    assert _counts(db, "alice") == (1, 1)
    assert _counts(db, "bob") == (0, 0)
