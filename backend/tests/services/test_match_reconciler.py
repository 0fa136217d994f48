"""Match reconciler sweep."""

from datetime import timedelta
from unittest.mock import patch

import pytest

from focuspair.core.exceptions import RepositoryException
from focuspair.models.session import FocusSession, SessionStatus
from focuspair.services.match_reconciler import MatchReconciler
from focuspair.services.notification_service import SessionEvent

from tests.helpers.clock import FIXED_NOW

SLOT = FIXED_NOW + timedelta(hours=3)


@pytest.fixture
def reconciler(db, dispatcher):
    return MatchReconciler(db, dispatcher=dispatcher)


def test_pairs_two_waiting_sessions(db, reconciler, make_profile, make_session, dispatcher):
    make_profile("alice")
    make_profile("bob")
    first = make_session("alice", SLOT, created_at=FIXED_NOW - timedelta(minutes=10))
    second = make_session("bob", SLOT, created_at=FIXED_NOW - timedelta(minutes=2))
    first_id, second_id = first.id, second.id

    results = reconciler.run(now=FIXED_NOW)

    assert results["examined"] == 2
    assert results["paired"] == 1
    remaining = db.query(FocusSession).all()
    assert [s.id for s in remaining] == [first_id]
    assert remaining[0].status == SessionStatus.MATCHED.value
    assert remaining[0].user2_id == "bob"
    assert db.query(FocusSession).filter_by(id=second_id).first() is None
    dispatcher.dispatch.assert_called_once_with(
        SessionEvent.MATCH_FOUND, first_id, ["alice", "bob"]
    )


def test_different_languages_stay_apart(db, reconciler, make_profile, make_session):
    make_profile("alice", language="en")
    make_profile("bob", language="nl")
    make_session("alice", SLOT)
    make_session("bob", SLOT)

    results = reconciler.run(now=FIXED_NOW)

    assert results["paired"] == 0
    assert db.query(FocusSession).filter_by(status=SessionStatus.WAITING.value).count() == 2


def test_different_durations_stay_apart(reconciler, make_profile, make_session):
    make_profile("alice")
    make_profile("bob")
    make_session("alice", SLOT, duration=25)
    make_session("bob", SLOT, duration=50)

    assert reconciler.run(now=FIXED_NOW)["paired"] == 0


def test_unresolved_owner_is_skipped(db, reconciler, make_profile, make_session):
    make_profile("alice")
    make_session("alice", SLOT)
    make_session("ghost", SLOT)

    results = reconciler.run(now=FIXED_NOW)

    assert results["unresolved"] == 1
    assert results["paired"] == 0


def test_odd_session_out_keeps_waiting(db, reconciler, make_profile, make_session):
    for uid in ("alice", "bob", "carol"):
        make_profile(uid)
    make_session("alice", SLOT, created_at=FIXED_NOW - timedelta(minutes=3))
    make_session("bob", SLOT, created_at=FIXED_NOW - timedelta(minutes=2))
    leftover = make_session("carol", SLOT, created_at=FIXED_NOW - timedelta(minutes=1))
    leftover_id = leftover.id

    results = reconciler.run(now=FIXED_NOW)

    assert results["paired"] == 1
    assert db.get(FocusSession, leftover_id).status == SessionStatus.WAITING.value


def test_started_sessions_are_ignored(reconciler, make_profile, make_session):
    make_profile("alice")
    make_profile("bob")
    make_session("alice", FIXED_NOW - timedelta(minutes=1))
    make_session("bob", FIXED_NOW - timedelta(minutes=1))

    assert reconciler.run(now=FIXED_NOW)["examined"] == 0


def test_failed_delete_rolls_back_claim(db, reconciler, make_profile, make_session, dispatcher):
    make_profile("alice")
    make_profile("bob")
    first = make_session("alice", SLOT, created_at=FIXED_NOW - timedelta(minutes=10))
    make_session("bob", SLOT, created_at=FIXED_NOW - timedelta(minutes=2))
    first_id = first.id

    with patch.object(reconciler.session_repository, "delete_if_unclaimed", return_value=False):
        results = reconciler.run(now=FIXED_NOW)

    assert results["lost_race"] == 1
    survivor = db.get(FocusSession, first_id, populate_existing=True)
    assert survivor.status == SessionStatus.WAITING.value
    assert survivor.user2_id is None
    dispatcher.dispatch.assert_not_called()


def test_failure_on_one_pair_does_not_stop_the_sweep(
    db, reconciler, make_profile, make_session, dispatcher
):
    for uid in ("alice", "bob", "carol", "dave"):
        make_profile(uid)
    later = SLOT + timedelta(hours=1)
    broken = make_session("alice", SLOT, created_at=FIXED_NOW - timedelta(minutes=10))
    make_session("bob", SLOT, created_at=FIXED_NOW - timedelta(minutes=5))
    healthy = make_session("carol", later, created_at=FIXED_NOW - timedelta(minutes=10))
    make_session("dave", later, created_at=FIXED_NOW - timedelta(minutes=5))
    broken_id, healthy_id = broken.id, healthy.id
    original = reconciler.session_repository.claim_waiting

    def _flaky(session_id, claimant_id):
        if session_id == broken_id:
            raise RepositoryException("write failed")
        return original(session_id, claimant_id)

    with patch.object(reconciler.session_repository, "claim_waiting", side_effect=_flaky):
        results = reconciler.run(now=FIXED_NOW)

    assert results["failed"] == 1
    assert results["paired"] == 1
    assert db.get(FocusSession, broken_id, populate_existing=True).status == SessionStatus.WAITING.value
    paired = db.get(FocusSession, healthy_id, populate_existing=True)
    assert paired.status == SessionStatus.MATCHED.value
    assert paired.user2_id == "dave"
    dispatcher.dispatch.assert_called_once_with(
        SessionEvent.MATCH_FOUND, healthy_id, ["carol", "dave"]
    )
