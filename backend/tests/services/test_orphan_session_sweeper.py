"""Cleanup of active sessions whose participant profiles are gone."""

from datetime import timedelta
from unittest.mock import patch

import pytest

from focuspair.core.exceptions import RepositoryException
from focuspair.models.session import FocusSession, SessionStatus
from focuspair.services.notification_service import SessionEvent
from focuspair.services.orphan_session_sweeper import OrphanSessionSweeper

from tests.helpers.clock import FIXED_NOW

SLOT = FIXED_NOW + timedelta(days=1)


@pytest.fixture
def sweeper(db, dispatcher):
    return OrphanSessionSweeper(db, dispatcher=dispatcher)


def _reload(db, session_id):
    return db.get(FocusSession, session_id, populate_existing=True)


def test_waiting_orphan_is_deleted(db, sweeper, make_profile, make_session, dispatcher):
    make_profile("alice")
    kept = make_session("alice", SLOT)
    orphan = make_session("ghost", SLOT)
    kept_id, orphan_id = kept.id, orphan.id

    results = sweeper.run(now=FIXED_NOW)

    assert results["examined"] == 2
    assert results["orphaned"] == 1
    assert results["deleted"] == 1
    assert _reload(db, orphan_id) is None
    assert _reload(db, kept_id).status == SessionStatus.WAITING.value
    dispatcher.dispatch.assert_not_called()


def test_matched_orphan_is_cancelled_and_partner_told(
    db, sweeper, make_profile, make_session, dispatcher
):
    make_profile("alice")
    session = make_session(
        "alice", SLOT, status=SessionStatus.MATCHED.value, user2_id="ghost"
    )
    session_id = session.id

    results = sweeper.run(now=FIXED_NOW)

    assert results["cancelled"] == 1
    row = _reload(db, session_id)
    assert row.status == SessionStatus.CANCELLED.value
    assert row.cancelled_by_id is None
    assert row.cancelled_at == FIXED_NOW
    dispatcher.dispatch.assert_called_once_with(SessionEvent.CANCELLED, session_id, ["alice"])


def test_terminal_and_resolved_sessions_are_left_alone(db, sweeper, make_profile, make_session):
    make_profile("alice")
    make_profile("bob")
    make_session("alice", SLOT, status=SessionStatus.MATCHED.value, user2_id="bob")
    make_session(
        "ghost",
        FIXED_NOW - timedelta(days=1),
        status=SessionStatus.CANCELLED.value,
    )

    results = sweeper.run(now=FIXED_NOW)

    assert results["examined"] == 1
    assert results["orphaned"] == 0


def test_lost_race_is_skipped(db, sweeper, make_session):
    orphan = make_session("ghost", SLOT)
    orphan_id = orphan.id

    with patch.object(sweeper.session_repository, "delete_if_unclaimed", return_value=False):
        results = sweeper.run(now=FIXED_NOW)

    assert results["skipped"] == 1
    assert results["deleted"] == 0
    assert _reload(db, orphan_id) is not None


def test_failure_on_one_session_does_not_stop_the_sweep(db, sweeper, make_session):
    broken = make_session("ghost", SLOT)
    healthy = make_session("phantom", SLOT + timedelta(hours=1))
    broken_id, healthy_id = broken.id, healthy.id
    original = sweeper.session_repository.delete_if_unclaimed

    def _flaky(session_id):
        if session_id == broken_id:
            raise RepositoryException("write failed")
        return original(session_id)

    with patch.object(sweeper.session_repository, "delete_if_unclaimed", side_effect=_flaky):
        results = sweeper.run(now=FIXED_NOW)

    assert results["failed"] == 1
    assert results["deleted"] == 1
    assert _reload(db, broken_id) is not None
    assert _reload(db, healthy_id) is None
