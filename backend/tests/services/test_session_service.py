"""Join window, room token and completion."""

from datetime import timedelta
from unittest.mock import patch

import pytest

from focuspair.core.exceptions import (
    JoinWindowNotOpenException,
    NotParticipantException,
    SessionAlreadyTerminalException,
    SessionConflictException,
)
from focuspair.models.profile import ParticipantProfile
from focuspair.models.session import SessionStatus
from focuspair.services.notification_service import SessionEvent
from focuspair.services.session_service import SessionListKind, SessionService

from tests.helpers.clock import FIXED_NOW


@pytest.fixture
def service(db, dispatcher):
    return SessionService(db, dispatcher=dispatcher)


@pytest.fixture(autouse=True)
def frozen_clock():
    with patch("focuspair.services.session_service.utc_now", return_value=FIXED_NOW):
        yield


def _matched(make_session, minutes_ahead, **kwargs):
    return make_session(
        "alice",
        FIXED_NOW + timedelta(minutes=minutes_ahead),
        status=SessionStatus.MATCHED.value,
        user2_id="bob",
        **kwargs,
    )


class TestMarkJoined:
    def test_join_inside_window_returns_room_token(self, service, make_session):
        session = _matched(make_session, 4)

        result = service.mark_joined(session.id, "bob")

        assert result.room_token.startswith("focuspair")
        assert result.session.user2_joined is True
        assert result.session.user1_joined is False

    def test_join_is_idempotent(self, service, make_session):
        session = _matched(make_session, 0)

        first = service.mark_joined(session.id, "alice")
        second = service.mark_joined(session.id, "alice")

        assert first.room_token == second.room_token
        assert second.session.user1_joined is True

    def test_too_early(self, service, make_session):
        session = _matched(make_session, 6)

        with pytest.raises(JoinWindowNotOpenException):
            service.mark_joined(session.id, "alice")

    def test_waiting_session_cannot_be_joined(self, service, make_session):
        session = make_session("alice", FIXED_NOW)

        with pytest.raises(SessionConflictException):
            service.mark_joined(session.id, "alice")

    def test_cancelled_session_cannot_be_joined(self, service, make_session):
        session = _matched(make_session, 0)
        service.session_repository.cancel_if_active(session.id, "bob", FIXED_NOW)
        service.db.commit()

        with pytest.raises(SessionAlreadyTerminalException):
            service.mark_joined(session.id, "alice")

    def test_outsider_rejected(self, service, make_session):
        session = _matched(make_session, 0)

        with pytest.raises(NotParticipantException):
            service.mark_joined(session.id, "mallory")


class TestComplete:
    def test_complete_counts_each_participant_once(
        self, db, service, make_profile, make_session, dispatcher
    ):
        make_profile("alice")
        make_profile("bob")
        session = _matched(make_session, -50, user1_joined=True, user2_joined=True)

        completed = service.complete(session.id, "alice")

        assert completed.status == SessionStatus.COMPLETED.value
        assert completed.completed_at == FIXED_NOW
        for uid in ("alice", "bob"):
            assert db.get(ParticipantProfile, uid, populate_existing=True).total_sessions == 1
        dispatcher.dispatch.assert_called_once_with(
            SessionEvent.COMPLETED, session.id, ("alice", "bob")
        )

        with pytest.raises(SessionAlreadyTerminalException):
            service.complete(session.id, "bob")
        assert db.get(ParticipantProfile, "bob", populate_existing=True).total_sessions == 1

    def test_complete_requires_both_joined(self, service, make_session):
        session = _matched(make_session, -50, user1_joined=True)

        with pytest.raises(SessionConflictException):
            service.complete(session.id, "alice")


class TestListSessions:
    def test_upcoming_and_past(self, service, make_session):
        upcoming = _matched(make_session, 120)
        past = make_session(
            "carol",
            FIXED_NOW - timedelta(days=2),
            status=SessionStatus.NO_SHOW.value,
            user2_id="bob",
        )

        assert [s.id for s in service.list_sessions("bob")] == [upcoming.id]
        assert [s.id for s in service.list_sessions("bob", SessionListKind.PAST)] == [past.id]

    def test_get_for_participant(self, service, make_session):
        session = _matched(make_session, 120)

        assert service.get_for_participant(session.id, "alice").id == session.id
        with pytest.raises(NotParticipantException):
            service.get_for_participant(session.id, "carol")
