"""
Conditional writes of SessionRepository.

Each transition must report whether it applied, and must refuse to apply
when the row no longer satisfies the precondition.
"""

from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from focuspair.models.session import FocusSession, SessionStatus
from focuspair.repositories.session_repository import SessionRepository

from tests.helpers.clock import FIXED_NOW


@pytest.fixture
def repo(db):
    return SessionRepository(db)


def _reload(db, session_id):
    return db.get(FocusSession, session_id, populate_existing=True)


class TestClaimWaiting:
    def test_claims_open_session(self, db, repo, make_session):
        session = make_session("alice", FIXED_NOW + timedelta(days=1))

        assert repo.claim_waiting(session.id, "bob") is True
        db.commit()

        row = _reload(db, session.id)
        assert row.status == SessionStatus.MATCHED.value
        assert row.user2_id == "bob"

    def test_second_claim_affects_no_rows(self, db, repo, make_session):
        session = make_session("alice", FIXED_NOW + timedelta(days=1))

        assert repo.claim_waiting(session.id, "bob") is True
        assert repo.claim_waiting(session.id, "carol") is False
        db.commit()

        assert _reload(db, session.id).user2_id == "bob"

    def test_owner_cannot_claim_own_session(self, db, repo, make_session):
        session = make_session("alice", FIXED_NOW + timedelta(days=1))

        assert repo.claim_waiting(session.id, "alice") is False
        db.commit()

        assert _reload(db, session.id).status == SessionStatus.WAITING.value

    def test_unknown_session(self, repo):
        assert repo.claim_waiting("01HZZZZZZZZZZZZZZZZZZZZZZZ", "bob") is False


class TestDeleteIfUnclaimed:
    def test_deletes_waiting_session(self, db, repo, make_session):
        session = make_session("alice", FIXED_NOW + timedelta(days=1))
        session_id = session.id

        assert repo.delete_if_unclaimed(session_id) is True
        db.commit()

        assert db.query(FocusSession).filter_by(id=session_id).first() is None

    def test_keeps_matched_session(self, db, repo, make_session):
        session = make_session(
            "alice",
            FIXED_NOW + timedelta(days=1),
            status=SessionStatus.MATCHED.value,
            user2_id="bob",
        )

        assert repo.delete_if_unclaimed(session.id) is False


class TestTerminalTransitions:
    def test_no_show_requires_cutoff_and_absence(self, db, repo, make_session):
        start = FIXED_NOW - timedelta(minutes=6)
        session = make_session(
            "alice", start, status=SessionStatus.MATCHED.value, user2_id="bob", user1_joined=True
        )

        # Start is not yet before a cutoff ten minutes ago
        assert repo.mark_no_show_if_matched(session.id, FIXED_NOW - timedelta(minutes=10)) is False
        assert repo.mark_no_show_if_matched(session.id, FIXED_NOW - timedelta(minutes=5)) is True
        assert repo.mark_no_show_if_matched(session.id, FIXED_NOW - timedelta(minutes=5)) is False
        db.commit()

        assert _reload(db, session.id).status == SessionStatus.NO_SHOW.value

    def test_no_show_skips_fully_attended_session(self, repo, make_session):
        session = make_session(
            "alice",
            FIXED_NOW - timedelta(minutes=10),
            status=SessionStatus.MATCHED.value,
            user2_id="bob",
            user1_joined=True,
            user2_joined=True,
        )

        assert repo.mark_no_show_if_matched(session.id, FIXED_NOW - timedelta(minutes=5)) is False

    def test_cancel_only_once(self, db, repo, make_session):
        session = make_session("alice", FIXED_NOW + timedelta(days=1))

        assert repo.cancel_if_active(session.id, "alice", FIXED_NOW) is True
        assert repo.cancel_if_active(session.id, "alice", FIXED_NOW) is False
        db.commit()

        row = _reload(db, session.id)
        assert row.status == SessionStatus.CANCELLED.value
        assert row.cancelled_by_id == "alice"
        assert row.cancelled_at == FIXED_NOW

    def test_system_cancel_records_no_canceller(self, db, repo, make_session):
        session = make_session("alice", FIXED_NOW + timedelta(days=1))

        assert repo.cancel_if_active(session.id, None, FIXED_NOW) is True
        db.commit()

        row = _reload(db, session.id)
        assert row.status == SessionStatus.CANCELLED.value
        assert row.cancelled_by_id is None

    def test_cancelled_session_cannot_become_no_show(self, repo, make_session):
        session = make_session(
            "alice",
            FIXED_NOW - timedelta(minutes=10),
            status=SessionStatus.MATCHED.value,
            user2_id="bob",
        )

        assert repo.cancel_if_active(session.id, "bob", FIXED_NOW) is True
        assert repo.mark_no_show_if_matched(session.id, FIXED_NOW) is False

    def test_complete_requires_both_joined(self, db, repo, make_session):
        session = make_session(
            "alice",
            FIXED_NOW,
            status=SessionStatus.MATCHED.value,
            user2_id="bob",
            user1_joined=True,
        )

        assert repo.complete_if_ready(session.id, FIXED_NOW) is False
        assert repo.set_joined(session.id, "bob") is True
        assert repo.complete_if_ready(session.id, FIXED_NOW) is True
        db.commit()

        assert _reload(db, session.id).status == SessionStatus.COMPLETED.value


class TestSetJoined:
    def test_sets_only_callers_flag(self, db, repo, make_session):
        session = make_session(
            "alice", FIXED_NOW, status=SessionStatus.MATCHED.value, user2_id="bob"
        )

        assert repo.set_joined(session.id, "bob") is True
        db.commit()

        row = _reload(db, session.id)
        assert row.user2_joined is True
        assert row.user1_joined is False

    def test_rejects_outsider_and_waiting_session(self, repo, make_session):
        matched = make_session(
            "alice", FIXED_NOW, status=SessionStatus.MATCHED.value, user2_id="bob"
        )
        waiting = make_session("carol", FIXED_NOW)

        assert repo.set_joined(matched.id, "mallory") is False
        assert repo.set_joined(waiting.id, "carol") is False


class TestReminderClaim:
    def test_reminder_marked_once(self, repo, make_session):
        session = make_session(
            "alice",
            FIXED_NOW + timedelta(minutes=10),
            status=SessionStatus.MATCHED.value,
            user2_id="bob",
        )

        assert repo.mark_reminder_sent(session.id, FIXED_NOW) is True
        assert repo.mark_reminder_sent(session.id, FIXED_NOW) is False


class TestQueries:
    def test_active_slot_unique_per_owner(self, db, repo, make_session):
        start = FIXED_NOW + timedelta(days=1)
        make_session("alice", start)

        with pytest.raises(IntegrityError):
            repo.create(user1_id="alice", start_time=start, duration=50)
        db.rollback()

    def test_terminal_session_frees_the_slot(self, db, repo, make_session):
        start = FIXED_NOW + timedelta(days=1)
        make_session("alice", start, status=SessionStatus.CANCELLED.value)

        created = repo.create(user1_id="alice", start_time=start, duration=50)
        db.commit()

        assert created.status == SessionStatus.WAITING.value

    def test_has_active_booking_checks_both_sides(self, repo, make_session):
        start = FIXED_NOW + timedelta(days=1)
        make_session("alice", start, status=SessionStatus.MATCHED.value, user2_id="bob")

        assert repo.has_active_booking("alice", start, 50) is True
        assert repo.has_active_booking("bob", start, 50) is True
        assert repo.has_active_booking("bob", start, 25) is False
        assert repo.has_active_booking("carol", start, 50) is False

    def test_find_open_at_orders_oldest_first(self, repo, make_session):
        start = FIXED_NOW + timedelta(days=1)
        newer = make_session("bob", start, created_at=FIXED_NOW - timedelta(minutes=1))
        older = make_session("carol", start, created_at=FIXED_NOW - timedelta(minutes=5))
        make_session("dave", start, duration=25)

        found = repo.find_open_at(start, 50, exclude_user_id="alice")

        assert [s.id for s in found] == [older.id, newer.id]

    def test_find_active_skips_terminal_sessions(self, repo, make_session):
        waiting = make_session("alice", FIXED_NOW + timedelta(days=2))
        matched = make_session(
            "carol", FIXED_NOW + timedelta(days=1), status=SessionStatus.MATCHED.value, user2_id="dave"
        )
        make_session("erin", FIXED_NOW + timedelta(days=1), status=SessionStatus.CANCELLED.value)

        assert [s.id for s in repo.find_active()] == [matched.id, waiting.id]

    def test_find_no_show_candidates(self, repo, make_session):
        late = make_session(
            "alice",
            FIXED_NOW - timedelta(minutes=6),
            status=SessionStatus.MATCHED.value,
            user2_id="bob",
        )
        make_session(
            "carol",
            FIXED_NOW - timedelta(minutes=3),
            status=SessionStatus.MATCHED.value,
            user2_id="dave",
        )

        found = repo.find_no_show_candidates(FIXED_NOW - timedelta(minutes=5))

        assert [s.id for s in found] == [late.id]

    def test_list_for_user_splits_upcoming_and_past(self, repo, make_session):
        upcoming = make_session("alice", FIXED_NOW + timedelta(days=1))
        past = make_session(
            "bob",
            FIXED_NOW - timedelta(days=1),
            status=SessionStatus.COMPLETED.value,
            user2_id="alice",
        )

        assert [s.id for s in repo.list_for_user("alice", now=FIXED_NOW, upcoming=True)] == [
            upcoming.id
        ]
        assert [s.id for s in repo.list_for_user("alice", now=FIXED_NOW, upcoming=False)] == [
            past.id
        ]
