"""Counter updates on profiles and the best-effort booking log."""

from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from focuspair.models.booking_log import BookingAction, BookingLogEntry
from focuspair.models.profile import ParticipantProfile
from focuspair.repositories.booking_log_repository import BookingLogRepository
from focuspair.repositories.profile_repository import ProfileRepository


def _profile(db, user_id):
    return db.get(ParticipantProfile, user_id, populate_existing=True)


def test_increment_no_show_adds_a_strike(db, make_profile):
    make_profile("alice")
    repo = ProfileRepository(db)

    assert repo.increment_no_show("alice") is True
    assert repo.increment_no_show("alice") is True
    db.commit()

    row = _profile(db, "alice")
    assert row.no_show_count == 2
    assert row.strike_count == 2


def test_increment_no_show_unknown_user(db):
    assert ProfileRepository(db).increment_no_show("ghost") is False


def test_increment_total_sessions_counts_each_user_once(db, make_profile):
    make_profile("alice")
    make_profile("bob")
    repo = ProfileRepository(db)

    assert repo.increment_total_sessions(["alice", "bob", None]) == 2
    db.commit()

    assert _profile(db, "alice").total_sessions == 1
    assert _profile(db, "bob").total_sessions == 1
    assert repo.increment_total_sessions([]) == 0


def test_get_many_omits_missing_ids(db, make_profile):
    make_profile("alice", language="nl")

    found = ProfileRepository(db).get_many(["alice", "ghost", ""])

    assert list(found) == ["alice"]
    assert found["alice"].language == "nl"


def test_booking_log_append(db):
    entry = BookingLogRepository(db).append("alice", "01J0000000000000000000000A", BookingAction.BOOKED)
    db.commit()

    assert entry is not None
    stored = db.query(BookingLogEntry).one()
    assert stored.action == "booked"
    assert stored.created_at is not None


def test_booking_log_failure_is_swallowed(db):
    repo = BookingLogRepository(db)

    with patch.object(db, "add", side_effect=OperationalError("INSERT", {}, Exception("locked"))):
        assert repo.append("alice", "01J0000000000000000000000A", BookingAction.CANCELLED) is None

    db.commit()
    assert db.query(BookingLogEntry).count() == 0
