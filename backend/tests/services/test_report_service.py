"""Partner reports: who may report whom, and one report per reporter."""

from datetime import timedelta

import pytest

from focuspair.core.exceptions import (
    NotParticipantException,
    SessionConflictException,
    SessionNotFoundException,
    ValidationException,
)
from focuspair.models.report import ReportStatus, SessionReport
from focuspair.models.session import SessionStatus
from focuspair.services.report_service import ReportService

from tests.helpers.clock import FIXED_NOW


@pytest.fixture
def service(db):
    return ReportService(db)


@pytest.fixture
def finished_session(make_session):
    return make_session(
        "alice",
        FIXED_NOW - timedelta(hours=1),
        status=SessionStatus.COMPLETED.value,
        user2_id="bob",
        user1_joined=True,
        user2_joined=True,
    )


def test_participant_reports_partner(db, service, finished_session):
    report = service.report("alice", finished_session.id, "bob", "harassment", "Rude on camera")

    stored = db.get(SessionReport, report.id)
    assert stored.session_id == finished_session.id
    assert stored.reporter_id == "alice"
    assert stored.reported_id == "bob"
    assert stored.reason == "harassment"
    assert stored.description == "Rude on camera"
    assert stored.status == ReportStatus.PENDING.value


def test_unknown_session(service):
    with pytest.raises(SessionNotFoundException):
        service.report("alice", "01HZZZZZZZZZZZZZZZZZZZZZZZ", "bob", "spam")


def test_outsider_cannot_report(service, finished_session):
    with pytest.raises(NotParticipantException):
        service.report("mallory", finished_session.id, "bob", "spam")


def test_reported_user_must_be_in_session(service, finished_session):
    with pytest.raises(ValidationException) as exc_info:
        service.report("alice", finished_session.id, "carol", "spam")

    assert exc_info.value.code == "REPORTED_NOT_PARTICIPANT"


def test_cannot_report_yourself(db, service, finished_session):
    with pytest.raises(ValidationException) as exc_info:
        service.report("alice", finished_session.id, "alice", "spam")

    assert exc_info.value.code == "SELF_REPORT"
    assert db.query(SessionReport).count() == 0


def test_second_report_by_same_reporter_conflicts(db, service, finished_session):
    service.report("alice", finished_session.id, "bob", "spam")

    with pytest.raises(SessionConflictException):
        service.report("alice", finished_session.id, "bob", "harassment")

    assert db.query(SessionReport).count() == 1


def test_both_participants_may_report_each_other(db, service, finished_session):
    service.report("alice", finished_session.id, "bob", "spam")
    service.report("bob", finished_session.id, "alice", "no_camera")

    assert db.query(SessionReport).filter_by(session_id=finished_session.id).count() == 2
