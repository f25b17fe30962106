"""
Tests for the deficiency tracker.
"""
from datetime import datetime, timedelta, timezone

import pytest

from cor_engine.core.exceptions import NotFoundError, PreconditionError
from cor_engine.models.audit import AuditType
from cor_engine.models.deficiency import DeficiencySeverity, DeficiencyStatus
from cor_engine.schemas.audit import AuditCreateRequest
from cor_engine.schemas.deficiency import (
    DeficiencyCloseRequest,
    DeficiencyCreateRequest,
    DeficiencyResponse,
    DeficiencyUpdateRequest,
)
from cor_engine.services.audit_service import AuditService
from cor_engine.services.deficiency_service import DeficiencyService, deficiency_due_date
from cor_engine.services.requirements import ElementId
from cor_engine.utils.dates import ensure_utc

NOW = datetime(2026, 2, 10, 8, 30, tzinfo=timezone.utc)


@pytest.fixture
def audit(db_session, organization_id):
    return AuditService(db_session, organization_id).schedule_audit(
        AuditCreateRequest(audit_type=AuditType.CERTIFICATION, scheduled_date=NOW), now=NOW
    )


def _open(service, audit_id, severity, now=NOW, description="Missing JHSC minutes"):
    return service.open_deficiency(
        DeficiencyCreateRequest(audit_id=audit_id, severity=severity, description=description),
        now=now,
    )


@pytest.mark.parametrize(
    "severity,days",
    [(DeficiencySeverity.MINOR, 30), (DeficiencySeverity.MAJOR, 14), (DeficiencySeverity.CRITICAL, 7)],
)
def test_due_date_by_severity(severity, days):
    assert deficiency_due_date(severity, NOW) == NOW + timedelta(days=days)


def test_open_deficiency(db_session, organization_id, audit):
    deficiency = DeficiencyService(db_session, organization_id).open_deficiency(
        DeficiencyCreateRequest(
            audit_id=audit.id,
            severity=DeficiencySeverity.MAJOR,
            description="Lockout procedure not posted at press line",
            element_id=ElementId.ELEMENT2,
            assigned_to="Plant supervisor",
        ),
        now=NOW,
    )

    assert deficiency.status == DeficiencyStatus.OPEN
    assert deficiency.element_id == "element2"
    assert ensure_utc(deficiency.due_date) == NOW + timedelta(days=14)
    assert deficiency.closed_by is None and deficiency.verified_by is None


def test_open_deficiency_requires_audit_in_organization(db_session, organization_id, audit):
    service = DeficiencyService(db_session, f"{organization_id}-other")

    with pytest.raises(NotFoundError):
        _open(service, audit.id, DeficiencySeverity.MINOR)


def test_open_deficiencies_sorted_by_due_date(db_session, organization_id, audit):
    service = DeficiencyService(db_session, organization_id)
    minor = _open(service, audit.id, DeficiencySeverity.MINOR)
    critical = _open(service, audit.id, DeficiencySeverity.CRITICAL)
    major = _open(service, audit.id, DeficiencySeverity.MAJOR)
    closed = _open(service, audit.id, DeficiencySeverity.CRITICAL, now=NOW - timedelta(days=1))
    service.close_deficiency(closed.id, DeficiencyCloseRequest(closed_by="H&S coordinator"), now=NOW)

    assert [d.id for d in service.list_open()] == [critical.id, major.id, minor.id]


def test_list_for_audit_newest_first(db_session, organization_id, audit):
    service = DeficiencyService(db_session, organization_id)
    first = _open(service, audit.id, DeficiencySeverity.MINOR, now=NOW)
    second = _open(service, audit.id, DeficiencySeverity.MINOR, now=NOW + timedelta(hours=2))

    assert [d.id for d in service.list_for_audit(audit.id)] == [second.id, first.id]


def test_close_deficiency_once(db_session, organization_id, audit):
    service = DeficiencyService(db_session, organization_id)
    deficiency = _open(service, audit.id, DeficiencySeverity.MINOR)

    closed = service.close_deficiency(
        deficiency.id,
        DeficiencyCloseRequest(
            closed_by="Safety lead", closure_notes="Minutes filed for Q1", verified_by="External auditor"
        ),
        now=NOW + timedelta(days=3),
    )

    assert closed.status == DeficiencyStatus.CLOSED
    assert closed.closed_by == "Safety lead"
    assert closed.verified_by == "External auditor"
    assert ensure_utc(closed.closed_date) == NOW + timedelta(days=3)

    with pytest.raises(PreconditionError):
        service.close_deficiency(deficiency.id, DeficiencyCloseRequest(closed_by="Someone else"), now=NOW)


def test_closed_deficiency_cannot_be_edited(db_session, organization_id, audit):
    service = DeficiencyService(db_session, organization_id)
    deficiency = _open(service, audit.id, DeficiencySeverity.MINOR)
    service.update_deficiency(deficiency.id, DeficiencyUpdateRequest(corrective_action="Post minutes monthly"))
    service.close_deficiency(deficiency.id, DeficiencyCloseRequest(closed_by="Safety lead"), now=NOW)

    with pytest.raises(PreconditionError):
        service.update_deficiency(deficiency.id, DeficiencyUpdateRequest(assigned_to="New owner"))

    assert service.get_deficiency(deficiency.id).corrective_action == "Post minutes monthly"


def test_overdue_is_derived_at_read_time(db_session, organization_id, audit):
    deficiency = _open(DeficiencyService(db_session, organization_id), audit.id, DeficiencySeverity.CRITICAL)

    assert DeficiencyResponse.from_model(deficiency, NOW + timedelta(days=6)).is_overdue is False
    assert DeficiencyResponse.from_model(deficiency, NOW + timedelta(days=8)).is_overdue is True
