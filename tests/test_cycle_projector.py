"""
Tests for the audit cycle projector.
"""
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from cor_engine.models.audit import AuditStatus, AuditType
from cor_engine.models.certificate import CORType
from cor_engine.schemas.audit import AuditCompleteRequest, AuditCreateRequest
from cor_engine.schemas.certificate import CertificateIssueRequest
from cor_engine.services.audit_service import AuditService
from cor_engine.services.certificate_service import CertificateService, certificate_expiry
from cor_engine.services.cycle_projector import CycleProjector, project_cycle
from cor_engine.utils.dates import add_months, ensure_utc

NOW = datetime(2026, 9, 1, 12, 0, tzinfo=timezone.utc)


def _cert(issue_date):
    return SimpleNamespace(issue_date=issue_date, expiry_date=certificate_expiry(issue_date))


def _audit(audit_type, status, completed_date):
    return SimpleNamespace(audit_type=audit_type, status=status, completed_date=completed_date)


def test_without_certificate_next_is_certification():
    status = project_cycle(None, [], NOW)

    assert status.has_certificate is False
    assert status.next_audit_type == AuditType.CERTIFICATION
    assert status.next_audit_due is None
    assert status.cycle_year == 0


def test_first_year_next_is_maintenance_six_months_after_last_pass():
    issued = NOW - timedelta(days=200)
    audits = [
        _audit(AuditType.CERTIFICATION, AuditStatus.PASSED, issued),
        _audit(AuditType.MAINTENANCE, AuditStatus.FAILED, NOW - timedelta(days=10)),
    ]

    status = project_cycle(_cert(issued), audits, NOW)

    assert status.cycle_year == 0
    assert status.next_audit_type == AuditType.MAINTENANCE
    assert status.next_audit_due == add_months(issued, 6)
    assert status.total_audits == 2
    assert status.maintenance_audits_completed == 0


def test_latest_passed_audit_drives_due_date_regardless_of_order():
    issued = NOW - timedelta(days=500)
    older = NOW - timedelta(days=300)
    newer = NOW - timedelta(days=60)
    audits = [
        _audit(AuditType.MAINTENANCE, AuditStatus.PASSED, older),
        _audit(AuditType.MAINTENANCE, AuditStatus.PASSED, newer),
    ]

    status = project_cycle(_cert(issued), audits, NOW)

    assert status.cycle_year == 1
    assert status.next_audit_due == add_months(newer, 6)
    assert status.maintenance_audits_completed == 2


def test_no_passed_audit_leaves_due_date_undetermined():
    status = project_cycle(_cert(NOW - timedelta(days=30)), [], NOW)

    assert status.next_audit_type == AuditType.MAINTENANCE
    assert status.next_audit_due is None


def test_third_year_next_is_recertification_due_at_expiry():
    issued = NOW - timedelta(days=2 * 365 + 40)
    certificate = _cert(issued)

    status = project_cycle(certificate, [], NOW)

    assert status.cycle_year == 2
    assert status.next_audit_type == AuditType.RECERTIFICATION
    assert status.next_audit_due == certificate.expiry_date


def test_cycle_wraps_after_three_years():
    status = project_cycle(_cert(NOW - timedelta(days=3 * 365 + 10)), [], NOW)

    assert status.cycle_year == 0
    assert status.next_audit_type == AuditType.MAINTENANCE


def test_maintenance_before_issue_date_is_not_counted():
    issued = NOW - timedelta(days=100)
    audits = [_audit(AuditType.MAINTENANCE, AuditStatus.PASSED, issued - timedelta(days=1))]

    assert project_cycle(_cert(issued), audits, NOW).maintenance_audits_completed == 0


def test_projection_from_stored_records(db_session, organization_id):
    issued = NOW - timedelta(days=760)  # about 25 months
    maintenance_passed = NOW - timedelta(days=150)  # about 5 months

    certificate = CertificateService(db_session, organization_id).issue_certificate(
        CertificateIssueRequest(issue_date=issued), now=NOW
    )
    audits = AuditService(db_session, organization_id)
    maintenance = audits.schedule_audit(
        AuditCreateRequest(audit_type=AuditType.MAINTENANCE, scheduled_date=maintenance_passed), now=NOW
    )
    audits.complete_audit(
        maintenance.id, AuditCompleteRequest(passed=True, completed_date=maintenance_passed), now=NOW
    )

    status = CycleProjector(db_session, organization_id).get_cycle_status(now=NOW)

    assert status.has_certificate is True
    assert status.cycle_year == 2
    assert status.next_audit_type == AuditType.RECERTIFICATION
    assert ensure_utc(status.next_audit_due) == ensure_utc(certificate.expiry_date)
    assert status.maintenance_audits_completed == 1
    assert status.total_audits == 1
    assert status.certificate.id == certificate.id


def test_revoked_certificate_is_ignored(db_session, organization_id):
    service = CertificateService(db_session, organization_id)
    certificate = service.issue_certificate(CertificateIssueRequest(issue_date=NOW - timedelta(days=30)), now=NOW)
    service.revoke_certificate(certificate.id, "Program suspended", now=NOW)

    status = CycleProjector(db_session, organization_id).get_cycle_status(now=NOW)

    assert status.has_certificate is False
    assert status.next_audit_type == AuditType.CERTIFICATION


def test_audits_of_another_cor_type_are_ignored(db_session, organization_id):
    CertificateService(db_session, organization_id).issue_certificate(
        CertificateIssueRequest(cor_type=CORType.RTW, issue_date=NOW - timedelta(days=200)), now=NOW
    )
    audits = AuditService(db_session, organization_id)
    ohs_maintenance = audits.schedule_audit(
        AuditCreateRequest(audit_type=AuditType.MAINTENANCE, scheduled_date=NOW - timedelta(days=30)), now=NOW
    )
    audits.complete_audit(
        ohs_maintenance.id,
        AuditCompleteRequest(passed=True, completed_date=NOW - timedelta(days=30)),
        now=NOW,
    )

    status = CycleProjector(db_session, organization_id).get_cycle_status(CORType.RTW, now=NOW)

    assert status.has_certificate is True
    assert status.next_audit_type == AuditType.MAINTENANCE
    assert status.maintenance_audits_completed == 0
    assert status.next_audit_due is None
    assert status.total_audits == 0
