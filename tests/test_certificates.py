"""
Tests for certificate issue, revocation and lookup.
"""
from datetime import datetime, timedelta, timezone

import pytest

from cor_engine.core.exceptions import NotFoundError, PreconditionError
from cor_engine.models.audit import AuditStatus, AuditType
from cor_engine.models.certificate import CertificateStatus, CORType
from cor_engine.schemas.audit import AuditCompleteRequest, AuditCreateRequest
from cor_engine.schemas.certificate import CertificateIssueRequest, CertificateResponse
from cor_engine.schemas.element_score import ElementScoreInput
from cor_engine.services.audit_service import AuditService
from cor_engine.services.certificate_service import CertificateService, certificate_expiry
from cor_engine.services.requirements import ELEMENT_ORDER
from cor_engine.utils.dates import ensure_utc

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)


def _passed_audit(db, organization_id, audit_type=AuditType.CERTIFICATION, passed=True):
    service = AuditService(db, organization_id)
    audit = service.schedule_audit(AuditCreateRequest(audit_type=audit_type, scheduled_date=NOW), now=NOW)
    return service.complete_audit(audit.id, AuditCompleteRequest(passed=passed, overall_score=86), now=NOW)


def test_expiry_is_exactly_three_years_after_issue():
    assert certificate_expiry(datetime(2026, 5, 1, tzinfo=timezone.utc)) == datetime(2029, 5, 1, tzinfo=timezone.utc)
    # Feb 29 has no counterpart three years on
    assert certificate_expiry(datetime(2028, 2, 29, tzinfo=timezone.utc)) == datetime(2031, 3, 1, tzinfo=timezone.utc)


def test_issue_certificate_stores_no_status_and_derives_active(db_session, organization_id):
    service = CertificateService(db_session, organization_id)

    certificate = service.issue_certificate(
        CertificateIssueRequest(cor_type=CORType.OHS, issue_date=NOW, certificate_number="COR-ON-1001"),
        now=NOW,
    )
    response = CertificateResponse.from_model(certificate, NOW)

    assert certificate.status is None
    assert ensure_utc(certificate.expiry_date) == datetime(2029, 5, 1, 12, 0, tzinfo=timezone.utc)
    assert response.calculated_status == CertificateStatus.ACTIVE


def test_issue_date_defaults_to_now(db_session, organization_id):
    certificate = CertificateService(db_session, organization_id).issue_certificate(
        CertificateIssueRequest(), now=NOW
    )

    assert ensure_utc(certificate.issue_date) == NOW


def test_issue_from_passed_audit_back_links_audit(db_session, organization_id):
    audit = _passed_audit(db_session, organization_id)

    certificate = CertificateService(db_session, organization_id).issue_certificate(
        CertificateIssueRequest(certification_audit_id=audit.id), now=NOW
    )
    db_session.refresh(audit)

    assert certificate.certification_audit_id == audit.id
    assert audit.certificate_id == certificate.id


def test_issue_rejects_failed_audit(db_session, organization_id):
    audit = _passed_audit(db_session, organization_id, passed=False)

    with pytest.raises(PreconditionError) as exc_info:
        CertificateService(db_session, organization_id).issue_certificate(
            CertificateIssueRequest(certification_audit_id=audit.id), now=NOW
        )

    assert exc_info.value.rule == "certifying_audit_passed"
    assert CertificateService(db_session, organization_id).list_certificates() == []


def test_issue_rejects_maintenance_audit(db_session, organization_id):
    audit = _passed_audit(db_session, organization_id, audit_type=AuditType.MAINTENANCE)

    with pytest.raises(PreconditionError) as exc_info:
        CertificateService(db_session, organization_id).issue_certificate(
            CertificateIssueRequest(certification_audit_id=audit.id), now=NOW
        )

    assert exc_info.value.rule == "certifying_audit_type"


def test_issue_rejects_provisionally_passed_audit(db_session, organization_id):
    audits = AuditService(db_session, organization_id)
    audit = audits.schedule_audit(
        AuditCreateRequest(audit_type=AuditType.CERTIFICATION, scheduled_date=NOW), now=NOW
    )
    scored, _ = audits.update_element_scores(
        audit.id,
        [
            ElementScoreInput(element_id=e, documentation_score=90, interview_score=90, observation_score=90)
            for e in ELEMENT_ORDER
        ],
    )
    assert scored.status == AuditStatus.PASSED
    assert not scored.is_closed

    with pytest.raises(PreconditionError) as exc_info:
        CertificateService(db_session, organization_id).issue_certificate(
            CertificateIssueRequest(certification_audit_id=audit.id), now=NOW
        )

    assert exc_info.value.rule == "certifying_audit_passed"
    assert CertificateService(db_session, organization_id).list_certificates() == []
    assert audits.get_audit(audit.id).certificate_id is None


def test_audit_can_certify_only_once(db_session, organization_id):
    audit = _passed_audit(db_session, organization_id)
    service = CertificateService(db_session, organization_id)
    first = service.issue_certificate(CertificateIssueRequest(certification_audit_id=audit.id), now=NOW)

    with pytest.raises(PreconditionError) as exc_info:
        service.issue_certificate(CertificateIssueRequest(certification_audit_id=audit.id), now=NOW)

    assert exc_info.value.rule == "certifying_audit_unused"
    assert [c.id for c in service.list_certificates()] == [first.id]
    db_session.refresh(audit)
    assert audit.certificate_id == first.id


def test_revoke_sets_reason_and_wins_over_dates(db_session, organization_id):
    service = CertificateService(db_session, organization_id)
    certificate = service.issue_certificate(CertificateIssueRequest(issue_date=NOW), now=NOW)

    revoked = service.revoke_certificate(certificate.id, "Fraudulent injury reporting", now=NOW)

    assert revoked.status == CertificateStatus.REVOKED
    assert revoked.revocation_reason == "Fraudulent injury reporting"
    assert revoked.revoked_at is not None
    assert CertificateResponse.from_model(revoked, NOW).calculated_status == CertificateStatus.REVOKED


def test_revoke_twice_is_rejected(db_session, organization_id):
    service = CertificateService(db_session, organization_id)
    certificate = service.issue_certificate(CertificateIssueRequest(issue_date=NOW), now=NOW)
    service.revoke_certificate(certificate.id, "first", now=NOW)

    with pytest.raises(PreconditionError):
        service.revoke_certificate(certificate.id, "second", now=NOW)


def test_active_certificate_is_latest_non_revoked_of_type(db_session, organization_id):
    service = CertificateService(db_session, organization_id)
    older = service.issue_certificate(CertificateIssueRequest(issue_date=NOW - timedelta(days=1200)), now=NOW)
    newer = service.issue_certificate(CertificateIssueRequest(issue_date=NOW - timedelta(days=10)), now=NOW)
    service.issue_certificate(CertificateIssueRequest(cor_type=CORType.RTW, issue_date=NOW), now=NOW)

    assert service.get_active_certificate(CORType.OHS).id == newer.id

    service.revoke_certificate(newer.id, "Audit findings falsified", now=NOW)
    active = service.get_active_certificate(CORType.OHS)

    assert active.id == older.id
    # returned even though it is past expiry; callers derive the status
    assert CertificateResponse.from_model(active, NOW).calculated_status == CertificateStatus.EXPIRED


def test_no_active_certificate(db_session, organization_id):
    assert CertificateService(db_session, organization_id).get_active_certificate() is None


def test_certificate_from_another_organization_is_not_found(db_session, organization_id):
    certificate = CertificateService(db_session, organization_id).issue_certificate(
        CertificateIssueRequest(), now=NOW
    )

    with pytest.raises(NotFoundError):
        CertificateService(db_session, f"{organization_id}-other").revoke_certificate(certificate.id, "x")
