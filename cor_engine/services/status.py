"""
Read-time status derivation for certificates and auditors.

Time-based statuses are never trusted from storage: they are recomputed from
stored dates against an explicit `now` on every read. The functions here are
pure and can be called as often as a listing needs.
"""
import math
from datetime import datetime, timedelta

from cor_engine.models.auditor import AuditorStatus
from cor_engine.models.certificate import CertificateStatus
from cor_engine.models.deficiency import DeficiencyStatus
from cor_engine.services.requirements import AUDIT_REPORT_DEADLINE_DAYS, CERTIFICATE_EXPIRY_WARNING_DAYS
from cor_engine.utils.dates import ensure_utc

SECONDS_PER_DAY = 86400


def days_until(moment: datetime, now: datetime) -> int:
    """Whole days from now until moment, rounded up."""
    delta = ensure_utc(moment) - ensure_utc(now)
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


def certificate_status(certificate, now: datetime) -> CertificateStatus:
    """
    Derive a certificate's status.

    A stored REVOKED always wins. Otherwise the certificate is EXPIRED once
    `now` is past the expiry instant, EXPIRING within the 90-day warning
    window, and ACTIVE before that.
    """
    if certificate.status == CertificateStatus.REVOKED:
        return CertificateStatus.REVOKED

    expiry = ensure_utc(certificate.expiry_date)
    now = ensure_utc(now)
    if expiry < now:
        return CertificateStatus.EXPIRED
    if days_until(expiry, now) <= CERTIFICATE_EXPIRY_WARNING_DAYS:
        return CertificateStatus.EXPIRING
    return CertificateStatus.ACTIVE


def auditor_status(auditor, now: datetime) -> AuditorStatus:
    """Derive an auditor's status; a lapsed recertification overrides stored ACTIVE."""
    if auditor.status == AuditorStatus.INACTIVE:
        return AuditorStatus.INACTIVE

    if auditor.recertification_due is not None:
        if ensure_utc(auditor.recertification_due) < ensure_utc(now):
            return AuditorStatus.EXPIRED

    return AuditorStatus.ACTIVE


def is_deficiency_overdue(deficiency, now: datetime) -> bool:
    """Open deficiency past its due date. Not a stored state."""
    if deficiency.status == DeficiencyStatus.CLOSED:
        return False
    return ensure_utc(deficiency.due_date) < ensure_utc(now)


def audit_report_overdue(audit, now: datetime) -> bool:
    """Audit still open more than AUDIT_REPORT_DEADLINE_DAYS after its scheduled date."""
    if audit.completed_at is not None:
        return False
    deadline = ensure_utc(audit.scheduled_date) + timedelta(days=AUDIT_REPORT_DEADLINE_DAYS)
    return deadline < ensure_utc(now)
