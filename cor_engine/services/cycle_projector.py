"""
Audit cycle projector.

COR runs on a repeating 3-year cycle: certification (or recertification) in
year 0, maintenance audits in years 1 and 2, and recertification before the
certificate expires. Nothing about the cycle is stored; the position and the
next required audit are recomputed from certificate and audit dates on every
call, so late or out-of-order audits are absorbed automatically.
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from cor_engine.core.exceptions import StoreError
from cor_engine.models.audit import Audit, AuditStatus, AuditType
from cor_engine.models.certificate import Certificate, CORType
from cor_engine.services.base import OrganizationScopedService
from cor_engine.services.certificate_service import CertificateService
from cor_engine.services.requirements import (
    CYCLE_LENGTH_YEARS,
    MAINTENANCE_AUDIT_INTERVAL_MONTHS,
    MAINTENANCE_AUDITS_PER_CYCLE,
)
from cor_engine.utils.dates import add_months, ensure_utc

logger = logging.getLogger(__name__)

SECONDS_PER_YEAR = 365 * 86400


@dataclass
class CycleStatus:
    has_certificate: bool
    next_audit_type: AuditType
    next_audit_due: Optional[datetime]
    cycle_year: int
    years_since_certification: Optional[float]
    maintenance_audits_completed: int
    maintenance_audits_required: int
    total_audits: int
    certificate: Optional[Certificate] = None


def _last_passed_completion(audits: Iterable[Audit]) -> Optional[datetime]:
    completions = [
        ensure_utc(a.completed_date)
        for a in audits
        if a.status == AuditStatus.PASSED and a.completed_date is not None
    ]
    return max(completions, default=None)


def project_cycle(
    certificate: Optional[Certificate], audits: List[Audit], now: datetime
) -> CycleStatus:
    """
    Work out where an organization sits in the COR cycle.

    Args:
        certificate: The organization's active (non-revoked) certificate, if any
        audits: The organization's audits of the same COR type, any order
        now: Reference time
    """
    if certificate is None:
        return CycleStatus(
            has_certificate=False,
            next_audit_type=AuditType.CERTIFICATION,
            next_audit_due=None,
            cycle_year=0,
            years_since_certification=None,
            maintenance_audits_completed=0,
            maintenance_audits_required=MAINTENANCE_AUDITS_PER_CYCLE,
            total_audits=len(audits),
        )

    issue_date = ensure_utc(certificate.issue_date)
    # A certificate dated in the future counts as year 0
    years_since_cert = max(0.0, (ensure_utc(now) - issue_date).total_seconds() / SECONDS_PER_YEAR)
    cycle_year = math.floor(years_since_cert) % CYCLE_LENGTH_YEARS

    maintenance_completed = sum(
        1
        for a in audits
        if a.audit_type == AuditType.MAINTENANCE
        and a.status == AuditStatus.PASSED
        and a.completed_date is not None
        and ensure_utc(a.completed_date) > issue_date
    )

    if cycle_year == CYCLE_LENGTH_YEARS - 1:
        next_audit_type = AuditType.RECERTIFICATION
        next_audit_due = ensure_utc(certificate.expiry_date)
    else:
        next_audit_type = AuditType.MAINTENANCE
        last_passed = _last_passed_completion(audits)
        next_audit_due = (
            add_months(last_passed, MAINTENANCE_AUDIT_INTERVAL_MONTHS) if last_passed else None
        )

    return CycleStatus(
        has_certificate=True,
        next_audit_type=next_audit_type,
        next_audit_due=next_audit_due,
        cycle_year=cycle_year,
        years_since_certification=round(years_since_cert, 2),
        maintenance_audits_completed=maintenance_completed,
        maintenance_audits_required=MAINTENANCE_AUDITS_PER_CYCLE,
        total_audits=len(audits),
        certificate=certificate,
    )


class CycleProjector(OrganizationScopedService):
    """Loads an organization's certificate and audit history and projects its cycle."""

    def get_cycle_status(
        self, cor_type: CORType = CORType.OHS, now: Optional[datetime] = None
    ) -> CycleStatus:
        now = self._now(now)
        certificate = CertificateService(self.db, self.organization_id).get_active_certificate(cor_type)
        try:
            audits = (
                self.db.query(Audit)
                .filter(Audit.organization_id == self.organization_id, Audit.cor_type == cor_type)
                .order_by(Audit.scheduled_date.desc())
                .all()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError("getAuditCycleStatus", e) from e

        status = project_cycle(certificate, audits, now)
        logger.debug(
            f"Cycle status for {self.organization_id}: year={status.cycle_year}, "
            f"next={status.next_audit_type.value}, due={status.next_audit_due}"
        )
        return status
