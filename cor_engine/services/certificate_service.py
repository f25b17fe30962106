"""
Service for issuing and revoking COR certificates.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from cor_engine.core.exceptions import PreconditionError, StoreError
from cor_engine.models.audit import Audit, AuditStatus, AuditType
from cor_engine.models.certificate import Certificate, CertificateStatus, CORType
from cor_engine.schemas.certificate import CertificateIssueRequest
from cor_engine.services.activity_service import ActivityAction, ResourceType, log_activity
from cor_engine.services.base import OrganizationScopedService, store_operation
from cor_engine.services.requirements import CERTIFICATE_VALIDITY_YEARS
from cor_engine.utils.dates import add_years, ensure_utc

logger = logging.getLogger(__name__)

CERTIFYING_AUDIT_TYPES = (AuditType.CERTIFICATION, AuditType.RECERTIFICATION)


def certificate_expiry(issue_date: datetime) -> datetime:
    """Expiry is always exactly CERTIFICATE_VALIDITY_YEARS after issue."""
    return add_years(ensure_utc(issue_date), CERTIFICATE_VALIDITY_YEARS)


class CertificateService(OrganizationScopedService):
    """Certificate lifecycle for one organization."""

    def get_certificate(self, certificate_id: int) -> Certificate:
        return self._get_scoped(Certificate, certificate_id, "Certificate")

    def list_certificates(self) -> List[Certificate]:
        """All certificates, newest issue first."""
        try:
            return (
                self.db.query(Certificate)
                .filter(Certificate.organization_id == self.organization_id)
                .order_by(Certificate.issue_date.desc(), Certificate.id.desc())
                .all()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError("getCertificates", e) from e

    def get_active_certificate(self, cor_type: CORType = CORType.OHS) -> Optional[Certificate]:
        """
        Most recently issued, non-revoked certificate of the given type.

        The result may still be expired; callers derive the display status.
        """
        try:
            return (
                self.db.query(Certificate)
                .filter(
                    Certificate.organization_id == self.organization_id,
                    Certificate.cor_type == cor_type,
                    # status is NULL unless revoked
                    Certificate.status.is_(None),
                )
                .order_by(Certificate.issue_date.desc(), Certificate.id.desc())
                .first()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError("getActiveCertificate", e) from e

    def _certifying_audit(self, audit_id: int) -> Audit:
        audit = self._get_scoped(Audit, audit_id, "Audit")
        if audit.audit_type not in CERTIFYING_AUDIT_TYPES:
            raise PreconditionError(
                f"Certificates can only be issued from a certification or recertification audit; "
                f"audit {audit.audit_number} is a {AuditType(audit.audit_type).value} audit",
                rule="certifying_audit_type",
            )
        # a scored-but-open audit is only provisionally passed
        if audit.status != AuditStatus.PASSED or not audit.is_closed:
            state = AuditStatus(audit.status).value
            if not audit.is_closed:
                state = f"provisionally {state}"
            raise PreconditionError(
                f"Audit {audit.audit_number} is {state}; "
                f"a certificate requires a completed, passed audit",
                rule="certifying_audit_passed",
            )
        if audit.certificate_id is not None:
            raise PreconditionError(
                f"Audit {audit.audit_number} already issued certificate {audit.certificate_id}",
                rule="certifying_audit_unused",
            )
        return audit

    def issue_certificate(
        self, data: CertificateIssueRequest, now: Optional[datetime] = None
    ) -> Certificate:
        """
        Issue a certificate valid for three years from its issue date.

        When the certifying audit is given, the audit is linked back to the
        new certificate in the same transaction.
        """
        now = self._now(now)
        issue_date = ensure_utc(data.issue_date) if data.issue_date else now

        with store_operation(self.db, "issueCertificate"):
            audit = None
            if data.certification_audit_id is not None:
                audit = self._certifying_audit(data.certification_audit_id)

            certificate = Certificate(
                organization_id=self.organization_id,
                cor_type=data.cor_type,
                certificate_number=data.certificate_number,
                status=None,
                issue_date=issue_date,
                expiry_date=certificate_expiry(issue_date),
                certification_audit_id=data.certification_audit_id,
                notes=data.notes,
            )
            self.db.add(certificate)
            self.db.flush()

            if audit is not None:
                audit.certificate_id = certificate.id

            log_activity(
                self.db, self.organization_id, ActivityAction.CERTIFICATE_ISSUE, ResourceType.CERTIFICATE,
                certificate.id,
                details={
                    "cor_type": data.cor_type.value,
                    "certification_audit_id": data.certification_audit_id,
                },
            )

        self.db.refresh(certificate)
        logger.info(
            f"Issued {data.cor_type.value} certificate id={certificate.id} for {self.organization_id}, "
            f"expires {certificate.expiry_date}"
        )
        return certificate

    def revoke_certificate(
        self, certificate_id: int, reason: str, now: Optional[datetime] = None
    ) -> Certificate:
        """Store REVOKED and the reason. The only status ever written directly."""
        now = self._now(now)
        with store_operation(self.db, "revokeCertificate"):
            certificate = self.get_certificate(certificate_id)
            if certificate.status == CertificateStatus.REVOKED:
                raise PreconditionError(
                    f"Certificate {certificate_id} is already revoked",
                    rule="certificate_not_revoked",
                )
            if not reason or not reason.strip():
                raise PreconditionError("A revocation reason is required", rule="revocation_reason")

            certificate.status = CertificateStatus.REVOKED
            certificate.revocation_reason = reason.strip()
            certificate.revoked_at = now
            log_activity(
                self.db, self.organization_id, ActivityAction.CERTIFICATE_REVOKE, ResourceType.CERTIFICATE,
                certificate.id, details={"reason": certificate.revocation_reason},
            )

        self.db.refresh(certificate)
        logger.info(f"Revoked certificate id={certificate_id} for {self.organization_id}")
        return certificate
