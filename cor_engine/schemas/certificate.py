"""Schemas for COR certificates."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from cor_engine.models.certificate import CertificateStatus, CORType
from cor_engine.services.status import certificate_status


class CertificateIssueRequest(BaseModel):
    """Request schema for issuing a certificate."""
    cor_type: CORType = CORType.OHS
    issue_date: Optional[datetime] = Field(None, description="Defaults to now")
    certification_audit_id: Optional[int] = Field(
        None, description="Passed certification/recertification audit that earned the certificate"
    )
    certificate_number: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class CertificateRevokeRequest(BaseModel):
    reason: str = Field(..., min_length=1)


class CertificateResponse(BaseModel):
    """Response schema for a certificate with its derived status."""
    id: int
    organization_id: str
    cor_type: CORType
    certificate_number: Optional[str] = None
    status: Optional[CertificateStatus] = None  # stored: NULL or revoked
    calculated_status: CertificateStatus = CertificateStatus.ACTIVE
    issue_date: datetime
    expiry_date: datetime
    certification_audit_id: Optional[int] = None
    revocation_reason: Optional[str] = None
    revoked_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @classmethod
    def from_model(cls, certificate, now: datetime) -> "CertificateResponse":
        response = cls.model_validate(certificate)
        response.calculated_status = certificate_status(certificate, now)
        return response


class CertificateListResponse(BaseModel):
    items: List[CertificateResponse]
    total: int
