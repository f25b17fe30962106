"""Schemas for the audit cycle projection and readiness estimate."""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel

from cor_engine.models.audit import AuditType
from cor_engine.schemas.certificate import CertificateResponse


class CycleStatusResponse(BaseModel):
    """Where the organization sits in the 3-year COR cycle."""
    has_certificate: bool
    next_audit_type: AuditType
    next_audit_due: Optional[datetime] = None
    cycle_year: int
    years_since_certification: Optional[float] = None
    maintenance_audits_completed: int
    maintenance_audits_required: int
    total_audits: int
    certificate: Optional[CertificateResponse] = None

    @classmethod
    def from_status(cls, status, now: datetime) -> "CycleStatusResponse":
        return cls(
            has_certificate=status.has_certificate,
            next_audit_type=status.next_audit_type,
            next_audit_due=status.next_audit_due,
            cycle_year=status.cycle_year,
            years_since_certification=status.years_since_certification,
            maintenance_audits_completed=status.maintenance_audits_completed,
            maintenance_audits_required=status.maintenance_audits_required,
            total_audits=status.total_audits,
            certificate=(
                CertificateResponse.from_model(status.certificate, now) if status.certificate else None
            ),
        )


class ElementReadinessResponse(BaseModel):
    name: str
    documentation_score: float = 0
    interview_score: float = 0
    observation_score: float = 0
    estimated_score: float = 0
    assessed: bool = False
    gaps: List[str] = []
    strengths: List[str] = []

    model_config = {"from_attributes": True}


class ReadinessResponse(BaseModel):
    organization_id: str
    overall_score: int
    elements: Dict[str, ElementReadinessResponse]
    recommendations: List[str]
    calculated_at: datetime

    model_config = {"from_attributes": True}
