"""Schemas for COR audit operations."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from cor_engine.models.audit import AuditStatus, AuditType
from cor_engine.models.certificate import CORType
from cor_engine.schemas.element_score import ElementScore
from cor_engine.services.status import audit_report_overdue


class AuditCreateRequest(BaseModel):
    """Request schema for scheduling an audit."""
    audit_type: AuditType
    cor_type: CORType = CORType.OHS
    scheduled_date: datetime
    lead_auditor_id: Optional[int] = None
    report_notes: Optional[str] = None


class AuditUpdateRequest(BaseModel):
    """Editable audit details. Outcomes are set by scoring or completion, not here."""
    scheduled_date: Optional[datetime] = None
    lead_auditor_id: Optional[int] = None
    report_notes: Optional[str] = None
    status: Optional[AuditStatus] = None  # only in_progress or completed are accepted


class AuditCompleteRequest(BaseModel):
    """Authoritative close-out of an audit."""
    passed: bool
    overall_score: Optional[float] = Field(None, ge=0, le=100)
    completed_date: Optional[datetime] = None
    report_notes: Optional[str] = None


class AuditResponse(BaseModel):
    """Response schema for an audit with its element scores."""
    id: int
    organization_id: str
    audit_number: str
    audit_type: AuditType
    cor_type: CORType
    status: AuditStatus
    scheduled_date: datetime
    completed_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    overall_score: Optional[float] = None
    element_scores: List[ElementScore]
    report_notes: Optional[str] = None
    lead_auditor_id: Optional[int] = None
    certificate_id: Optional[int] = None
    is_overdue: bool = False
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @classmethod
    def from_model(cls, audit, now: datetime) -> "AuditResponse":
        response = cls.model_validate(audit)
        response.is_overdue = audit_report_overdue(audit, now)
        return response


class AuditListResponse(BaseModel):
    """Response schema for audit list."""
    items: List[AuditResponse]
    total: int


class ElementScoresResponse(BaseModel):
    """Result of recomputing an audit's scores."""
    audit_id: int
    status: AuditStatus
    element_scores: List[ElementScore]
    overall_score: Optional[int] = None
    all_elements_passed: bool
    passed: bool
