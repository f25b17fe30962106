"""Schemas for COR auditors."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from cor_engine.models.auditor import AuditorStatus, AuditorType
from cor_engine.services.requirements import AUDITOR_MINIMUM_AUDITS_PER_CYCLE
from cor_engine.services.status import auditor_status


class AuditorCreateRequest(BaseModel):
    """Request schema for registering an auditor."""
    name: str = Field(..., min_length=1, max_length=255)
    auditor_type: AuditorType = AuditorType.INTERNAL
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    certification_number: Optional[str] = Field(None, max_length=100)
    certified_date: Optional[datetime] = None
    training_hours: float = Field(..., ge=0)
    audits_completed: int = Field(0, ge=0)
    notes: Optional[str] = None


class AuditorUpdateRequest(BaseModel):
    """Request schema for updating an auditor (status may only toggle active/inactive)."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    auditor_type: Optional[AuditorType] = None
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    certification_number: Optional[str] = Field(None, max_length=100)
    certified_date: Optional[datetime] = None
    training_hours: Optional[float] = Field(None, ge=0)
    status: Optional[AuditorStatus] = None
    notes: Optional[str] = None


class AuditorResponse(BaseModel):
    """Response schema for auditor."""
    id: int
    organization_id: str
    name: str
    auditor_type: AuditorType
    email: Optional[str] = None
    phone: Optional[str] = None
    certification_number: Optional[str] = None
    certified_date: Optional[datetime] = None
    recertification_due: Optional[datetime] = None
    training_hours: float
    audits_completed: int
    last_audit_date: Optional[datetime] = None
    status: AuditorStatus
    calculated_status: AuditorStatus = AuditorStatus.ACTIVE
    minimum_practice_met: bool = False
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @classmethod
    def from_model(cls, auditor, now: datetime) -> "AuditorResponse":
        response = cls.model_validate(auditor)
        response.calculated_status = auditor_status(auditor, now)
        response.minimum_practice_met = auditor.audits_completed >= AUDITOR_MINIMUM_AUDITS_PER_CYCLE
        return response


class AuditorListResponse(BaseModel):
    items: List[AuditorResponse]
    total: int
