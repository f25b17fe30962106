"""Schemas for audit deficiencies."""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from cor_engine.models.deficiency import DeficiencySeverity, DeficiencyStatus
from cor_engine.services.requirements import ElementId
from cor_engine.services.status import is_deficiency_overdue


class DeficiencyCreateRequest(BaseModel):
    """Request schema for opening a deficiency."""
    audit_id: int
    severity: DeficiencySeverity
    description: str = Field(..., min_length=1)
    element_id: Optional[ElementId] = None
    corrective_action: Optional[str] = None
    assigned_to: Optional[str] = Field(None, max_length=255)


class DeficiencyUpdateRequest(BaseModel):
    """Editable remediation details. Closing goes through the close operation."""
    description: Optional[str] = Field(None, min_length=1)
    element_id: Optional[ElementId] = None
    corrective_action: Optional[str] = None
    assigned_to: Optional[str] = Field(None, max_length=255)


class DeficiencyCloseRequest(BaseModel):
    closed_by: str = Field(..., min_length=1, max_length=255)
    closure_notes: Optional[str] = None
    verified_by: Optional[str] = Field(None, max_length=255)


class DeficiencyResponse(BaseModel):
    """Response schema for deficiency."""
    id: int
    organization_id: str
    audit_id: int
    element_id: Optional[str] = None
    severity: DeficiencySeverity
    description: str
    corrective_action: Optional[str] = None
    assigned_to: Optional[str] = None
    status: DeficiencyStatus
    due_date: datetime
    is_overdue: bool = False
    closed_by: Optional[str] = None
    closure_notes: Optional[str] = None
    verified_by: Optional[str] = None
    closed_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @classmethod
    def from_model(cls, deficiency, now: datetime) -> "DeficiencyResponse":
        response = cls.model_validate(deficiency)
        response.is_overdue = is_deficiency_overdue(deficiency, now)
        return response


class DeficiencyListResponse(BaseModel):
    items: List[DeficiencyResponse]
    total: int
    overdue: int = 0
