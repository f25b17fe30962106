"""
COR audit endpoints: scheduling, scoring and close-out.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from cor_engine.core.database import get_db
from cor_engine.models.audit import AuditStatus, AuditType
from cor_engine.schemas.audit import (
    AuditCompleteRequest,
    AuditCreateRequest,
    AuditListResponse,
    AuditResponse,
    AuditUpdateRequest,
    ElementScoresResponse,
)
from cor_engine.schemas.deficiency import DeficiencyListResponse, DeficiencyResponse
from cor_engine.schemas.element_score import ElementScoresUpdateRequest
from cor_engine.services.audit_service import AuditService
from cor_engine.services.deficiency_service import DeficiencyService
from cor_engine.utils.dates import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=AuditListResponse)
async def list_audits(
    organization_id: str,
    audit_status: Optional[AuditStatus] = Query(None, alias="status", description="Filter by status"),
    audit_type: Optional[AuditType] = Query(None, description="Filter by audit type"),
    limit: Optional[int] = Query(None, ge=1, le=500, description="Maximum number of audits to return"),
    db: Session = Depends(get_db),
):
    """List audits, most recently scheduled first."""
    audits, total = AuditService(db, organization_id).list_audits(
        status=audit_status, audit_type=audit_type, limit=limit
    )
    now = utcnow()
    return AuditListResponse(items=[AuditResponse.from_model(a, now) for a in audits], total=total)


@router.post("", response_model=AuditResponse, status_code=status.HTTP_201_CREATED)
async def schedule_audit(
    organization_id: str,
    payload: AuditCreateRequest,
    db: Session = Depends(get_db),
):
    """Schedule an audit. The audit number is assigned by the engine."""
    audit = AuditService(db, organization_id).schedule_audit(payload)
    return AuditResponse.from_model(audit, utcnow())


@router.get("/{audit_id}", response_model=AuditResponse)
async def get_audit(organization_id: str, audit_id: int, db: Session = Depends(get_db)):
    audit = AuditService(db, organization_id).get_audit(audit_id)
    return AuditResponse.from_model(audit, utcnow())


@router.patch("/{audit_id}", response_model=AuditResponse)
async def update_audit(
    organization_id: str,
    audit_id: int,
    payload: AuditUpdateRequest,
    db: Session = Depends(get_db),
):
    audit = AuditService(db, organization_id).update_audit(audit_id, payload)
    return AuditResponse.from_model(audit, utcnow())


@router.put("/{audit_id}/element-scores", response_model=ElementScoresResponse)
async def update_element_scores(
    organization_id: str,
    audit_id: int,
    payload: ElementScoresUpdateRequest,
    db: Session = Depends(get_db),
):
    """
    Replace an audit's element scores and recompute its overall score.

    The full current set must be sent: exactly one entry per element.
    """
    audit, result = AuditService(db, organization_id).update_element_scores(
        audit_id, payload.element_scores
    )
    return ElementScoresResponse(
        audit_id=audit.id,
        status=audit.status,
        element_scores=result.element_scores,
        overall_score=result.overall_score,
        all_elements_passed=result.all_elements_passed,
        passed=result.passed,
    )


@router.post("/{audit_id}/complete", response_model=AuditResponse)
async def complete_audit(
    organization_id: str,
    audit_id: int,
    payload: AuditCompleteRequest,
    db: Session = Depends(get_db),
):
    audit = AuditService(db, organization_id).complete_audit(audit_id, payload)
    return AuditResponse.from_model(audit, utcnow())


@router.get("/{audit_id}/deficiencies", response_model=DeficiencyListResponse)
async def list_audit_deficiencies(organization_id: str, audit_id: int, db: Session = Depends(get_db)):
    deficiencies = DeficiencyService(db, organization_id).list_for_audit(audit_id)
    now = utcnow()
    items = [DeficiencyResponse.from_model(d, now) for d in deficiencies]
    return DeficiencyListResponse(items=items, total=len(items), overdue=sum(1 for d in items if d.is_overdue))
