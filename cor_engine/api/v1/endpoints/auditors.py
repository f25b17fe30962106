"""
Auditor registry endpoints.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from cor_engine.core.database import get_db
from cor_engine.models.auditor import AuditorType
from cor_engine.schemas.auditor import (
    AuditorCreateRequest,
    AuditorListResponse,
    AuditorResponse,
    AuditorUpdateRequest,
)
from cor_engine.services.auditor_service import AuditorService
from cor_engine.utils.dates import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=AuditorListResponse)
async def list_auditors(
    organization_id: str,
    auditor_type: Optional[AuditorType] = Query(None, description="Filter by auditor type"),
    active_only: bool = Query(True, description="Only auditors whose derived status is active"),
    db: Session = Depends(get_db),
):
    now = utcnow()
    auditors = AuditorService(db, organization_id).list_auditors(
        auditor_type=auditor_type, active_only=active_only, now=now
    )
    return AuditorListResponse(
        items=[AuditorResponse.from_model(a, now) for a in auditors],
        total=len(auditors),
    )


@router.post("", response_model=AuditorResponse, status_code=status.HTTP_201_CREATED)
async def register_auditor(
    organization_id: str,
    payload: AuditorCreateRequest,
    db: Session = Depends(get_db),
):
    """Register an auditor. Rejected when training hours are below the minimum for the type."""
    auditor = AuditorService(db, organization_id).register_auditor(payload)
    return AuditorResponse.from_model(auditor, utcnow())


@router.get("/{auditor_id}", response_model=AuditorResponse)
async def get_auditor(organization_id: str, auditor_id: int, db: Session = Depends(get_db)):
    auditor = AuditorService(db, organization_id).get_auditor(auditor_id)
    return AuditorResponse.from_model(auditor, utcnow())


@router.patch("/{auditor_id}", response_model=AuditorResponse)
async def update_auditor(
    organization_id: str,
    auditor_id: int,
    payload: AuditorUpdateRequest,
    db: Session = Depends(get_db),
):
    auditor = AuditorService(db, organization_id).update_auditor(auditor_id, payload)
    return AuditorResponse.from_model(auditor, utcnow())


@router.post("/{auditor_id}/record-audit", response_model=AuditorResponse)
async def record_audit_for_auditor(organization_id: str, auditor_id: int, db: Session = Depends(get_db)):
    auditor = AuditorService(db, organization_id).record_audit_for_auditor(auditor_id)
    return AuditorResponse.from_model(auditor, utcnow())
