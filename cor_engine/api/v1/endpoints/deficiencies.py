"""
Deficiency endpoints.
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from cor_engine.core.database import get_db
from cor_engine.schemas.deficiency import (
    DeficiencyCloseRequest,
    DeficiencyCreateRequest,
    DeficiencyListResponse,
    DeficiencyResponse,
    DeficiencyUpdateRequest,
)
from cor_engine.services.deficiency_service import DeficiencyService
from cor_engine.utils.dates import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=DeficiencyListResponse)
async def list_open_deficiencies(organization_id: str, db: Session = Depends(get_db)):
    """Open deficiencies across all audits, earliest due first."""
    deficiencies = DeficiencyService(db, organization_id).list_open()
    now = utcnow()
    items = [DeficiencyResponse.from_model(d, now) for d in deficiencies]
    return DeficiencyListResponse(items=items, total=len(items), overdue=sum(1 for d in items if d.is_overdue))


@router.post("", response_model=DeficiencyResponse, status_code=status.HTTP_201_CREATED)
async def open_deficiency(
    organization_id: str,
    payload: DeficiencyCreateRequest,
    db: Session = Depends(get_db),
):
    deficiency = DeficiencyService(db, organization_id).open_deficiency(payload)
    return DeficiencyResponse.from_model(deficiency, utcnow())


@router.get("/{deficiency_id}", response_model=DeficiencyResponse)
async def get_deficiency(organization_id: str, deficiency_id: int, db: Session = Depends(get_db)):
    deficiency = DeficiencyService(db, organization_id).get_deficiency(deficiency_id)
    return DeficiencyResponse.from_model(deficiency, utcnow())


@router.patch("/{deficiency_id}", response_model=DeficiencyResponse)
async def update_deficiency(
    organization_id: str,
    deficiency_id: int,
    payload: DeficiencyUpdateRequest,
    db: Session = Depends(get_db),
):
    deficiency = DeficiencyService(db, organization_id).update_deficiency(deficiency_id, payload)
    return DeficiencyResponse.from_model(deficiency, utcnow())


@router.post("/{deficiency_id}/close", response_model=DeficiencyResponse)
async def close_deficiency(
    organization_id: str,
    deficiency_id: int,
    payload: DeficiencyCloseRequest,
    db: Session = Depends(get_db),
):
    deficiency = DeficiencyService(db, organization_id).close_deficiency(deficiency_id, payload)
    return DeficiencyResponse.from_model(deficiency, utcnow())
