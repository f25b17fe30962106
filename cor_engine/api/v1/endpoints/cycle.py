"""
Audit cycle and readiness endpoints.
"""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from cor_engine.core.database import get_db
from cor_engine.models.certificate import CORType
from cor_engine.schemas.cycle import CycleStatusResponse, ReadinessResponse
from cor_engine.services.cycle_projector import CycleProjector
from cor_engine.services.readiness import calculate_readiness
from cor_engine.utils.dates import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/cycle-status", response_model=CycleStatusResponse)
async def get_cycle_status(
    organization_id: str,
    cor_type: CORType = Query(CORType.OHS, description="COR program"),
    db: Session = Depends(get_db),
):
    """Current cycle year and the next required audit, derived from dates."""
    now = utcnow()
    cycle_status = CycleProjector(db, organization_id).get_cycle_status(cor_type, now=now)
    return CycleStatusResponse.from_status(cycle_status, now)


@router.get("/readiness", response_model=ReadinessResponse)
async def get_readiness(organization_id: str, db: Session = Depends(get_db)):
    """Estimated readiness per element. Elements without an evidence source report unassessed."""
    readiness = calculate_readiness(db, organization_id)
    return ReadinessResponse.model_validate(readiness)
