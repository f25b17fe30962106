"""
Activity log endpoints for the audit trail.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cor_engine.core.database import get_db
from cor_engine.core.exceptions import StoreError
from cor_engine.schemas.activity import ActivityLogListResponse, ActivityLogResponse
from cor_engine.services.activity_service import list_activity

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=ActivityLogListResponse)
async def list_activity_logs(
    organization_id: str,
    limit: int = Query(50, ge=1, le=500, description="Maximum number of logs to return"),
    offset: int = Query(0, ge=0, description="Number of logs to skip"),
    action: Optional[str] = Query(None, description="Filter by action type"),
    resource_type: Optional[str] = Query(None, description="Filter by resource type"),
    db: Session = Depends(get_db),
):
    """List the organization's activity, newest first."""
    try:
        logs, total = list_activity(
            db, organization_id, action=action, resource_type=resource_type, limit=limit, offset=offset
        )
    except SQLAlchemyError as e:
        logger.error(f"Error listing activity logs: {e}", exc_info=True)
        raise StoreError("listActivity", e) from e

    return ActivityLogListResponse(
        items=[ActivityLogResponse.model_validate(log) for log in logs],
        total=total,
        limit=limit,
        offset=offset,
    )
