"""Schemas for activity log."""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel


class ActivityLogResponse(BaseModel):
    """Response schema for activity log entry."""
    id: int
    timestamp: datetime
    organization_id: str
    action: str
    resource_type: Optional[str] = None
    resource_id: Optional[int] = None
    details: Optional[Dict[str, Any]] = None

    model_config = {"from_attributes": True}


class ActivityLogListResponse(BaseModel):
    """Response schema for activity log list."""
    items: List[ActivityLogResponse]
    total: int
    limit: int
    offset: int
