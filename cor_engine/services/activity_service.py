"""
Activity logging service for the COR audit trail.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from cor_engine.models.activity_log import ActivityLog

logger = logging.getLogger(__name__)


def log_activity(
    db: Session,
    organization_id: str,
    action: str,
    resource_type: Optional[str] = None,
    resource_id: Optional[int] = None,
    details: Optional[Dict[str, Any]] = None,
) -> ActivityLog:
    """
    Add an activity row to the current unit of work.

    The row is not committed here: it is written together with the change it
    describes, or not at all.

    Args:
        db: Database session
        organization_id: Owning organization
        action: Action name (see ActivityAction)
        resource_type: Type of resource affected (see ResourceType)
        resource_id: ID of the affected resource
        details: Additional JSON details about the action
    """
    activity = ActivityLog(
        organization_id=organization_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        details=details,
    )
    db.add(activity)
    logger.debug(f"Logged activity: {action} {resource_type}={resource_id} org={organization_id}")
    return activity


def list_activity(
    db: Session,
    organization_id: str,
    action: Optional[str] = None,
    resource_type: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[ActivityLog], int]:
    """Newest-first activity for an organization, with total count."""
    query = db.query(ActivityLog).filter(ActivityLog.organization_id == organization_id)
    if action:
        query = query.filter(ActivityLog.action == action)
    if resource_type:
        query = query.filter(ActivityLog.resource_type == resource_type)

    total = query.count()
    items = (
        query.order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return items, total


class ActivityAction:
    """Constants for activity actions."""
    AUDIT_SCHEDULE = "audit_schedule"
    AUDIT_UPDATE = "audit_update"
    AUDIT_SCORE = "audit_score"
    AUDIT_COMPLETE = "audit_complete"
    CERTIFICATE_ISSUE = "certificate_issue"
    CERTIFICATE_REVOKE = "certificate_revoke"
    AUDITOR_REGISTER = "auditor_register"
    AUDITOR_UPDATE = "auditor_update"
    AUDITOR_RECORD_AUDIT = "auditor_record_audit"
    DEFICIENCY_OPEN = "deficiency_open"
    DEFICIENCY_UPDATE = "deficiency_update"
    DEFICIENCY_CLOSE = "deficiency_close"


class ResourceType:
    """Constants for resource types."""
    AUDIT = "audit"
    CERTIFICATE = "certificate"
    AUDITOR = "auditor"
    DEFICIENCY = "deficiency"
