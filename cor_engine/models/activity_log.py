"""
Activity log model for the COR audit trail.
"""
from sqlalchemy import Column, DateTime, Integer, JSON, String
from sqlalchemy.sql import func

from cor_engine.core.database import Base


class ActivityLog(Base):
    """One row per mutating engine operation."""
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    organization_id = Column(String(100), nullable=False, index=True)

    action = Column(String(100), nullable=False, index=True)  # e.g. "audit_schedule", "certificate_revoke"
    resource_type = Column(String(50), nullable=True, index=True)  # "audit", "certificate", "auditor", "deficiency"
    resource_id = Column(Integer, nullable=True, index=True)

    details = Column(JSON, nullable=True)
