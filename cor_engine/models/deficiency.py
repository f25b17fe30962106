"""
Deficiency (audit finding) database model.
"""
import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from cor_engine.core.database import Base


class DeficiencySeverity(str, enum.Enum):
    """Severity drives the remediation window."""
    MINOR = "minor"  # 30 days
    MAJOR = "major"  # 14 days
    CRITICAL = "critical"  # 7 days


class DeficiencyStatus(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


class Deficiency(Base):
    """A finding from an audit that requires remediation."""
    __tablename__ = "cor_deficiencies"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(String(100), nullable=False, index=True)
    audit_id = Column(Integer, ForeignKey("cor_audits.id", ondelete="CASCADE"), nullable=False, index=True)
    element_id = Column(String(20), nullable=True)

    severity = Column(Enum(DeficiencySeverity), nullable=False, index=True)
    description = Column(Text, nullable=False)
    corrective_action = Column(Text, nullable=True)
    assigned_to = Column(String(255), nullable=True)

    status = Column(Enum(DeficiencyStatus), nullable=False, default=DeficiencyStatus.OPEN, index=True)
    due_date = Column(DateTime(timezone=True), nullable=False, index=True)

    # Closure metadata, all NULL while open
    closed_by = Column(String(255), nullable=True)
    closure_notes = Column(Text, nullable=True)
    verified_by = Column(String(255), nullable=True)
    closed_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    audit = relationship("Audit", backref="deficiencies")
