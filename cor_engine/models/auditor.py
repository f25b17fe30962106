"""
COR auditor database model.
"""
import enum

from sqlalchemy import Column, DateTime, Enum, Float, Integer, String, Text
from sqlalchemy.sql import func

from cor_engine.core.database import Base


class AuditorType(str, enum.Enum):
    """Auditor qualification levels."""
    INTERNAL = "internal"  # 14 training hours minimum
    EXTERNAL = "external"  # 35 training hours minimum


class AuditorStatus(str, enum.Enum):
    """Auditor statuses. EXPIRED is derived, never stored."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"


class Auditor(Base):
    """A person qualified to conduct COR audits."""
    __tablename__ = "cor_auditors"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(String(100), nullable=False, index=True)

    auditor_type = Column(Enum(AuditorType), nullable=False, default=AuditorType.INTERNAL, index=True)
    name = Column(String(255), nullable=False, index=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)

    certification_number = Column(String(100), nullable=True)
    certified_date = Column(DateTime(timezone=True), nullable=True)
    recertification_due = Column(DateTime(timezone=True), nullable=True)
    training_hours = Column(Float, nullable=False)

    audits_completed = Column(Integer, nullable=False, default=0)
    last_audit_date = Column(DateTime(timezone=True), nullable=True)

    status = Column(Enum(AuditorStatus), nullable=False, default=AuditorStatus.ACTIVE)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
