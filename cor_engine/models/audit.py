"""
COR audit database model.
"""
import enum

from sqlalchemy import Column, DateTime, Enum, Float, ForeignKey, Integer, JSON, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from cor_engine.core.database import Base
from cor_engine.models.certificate import CORType


class AuditType(str, enum.Enum):
    """Position of an audit in the 3-year COR cycle."""
    CERTIFICATION = "certification"
    MAINTENANCE = "maintenance"
    RECERTIFICATION = "recertification"


class AuditStatus(str, enum.Enum):
    """Audit lifecycle states."""
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    PASSED = "passed"
    FAILED = "failed"


class Audit(Base):
    """One compliance audit event for an organization."""
    __tablename__ = "cor_audits"
    __table_args__ = (
        UniqueConstraint("organization_id", "audit_number", name="uq_cor_audits_org_number"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(String(100), nullable=False, index=True)
    audit_number = Column(String(20), nullable=False, index=True)  # COR-<year>-<seq>

    audit_type = Column(Enum(AuditType), nullable=False, index=True)
    cor_type = Column(Enum(CORType), nullable=False, default=CORType.OHS)
    status = Column(Enum(AuditStatus), nullable=False, default=AuditStatus.SCHEDULED, index=True)

    scheduled_date = Column(DateTime(timezone=True), nullable=False, index=True)
    completed_date = Column(DateTime(timezone=True), nullable=True)
    # Set by complete_audit; an audit with completed_at is closed to further changes
    completed_at = Column(DateTime(timezone=True), nullable=True)

    overall_score = Column(Float, nullable=True)  # 0-100
    element_scores = Column(JSON, nullable=False)  # one entry per COR element, catalogue order
    report_notes = Column(Text, nullable=True)

    lead_auditor_id = Column(Integer, ForeignKey("cor_auditors.id", ondelete="SET NULL"), nullable=True)
    certificate_id = Column(
        Integer, ForeignKey("cor_certificates.id", ondelete="SET NULL", use_alter=True), nullable=True
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    @property
    def is_closed(self) -> bool:
        return self.completed_at is not None


class AuditNumberSequence(Base):
    """Per-(organization, year) counter behind COR-<year>-<seq> audit numbers."""
    __tablename__ = "cor_audit_sequences"
    __table_args__ = (
        UniqueConstraint("organization_id", "year", name="uq_cor_audit_sequences_org_year"),
    )

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(String(100), nullable=False)
    year = Column(Integer, nullable=False)
    last_value = Column(Integer, nullable=False, default=0)
