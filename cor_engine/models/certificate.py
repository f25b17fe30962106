"""
COR certificate database model.
"""
import enum

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from cor_engine.core.database import Base


class CORType(str, enum.Enum):
    """Certificate programs."""
    OHS = "OHS"  # Occupational Health & Safety
    RTW = "RTW"  # Return to Work (requires OHS first)


class CertificateStatus(str, enum.Enum):
    """Certificate statuses. Only REVOKED is ever written to the table."""
    ACTIVE = "active"
    EXPIRING = "expiring"
    EXPIRED = "expired"
    REVOKED = "revoked"


class Certificate(Base):
    """An issued Certificate of Recognition."""
    __tablename__ = "cor_certificates"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(String(100), nullable=False, index=True)

    cor_type = Column(Enum(CORType), nullable=False, default=CORType.OHS, index=True)
    certificate_number = Column(String(100), nullable=True)

    # NULL until revoked; active/expiring/expired are derived on read
    status = Column(Enum(CertificateStatus), nullable=True, index=True)

    issue_date = Column(DateTime(timezone=True), nullable=False, index=True)
    expiry_date = Column(DateTime(timezone=True), nullable=False)

    certification_audit_id = Column(
        Integer, ForeignKey("cor_audits.id", ondelete="SET NULL", use_alter=True), nullable=True
    )

    revocation_reason = Column(Text, nullable=True)
    revoked_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
