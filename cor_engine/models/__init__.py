"""Database models."""
from cor_engine.models.audit import Audit, AuditNumberSequence
from cor_engine.models.certificate import Certificate
from cor_engine.models.auditor import Auditor
from cor_engine.models.deficiency import Deficiency
from cor_engine.models.activity_log import ActivityLog

__all__ = [
    "Audit",
    "AuditNumberSequence",
    "Certificate",
    "Auditor",
    "Deficiency",
    "ActivityLog",
]
