"""
Deficiency tracker: audit findings with severity-driven remediation windows.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from cor_engine.core.exceptions import PreconditionError, StoreError
from cor_engine.models.audit import Audit
from cor_engine.models.deficiency import Deficiency, DeficiencySeverity, DeficiencyStatus
from cor_engine.schemas.deficiency import (
    DeficiencyCloseRequest,
    DeficiencyCreateRequest,
    DeficiencyUpdateRequest,
)
from cor_engine.services.activity_service import ActivityAction, ResourceType, log_activity
from cor_engine.services.base import OrganizationScopedService, store_operation
from cor_engine.services.requirements import DEFICIENCY_DAYS_TO_RESOLVE

logger = logging.getLogger(__name__)


def deficiency_due_date(severity: DeficiencySeverity, opened_at: datetime) -> datetime:
    return opened_at + timedelta(days=DEFICIENCY_DAYS_TO_RESOLVE[DeficiencySeverity(severity)])


class DeficiencyService(OrganizationScopedService):
    """Deficiencies for one organization."""

    def get_deficiency(self, deficiency_id: int) -> Deficiency:
        return self._get_scoped(Deficiency, deficiency_id, "Deficiency")

    def list_for_audit(self, audit_id: int) -> List[Deficiency]:
        """All deficiencies raised on an audit, newest first."""
        self._get_scoped(Audit, audit_id, "Audit")
        try:
            return (
                self.db.query(Deficiency)
                .filter(
                    Deficiency.organization_id == self.organization_id,
                    Deficiency.audit_id == audit_id,
                )
                .order_by(Deficiency.created_at.desc(), Deficiency.id.desc())
                .all()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError("getDeficienciesForAudit", e) from e

    def list_open(self) -> List[Deficiency]:
        """Open deficiencies, earliest due first."""
        try:
            return (
                self.db.query(Deficiency)
                .filter(
                    Deficiency.organization_id == self.organization_id,
                    Deficiency.status == DeficiencyStatus.OPEN,
                )
                .order_by(Deficiency.due_date.asc(), Deficiency.id.asc())
                .all()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError("getOpenDeficiencies", e) from e

    def open_deficiency(
        self, data: DeficiencyCreateRequest, now: Optional[datetime] = None
    ) -> Deficiency:
        """Open a deficiency due `now` + the severity's remediation window."""
        now = self._now(now)
        with store_operation(self.db, "openDeficiency"):
            self._get_scoped(Audit, data.audit_id, "Audit")
            deficiency = Deficiency(
                organization_id=self.organization_id,
                audit_id=data.audit_id,
                element_id=data.element_id.value if data.element_id else None,
                severity=data.severity,
                description=data.description,
                corrective_action=data.corrective_action,
                assigned_to=data.assigned_to,
                status=DeficiencyStatus.OPEN,
                due_date=deficiency_due_date(data.severity, now),
                created_at=now,
            )
            self.db.add(deficiency)
            self.db.flush()
            log_activity(
                self.db, self.organization_id, ActivityAction.DEFICIENCY_OPEN, ResourceType.DEFICIENCY,
                deficiency.id, details={"audit_id": data.audit_id, "severity": data.severity.value},
            )

        self.db.refresh(deficiency)
        logger.info(
            f"Opened {data.severity.value} deficiency id={deficiency.id} on audit {data.audit_id}, "
            f"due {deficiency.due_date}"
        )
        return deficiency

    def update_deficiency(self, deficiency_id: int, data: DeficiencyUpdateRequest) -> Deficiency:
        with store_operation(self.db, "updateDeficiency"):
            deficiency = self.get_deficiency(deficiency_id)
            if deficiency.status == DeficiencyStatus.CLOSED:
                raise PreconditionError(
                    f"Deficiency {deficiency_id} is closed and can no longer be edited",
                    rule="deficiency_open",
                )
            changes = data.model_dump(exclude_unset=True)
            if changes.get("description") is None:
                changes.pop("description", None)
            if changes.get("element_id") is not None:
                changes["element_id"] = changes["element_id"].value
            for field, value in changes.items():
                setattr(deficiency, field, value)
            log_activity(
                self.db, self.organization_id, ActivityAction.DEFICIENCY_UPDATE, ResourceType.DEFICIENCY,
                deficiency.id, details={"fields": sorted(changes)},
            )

        self.db.refresh(deficiency)
        return deficiency

    def close_deficiency(
        self, deficiency_id: int, data: DeficiencyCloseRequest, now: Optional[datetime] = None
    ) -> Deficiency:
        """open -> closed, exactly once. Closing a closed deficiency is rejected."""
        now = self._now(now)
        with store_operation(self.db, "closeDeficiency"):
            deficiency = self.get_deficiency(deficiency_id)
            if deficiency.status != DeficiencyStatus.OPEN:
                raise PreconditionError(
                    f"Deficiency {deficiency_id} is already closed",
                    rule="deficiency_open",
                )
            deficiency.status = DeficiencyStatus.CLOSED
            deficiency.closed_by = data.closed_by
            deficiency.closure_notes = data.closure_notes
            deficiency.verified_by = data.verified_by
            deficiency.closed_date = now
            log_activity(
                self.db, self.organization_id, ActivityAction.DEFICIENCY_CLOSE, ResourceType.DEFICIENCY,
                deficiency.id, details={"closed_by": data.closed_by, "verified_by": data.verified_by},
            )

        self.db.refresh(deficiency)
        logger.info(f"Closed deficiency id={deficiency_id} (closed_by={data.closed_by})")
        return deficiency
