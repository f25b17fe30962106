"""
Auditor registry: qualification checks, recertification dates and workload.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from cor_engine.core.exceptions import PreconditionError, StoreError
from cor_engine.models.auditor import Auditor, AuditorStatus, AuditorType
from cor_engine.schemas.auditor import AuditorCreateRequest, AuditorUpdateRequest
from cor_engine.services.activity_service import ActivityAction, ResourceType, log_activity
from cor_engine.services.base import OrganizationScopedService, store_operation
from cor_engine.services.requirements import AUDITOR_RECERTIFICATION_YEARS, AUDITOR_TRAINING_HOURS
from cor_engine.services.status import auditor_status
from cor_engine.utils.dates import add_years, ensure_utc

logger = logging.getLogger(__name__)


def check_training_hours(auditor_type: AuditorType, training_hours: float) -> None:
    """
    Raises:
        PreconditionError: if hours are below the minimum for the auditor type
    """
    auditor_type = AuditorType(auditor_type)
    required = AUDITOR_TRAINING_HOURS[auditor_type]
    if training_hours is None or training_hours < required:
        raise PreconditionError(
            f"{auditor_type.value} auditors require minimum {required} hours training "
            f"(got {training_hours})",
            rule="auditor_training_hours",
            required=required,
        )


def recertification_due(certified_date: Optional[datetime]) -> Optional[datetime]:
    if certified_date is None:
        return None
    return add_years(ensure_utc(certified_date), AUDITOR_RECERTIFICATION_YEARS)


class AuditorService(OrganizationScopedService):
    """Auditor registry for one organization."""

    def get_auditor(self, auditor_id: int) -> Auditor:
        return self._get_scoped(Auditor, auditor_id, "Auditor")

    def list_auditors(
        self,
        auditor_type: Optional[AuditorType] = None,
        active_only: bool = True,
        now: Optional[datetime] = None,
    ) -> List[Auditor]:
        """Auditors ordered by name; active_only filters on the derived status."""
        now = self._now(now)
        try:
            query = self.db.query(Auditor).filter(Auditor.organization_id == self.organization_id)
            if auditor_type:
                query = query.filter(Auditor.auditor_type == auditor_type)
            auditors = query.order_by(Auditor.name.asc(), Auditor.id.asc()).all()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError("getAuditors", e) from e

        if active_only:
            auditors = [a for a in auditors if auditor_status(a, now) == AuditorStatus.ACTIVE]
        return auditors

    def register_auditor(self, data: AuditorCreateRequest) -> Auditor:
        """Register an auditor; training hours are checked before anything is written."""
        check_training_hours(data.auditor_type, data.training_hours)

        with store_operation(self.db, "registerAuditor"):
            auditor = Auditor(
                organization_id=self.organization_id,
                status=AuditorStatus.ACTIVE,
                recertification_due=recertification_due(data.certified_date),
                **data.model_dump(exclude={"certified_date"}),
                certified_date=ensure_utc(data.certified_date),
            )
            self.db.add(auditor)
            self.db.flush()
            log_activity(
                self.db, self.organization_id, ActivityAction.AUDITOR_REGISTER, ResourceType.AUDITOR, auditor.id,
                details={"auditor_type": data.auditor_type.value, "training_hours": data.training_hours},
            )

        self.db.refresh(auditor)
        logger.info(f"Registered {data.auditor_type.value} auditor id={auditor.id} for {self.organization_id}")
        return auditor

    def update_auditor(self, auditor_id: int, data: AuditorUpdateRequest) -> Auditor:
        """
        Update auditor details.

        Training hours are re-checked against the (possibly new) auditor type,
        and recertification_due follows certified_date.
        """
        with store_operation(self.db, "updateAuditor"):
            auditor = self.get_auditor(auditor_id)
            changes = data.model_dump(exclude_unset=True)

            if changes.get("status") == AuditorStatus.EXPIRED:
                raise PreconditionError(
                    "Auditor status 'expired' is derived from the recertification date and cannot be set",
                    rule="auditor_status_derived",
                )
            for required_field in ("name", "auditor_type", "training_hours", "status"):
                if required_field in changes and changes[required_field] is None:
                    changes.pop(required_field)

            check_training_hours(
                changes.get("auditor_type", auditor.auditor_type),
                changes.get("training_hours", auditor.training_hours),
            )

            if "certified_date" in changes:
                changes["certified_date"] = ensure_utc(changes["certified_date"])
                changes["recertification_due"] = recertification_due(changes["certified_date"])

            for field, value in changes.items():
                setattr(auditor, field, value)
            log_activity(
                self.db, self.organization_id, ActivityAction.AUDITOR_UPDATE, ResourceType.AUDITOR, auditor.id,
                details={"fields": sorted(changes)},
            )

        self.db.refresh(auditor)
        logger.info(f"Updated auditor id={auditor_id}")
        return auditor

    def record_audit_for_auditor(self, auditor_id: int, now: Optional[datetime] = None) -> Auditor:
        """Increment the completed-audit counter. Status is left alone."""
        now = self._now(now)
        with store_operation(self.db, "recordAuditForAuditor"):
            auditor = self.get_auditor(auditor_id)
            auditor.audits_completed = (auditor.audits_completed or 0) + 1
            auditor.last_audit_date = now
            log_activity(
                self.db, self.organization_id, ActivityAction.AUDITOR_RECORD_AUDIT, ResourceType.AUDITOR,
                auditor.id, details={"audits_completed": auditor.audits_completed},
            )

        self.db.refresh(auditor)
        logger.info(f"Auditor id={auditor_id} has completed {auditor.audits_completed} audits")
        return auditor
