"""
Service for the COR audit lifecycle: scheduling, scoring and close-out.
"""
import logging
import re
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from cor_engine.core.config import settings
from cor_engine.core.exceptions import InvalidTransitionError, StoreError
from cor_engine.models.audit import Audit, AuditNumberSequence, AuditStatus, AuditType
from cor_engine.models.auditor import Auditor
from cor_engine.schemas.audit import AuditCompleteRequest, AuditCreateRequest, AuditUpdateRequest
from cor_engine.schemas.element_score import ElementScoreInput
from cor_engine.services.activity_service import ActivityAction, ResourceType, log_activity
from cor_engine.services.audit_state import transition
from cor_engine.services.base import OrganizationScopedService, store_operation
from cor_engine.services.scoring import (
    ScoringResult,
    blank_element_scores,
    normalize_element_scores,
    score_elements,
)
from cor_engine.utils.dates import ensure_utc

logger = logging.getLogger(__name__)

AUDIT_NUMBER_PATTERN = re.compile(r"^COR-(\d{4})-(\d+)$")


def format_audit_number(year: int, sequence: int) -> str:
    return f"COR-{year}-{sequence:03d}"


def parse_audit_sequence(audit_number: str) -> Optional[int]:
    match = AUDIT_NUMBER_PATTERN.match(audit_number or "")
    return int(match.group(2)) if match else None


class AuditService(OrganizationScopedService):
    """Schedules, scores and completes COR audits for one organization."""

    # ------------------------------------------------------------------
    # Audit numbers
    # ------------------------------------------------------------------

    def _highest_existing_sequence(self, year: int) -> int:
        numbers = (
            self.db.query(Audit.audit_number)
            .filter(
                Audit.organization_id == self.organization_id,
                Audit.audit_number.like(f"COR-{year}-%"),
            )
            .all()
        )
        sequences = [parse_audit_sequence(n) for (n,) in numbers]
        return max((s for s in sequences if s is not None), default=0)

    def allocate_audit_number(self, now: datetime) -> str:
        """
        Allocate the next COR-<year>-<seq> number for this organization.

        The per-(organization, year) counter is advanced with a conditional
        write (UPDATE ... WHERE last_value = <read value>) and retried when a
        concurrent scheduler got there first. Must run before anything else
        is added to the session: a lost race on counter creation rolls the
        session back.
        """
        year = now.year
        for attempt in range(1, settings.AUDIT_NUMBER_MAX_RETRIES + 1):
            counter = (
                self.db.query(AuditNumberSequence)
                .filter(
                    AuditNumberSequence.organization_id == self.organization_id,
                    AuditNumberSequence.year == year,
                )
                .populate_existing()
                .first()
            )

            if counter is None:
                # First audit of the year (or first since counters were introduced)
                sequence = self._highest_existing_sequence(year) + 1
                try:
                    self.db.add(
                        AuditNumberSequence(
                            organization_id=self.organization_id, year=year, last_value=sequence
                        )
                    )
                    self.db.flush()
                    return format_audit_number(year, sequence)
                except IntegrityError:
                    self.db.rollback()
                    logger.info(
                        f"Audit number counter for {self.organization_id}/{year} created concurrently "
                        f"(attempt {attempt}), retrying"
                    )
                    continue

            current = counter.last_value
            result = self.db.execute(
                update(AuditNumberSequence)
                .where(
                    AuditNumberSequence.id == counter.id,
                    AuditNumberSequence.last_value == current,
                )
                .values(last_value=current + 1)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                return format_audit_number(year, current + 1)

            logger.info(
                f"Audit number {format_audit_number(year, current + 1)} taken concurrently "
                f"(attempt {attempt}), retrying"
            )

        raise StoreError(
            "allocateAuditNumber",
            RuntimeError(
                f"could not allocate an audit number after {settings.AUDIT_NUMBER_MAX_RETRIES} attempts"
            ),
        )

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_audit(self, audit_id: int) -> Audit:
        return self._get_scoped(Audit, audit_id, "Audit")

    def list_audits(
        self,
        status: Optional[AuditStatus] = None,
        audit_type: Optional[AuditType] = None,
        limit: Optional[int] = None,
    ) -> Tuple[List[Audit], int]:
        """Audits for the organization, most recently scheduled first."""
        try:
            query = self.db.query(Audit).filter(Audit.organization_id == self.organization_id)
            if status:
                query = query.filter(Audit.status == status)
            if audit_type:
                query = query.filter(Audit.audit_type == audit_type)
            total = query.count()
            audits = (
                query.order_by(Audit.scheduled_date.desc(), Audit.id.desc())
                .limit(limit or settings.DEFAULT_LIST_LIMIT)
                .all()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError("getAudits", e) from e
        return audits, total

    def _check_lead_auditor(self, auditor_id: Optional[int]) -> None:
        if auditor_id is not None:
            self._get_scoped(Auditor, auditor_id, "Auditor")

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def schedule_audit(self, data: AuditCreateRequest, now: Optional[datetime] = None) -> Audit:
        """
        Schedule a new audit with one unscored entry per COR element.

        Returns:
            The created audit, status SCHEDULED
        """
        now = self._now(now)
        with store_operation(self.db, "scheduleAudit"):
            audit_number = self.allocate_audit_number(now)
            self._check_lead_auditor(data.lead_auditor_id)

            audit = Audit(
                organization_id=self.organization_id,
                audit_number=audit_number,
                audit_type=data.audit_type,
                cor_type=data.cor_type,
                status=AuditStatus.SCHEDULED,
                scheduled_date=ensure_utc(data.scheduled_date),
                element_scores=[s.model_dump(mode="json") for s in blank_element_scores()],
                overall_score=None,
                report_notes=data.report_notes,
                lead_auditor_id=data.lead_auditor_id,
            )
            self.db.add(audit)
            self.db.flush()
            log_activity(
                self.db, self.organization_id, ActivityAction.AUDIT_SCHEDULE, ResourceType.AUDIT, audit.id,
                details={"audit_number": audit_number, "audit_type": data.audit_type.value},
            )

        self.db.refresh(audit)
        logger.info(f"Scheduled {data.audit_type.value} audit {audit_number} (id={audit.id}) for {self.organization_id}")
        return audit

    def update_audit(self, audit_id: int, data: AuditUpdateRequest) -> Audit:
        """Edit schedule details, or move the audit to in_progress/completed."""
        with store_operation(self.db, "updateAudit"):
            audit = self.get_audit(audit_id)
            changes = data.model_dump(exclude_unset=True)

            target = changes.pop("status", None)
            if target is not None:
                target = AuditStatus(target)
                if target not in (AuditStatus.IN_PROGRESS, AuditStatus.COMPLETED):
                    raise InvalidTransitionError(
                        AuditStatus(audit.status).value,
                        target.value,
                        "outcomes are set by scoring or completion",
                    )
                transition(audit, target)
            elif audit.is_closed:
                raise InvalidTransitionError(
                    AuditStatus(audit.status).value,
                    AuditStatus(audit.status).value,
                    "audit is closed and can no longer be changed",
                )

            if "lead_auditor_id" in changes:
                self._check_lead_auditor(changes["lead_auditor_id"])
            if "scheduled_date" in changes:
                scheduled = changes.pop("scheduled_date")
                if scheduled is not None:
                    audit.scheduled_date = ensure_utc(scheduled)
            for field, value in changes.items():
                setattr(audit, field, value)

            log_activity(
                self.db, self.organization_id, ActivityAction.AUDIT_UPDATE, ResourceType.AUDIT, audit.id,
                details={"fields": sorted(data.model_dump(exclude_unset=True))},
            )

        self.db.refresh(audit)
        logger.info(f"Updated audit {audit.audit_number} (id={audit.id})")
        return audit

    def update_element_scores(
        self, audit_id: int, element_scores: Sequence[ElementScoreInput]
    ) -> Tuple[Audit, ScoringResult]:
        """
        Recompute and store an audit's element results and overall score.

        The submitted set replaces what is stored (no merge), so callers must
        send the complete current set. Status becomes PASSED when the COR pass
        rule holds, FAILED when an overall score exists but the rule fails,
        and IN_PROGRESS while nothing is scored; a COMPLETED audit stays
        COMPLETED until it is scored.
        """
        with store_operation(self.db, "updateElementScores"):
            audit = self.get_audit(audit_id)
            normalized = normalize_element_scores(element_scores)
            result = score_elements(normalized)

            if result.passed:
                target = AuditStatus.PASSED
            elif result.overall_score is not None:
                target = AuditStatus.FAILED
            elif audit.status == AuditStatus.COMPLETED:
                target = AuditStatus.COMPLETED
            else:
                target = AuditStatus.IN_PROGRESS
            transition(audit, target)

            audit.element_scores = [s.model_dump(mode="json") for s in result.element_scores]
            audit.overall_score = result.overall_score
            log_activity(
                self.db, self.organization_id, ActivityAction.AUDIT_SCORE, ResourceType.AUDIT, audit.id,
                details={"overall_score": result.overall_score, "status": target.value},
            )

        self.db.refresh(audit)
        logger.info(
            f"Scored audit {audit.audit_number}: overall={result.overall_score}, "
            f"all_elements_passed={result.all_elements_passed}, status={target.value}"
        )
        return audit, result

    def complete_audit(
        self, audit_id: int, data: AuditCompleteRequest, now: Optional[datetime] = None
    ) -> Audit:
        """
        Close an audit as passed or failed.

        This is the authoritative outcome, whatever scoring implied. The
        audit is locked afterwards.
        """
        now = self._now(now)
        with store_operation(self.db, "completeAudit"):
            audit = self.get_audit(audit_id)
            target = AuditStatus.PASSED if data.passed else AuditStatus.FAILED
            transition(audit, target, close=True, now=now)

            if data.overall_score is not None:
                audit.overall_score = data.overall_score
            audit.completed_date = ensure_utc(data.completed_date) if data.completed_date else now
            if data.report_notes is not None:
                audit.report_notes = data.report_notes

            log_activity(
                self.db, self.organization_id, ActivityAction.AUDIT_COMPLETE, ResourceType.AUDIT, audit.id,
                details={"status": target.value, "overall_score": audit.overall_score},
            )

        self.db.refresh(audit)
        logger.info(f"Completed audit {audit.audit_number}: {target.value} (overall={audit.overall_score})")
        return audit
