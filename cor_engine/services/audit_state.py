"""
Audit state machine.

    scheduled -> in_progress -> (completed) -> passed | failed

Scoring may set passed/failed provisionally and may revise that outcome
while the audit is open. complete_audit closes the audit (stamps
completed_at); once closed, no transition of any kind is allowed.
"""
from datetime import datetime
from typing import Dict, FrozenSet, Optional

from cor_engine.core.exceptions import InvalidTransitionError
from cor_engine.models.audit import Audit, AuditStatus

_OUTCOMES = frozenset({AuditStatus.PASSED, AuditStatus.FAILED})

ALLOWED_TRANSITIONS: Dict[AuditStatus, FrozenSet[AuditStatus]] = {
    AuditStatus.SCHEDULED: frozenset({AuditStatus.IN_PROGRESS, AuditStatus.COMPLETED}) | _OUTCOMES,
    AuditStatus.IN_PROGRESS: frozenset({AuditStatus.IN_PROGRESS, AuditStatus.COMPLETED}) | _OUTCOMES,
    AuditStatus.COMPLETED: frozenset({AuditStatus.IN_PROGRESS, AuditStatus.COMPLETED}) | _OUTCOMES,
    # provisional outcomes, until the audit is closed
    AuditStatus.PASSED: frozenset({AuditStatus.IN_PROGRESS}) | _OUTCOMES,
    AuditStatus.FAILED: frozenset({AuditStatus.IN_PROGRESS}) | _OUTCOMES,
}


def can_transition(audit: Audit, target: AuditStatus) -> bool:
    if audit.is_closed:
        return False
    return target in ALLOWED_TRANSITIONS[AuditStatus(audit.status)]


def transition(
    audit: Audit,
    target: AuditStatus,
    *,
    close: bool = False,
    now: Optional[datetime] = None,
) -> Audit:
    """
    Move an audit to `target`, validating the current state first.

    Args:
        audit: Audit to move (mutated in place, not committed)
        target: Requested status
        close: Close the audit; only valid for passed/failed and requires `now`

    Raises:
        InvalidTransitionError: if the audit is closed or the move is not allowed
    """
    current = AuditStatus(audit.status)
    if audit.is_closed:
        raise InvalidTransitionError(
            current.value, target.value, "audit is closed and can no longer be changed"
        )
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(current.value, target.value)
    if close:
        if target not in _OUTCOMES:
            raise InvalidTransitionError(
                current.value, target.value, "only passed or failed audits can be closed"
            )
        if now is None:
            raise ValueError("closing an audit requires a timestamp")
        audit.completed_at = now

    audit.status = target
    return audit
