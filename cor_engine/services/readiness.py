"""
COR readiness estimate.

Extension point: a real estimate needs evidence from other safety-program
modules (training records, JHSC minutes, inspections, incidents). Those
modules register an estimator per element; an element nobody has registered
for is reported unassessed with zero scores.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from cor_engine.services.requirements import COR_ELEMENTS, ELEMENT_ORDER, MINIMUM_ELEMENT_SCORE, ElementId
from cor_engine.services.scoring import round_half_up
from cor_engine.utils.dates import utcnow

logger = logging.getLogger(__name__)


@dataclass
class ElementReadiness:
    name: str
    documentation_score: float = 0
    interview_score: float = 0
    observation_score: float = 0
    estimated_score: float = 0
    assessed: bool = False
    gaps: List[str] = field(default_factory=list)
    strengths: List[str] = field(default_factory=list)


@dataclass
class Readiness:
    organization_id: str
    overall_score: int
    elements: Dict[str, ElementReadiness]
    recommendations: List[str]
    calculated_at: datetime


# (db, organization_id, now) -> partially filled ElementReadiness
ElementEstimator = Callable[[Session, str, datetime], ElementReadiness]

_estimators: Dict[ElementId, ElementEstimator] = {}


def register_estimator(element_id: ElementId, estimator: ElementEstimator) -> None:
    """Plug an evidence source in for one element (replaces any previous one)."""
    _estimators[ElementId(element_id)] = estimator


def clear_estimators() -> None:
    _estimators.clear()


def calculate_readiness(
    db: Session, organization_id: str, now: Optional[datetime] = None
) -> Readiness:
    now = now or utcnow()
    elements: Dict[str, ElementReadiness] = {}
    recommendations: List[str] = []

    for element_id in ELEMENT_ORDER:
        element = COR_ELEMENTS[element_id]
        estimator = _estimators.get(element_id)
        if estimator is None:
            elements[element_id.value] = ElementReadiness(name=element.name)
            continue

        estimate = estimator(db, organization_id, now)
        estimate.name = element.name
        estimate.assessed = True
        elements[element_id.value] = estimate
        if estimate.estimated_score < MINIMUM_ELEMENT_SCORE:
            recommendations.append(
                f"{element.name}: estimated {estimate.estimated_score:.0f}%, "
                f"below the {MINIMUM_ELEMENT_SCORE}% element minimum"
            )

    scores = [e.estimated_score for e in elements.values()]
    overall = round_half_up(sum(scores) / len(scores)) if scores else 0

    logger.debug(
        f"Readiness for {organization_id}: overall={overall}, "
        f"assessed={sum(1 for e in elements.values() if e.assessed)}/{len(elements)}"
    )
    return Readiness(
        organization_id=organization_id,
        overall_score=overall,
        elements=elements,
        recommendations=recommendations,
        calculated_at=now,
    )
