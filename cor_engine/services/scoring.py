"""
Element scoring engine.

Each COR element is verified by up to three methods (documentation,
interviews, observation). An element's total is the rounded mean of the
methods actually scored; the audit's overall score is the mean of element
totals weighted by the midpoint of each element's weight range. Elements
not scored yet are left out of both sides of the weighted mean.
"""
import logging
import math
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from cor_engine.core.exceptions import PreconditionError
from cor_engine.schemas.element_score import ElementScore, ElementScoreInput
from cor_engine.services.requirements import (
    COR_ELEMENTS,
    ELEMENT_ORDER,
    MINIMUM_ELEMENT_SCORE,
    MINIMUM_OVERALL_SCORE,
)

logger = logging.getLogger(__name__)


@dataclass
class ScoringResult:
    element_scores: List[ElementScore]
    overall_score: Optional[int]
    all_elements_passed: bool

    @property
    def passed(self) -> bool:
        return audit_passes(self)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative scores (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def blank_element_scores() -> List[ElementScore]:
    """One unscored entry per COR element, in catalogue order."""
    return [
        ElementScore(element_id=element_id, element_name=COR_ELEMENTS[element_id].name)
        for element_id in ELEMENT_ORDER
    ]


def normalize_element_scores(scores: Sequence[ElementScoreInput]) -> List[ElementScore]:
    """
    Check a submitted score set covers every element exactly once and return
    it in catalogue order with element names filled in.

    Raises:
        PreconditionError: if an element is missing or duplicated
    """
    counts = Counter(s.element_id for s in scores)
    duplicated = sorted(e.value for e, n in counts.items() if n > 1)
    missing = [e.value for e in ELEMENT_ORDER if e not in counts]
    if duplicated or missing:
        problems = []
        if missing:
            problems.append(f"missing {', '.join(missing)}")
        if duplicated:
            problems.append(f"duplicated {', '.join(duplicated)}")
        raise PreconditionError(
            f"Element scores must contain exactly one entry for each of the "
            f"{len(ELEMENT_ORDER)} COR elements ({'; '.join(problems)})",
            rule="one_score_per_element",
            required=len(ELEMENT_ORDER),
        )

    by_id = {s.element_id: s for s in scores}
    return [
        ElementScore(
            **by_id[element_id].model_dump(include=set(ElementScoreInput.model_fields)),
            element_name=COR_ELEMENTS[element_id].name,
        )
        for element_id in ELEMENT_ORDER
    ]


def score_element(score: ElementScore) -> ElementScore:
    """Recompute total_score and passed for one element."""
    methods = score.method_scores
    if not methods:
        return score.model_copy(update={"total_score": None, "passed": None})

    total = round_half_up(sum(methods) / len(methods))
    return score.model_copy(
        update={"total_score": total, "passed": total >= MINIMUM_ELEMENT_SCORE}
    )


def score_elements(element_scores: Iterable[ElementScore]) -> ScoringResult:
    """Score every element and combine them into the weighted overall score."""
    updated = []
    weighted_sum = 0.0
    total_weight = 0.0
    all_passed = True

    for score in element_scores:
        scored = score_element(score)
        updated.append(scored)
        if scored.total_score is None:
            continue
        if not scored.passed:
            all_passed = False
        weight = COR_ELEMENTS[scored.element_id].weight
        weighted_sum += scored.total_score * weight
        total_weight += weight

    overall = round_half_up(weighted_sum / total_weight) if total_weight > 0 else None

    logger.debug(
        f"Scored {len(updated)} elements: overall={overall}, all_elements_passed={all_passed}"
    )
    return ScoringResult(element_scores=updated, overall_score=overall, all_elements_passed=all_passed)


def audit_passes(result: ScoringResult) -> bool:
    """
    COR pass rule: every scored element individually passes AND the overall
    score is present and at least the program minimum.
    """
    return (
        result.all_elements_passed
        and result.overall_score is not None
        and result.overall_score >= MINIMUM_OVERALL_SCORE
    )
