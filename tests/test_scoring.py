"""
Tests for the element scoring engine.
"""
import pytest

from cor_engine.core.exceptions import PreconditionError
from cor_engine.schemas.element_score import ElementScore, ElementScoreInput
from cor_engine.services.requirements import COR_ELEMENTS, ELEMENT_ORDER, ElementId
from cor_engine.services.scoring import (
    blank_element_scores,
    normalize_element_scores,
    round_half_up,
    score_element,
    score_elements,
)


def _scores(**by_element):
    """Full element set; by_element maps 'element1' -> (doc, interview, observation)."""
    entries = []
    for element_id in ELEMENT_ORDER:
        doc, interview, obs = by_element.get(element_id.value, (None, None, None))
        entries.append(
            ElementScoreInput(
                element_id=element_id,
                documentation_score=doc,
                interview_score=interview,
                observation_score=obs,
            )
        )
    return normalize_element_scores(entries)


def _uniform(value):
    return _scores(**{e.value: (value, value, value) for e in ELEMENT_ORDER})


def test_element_weights_are_range_midpoints():
    assert COR_ELEMENTS[ElementId.ELEMENT1].weight == 12.5
    assert COR_ELEMENTS[ElementId.ELEMENT8].weight == 7.5


def test_round_half_up_not_bankers():
    assert round_half_up(84.5) == 85
    assert round_half_up(82.5) == 83
    assert round_half_up(84.49) == 84


def test_blank_scores_cover_every_element_once():
    blanks = blank_element_scores()

    assert [s.element_id for s in blanks] == ELEMENT_ORDER
    assert all(s.total_score is None and s.passed is None for s in blanks)
    assert blanks[0].element_name == "Management Leadership & Commitment"


def test_element_total_is_mean_of_present_methods():
    score = ElementScore(
        element_id=ElementId.ELEMENT1,
        element_name="x",
        documentation_score=85,
        interview_score=None,
        observation_score=90,
    )
    scored = score_element(score)

    assert scored.total_score == 88  # 87.5 rounds up
    assert scored.passed is True


def test_element_without_method_scores_stays_null():
    scored = score_element(ElementScore(element_id=ElementId.ELEMENT2, element_name="x"))

    assert scored.total_score is None
    assert scored.passed is None


def test_element_minimum_is_fifty():
    low = score_element(ElementScore(element_id=ElementId.ELEMENT3, element_name="x", documentation_score=49))
    edge = score_element(ElementScore(element_id=ElementId.ELEMENT3, element_name="x", documentation_score=49.5))

    assert low.passed is False
    assert edge.total_score == 50
    assert edge.passed is True


def test_all_unscored_audit_has_no_overall_and_does_not_pass():
    result = score_elements(_scores())

    assert result.overall_score is None
    assert result.all_elements_passed is True
    assert result.passed is False


def test_uniform_high_scores_pass():
    result = score_elements(_uniform(90))

    assert result.overall_score == 90
    assert result.passed is True


def test_single_failing_element_fails_audit_despite_high_overall():
    scores = _scores(**{e.value: (100, 100, 100) for e in ELEMENT_ORDER[:7]}, element8=(40, 40, 40))
    result = score_elements(scores)

    # (100 * 12.5 * 6 + 100 * 7.5 + 40 * 7.5) / 90 = 95
    assert result.overall_score == 95
    assert result.all_elements_passed is False
    assert result.passed is False


def test_overall_is_weighted_by_element():
    scores = _scores(
        **{e.value: (80, 80, 80) for e in ELEMENT_ORDER[:6]},
        element7=(60, 60, 60),
        element8=(60, 60, 60),
    )
    result = score_elements(scores)

    # (80 * 75 + 60 * 15) / 90 = 76.67
    assert result.overall_score == 77
    assert result.all_elements_passed is True
    assert result.passed is False


def test_partially_scored_audit_has_overall_from_scored_elements_only():
    result = score_elements(_scores(element1=(90, None, None), element7=(70, None, None)))

    # (90 * 12.5 + 70 * 7.5) / 20 = 82.5
    assert result.overall_score == 83
    assert result.passed is True
    assert sum(1 for s in result.element_scores if s.total_score is None) == 6


def test_missing_element_is_rejected():
    entries = [ElementScoreInput(element_id=e) for e in ELEMENT_ORDER[:7]]

    with pytest.raises(PreconditionError) as exc_info:
        normalize_element_scores(entries)

    assert exc_info.value.rule == "one_score_per_element"
    assert "element8" in exc_info.value.message


def test_duplicated_element_is_rejected():
    entries = [ElementScoreInput(element_id=e) for e in ELEMENT_ORDER]
    entries.append(ElementScoreInput(element_id=ElementId.ELEMENT2))

    with pytest.raises(PreconditionError) as exc_info:
        normalize_element_scores(entries)

    assert "duplicated element2" in exc_info.value.message


def test_normalize_restores_catalogue_order():
    entries = [ElementScoreInput(element_id=e) for e in reversed(ELEMENT_ORDER)]

    normalized = normalize_element_scores(entries)

    assert [s.element_id for s in normalized] == ELEMENT_ORDER
    assert normalized[7].element_name == "Joint Health & Safety Committee"


def test_missing_method_score_is_left_out_of_element_mean():
    scored = score_element(
        ElementScore(
            element_id=ElementId.ELEMENT4,
            element_name="x",
            documentation_score=80,
            interview_score=60,
            observation_score=None,
        )
    )

    assert scored.total_score == 70
    assert scored.passed is True


def test_failing_element_fails_audit_on_element_rule():
    # element1 and element2 share a weight, so overall is the plain mean
    result = score_elements(_scores(element1=(90, 90, 90), element2=(40, 40, 40)))

    assert result.overall_score == 65
    assert result.all_elements_passed is False
    assert result.passed is False
