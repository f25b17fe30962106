"""
Tests for the readiness extension point.
"""
from datetime import datetime, timezone

import pytest

from cor_engine.services.readiness import (
    ElementReadiness,
    calculate_readiness,
    clear_estimators,
    register_estimator,
)
from cor_engine.services.requirements import ELEMENT_ORDER, ElementId

NOW = datetime(2026, 1, 5, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_estimators():
    clear_estimators()
    yield
    clear_estimators()


def test_without_estimators_every_element_is_unassessed(db_session, organization_id):
    readiness = calculate_readiness(db_session, organization_id, now=NOW)

    assert readiness.overall_score == 0
    assert list(readiness.elements) == [e.value for e in ELEMENT_ORDER]
    assert all(not e.assessed and e.estimated_score == 0 for e in readiness.elements.values())
    assert readiness.recommendations == []
    assert readiness.calculated_at == NOW


def test_registered_estimator_feeds_its_element(db_session, organization_id):
    calls = []

    def jhsc_estimator(db, org_id, now):
        calls.append(org_id)
        return ElementReadiness(name="", documentation_score=40, estimated_score=40, gaps=["No Q3 minutes"])

    register_estimator(ElementId.ELEMENT8, jhsc_estimator)

    readiness = calculate_readiness(db_session, organization_id, now=NOW)
    element8 = readiness.elements["element8"]

    assert calls == [organization_id]
    assert element8.assessed is True
    assert element8.name == "Joint Health & Safety Committee"
    assert element8.gaps == ["No Q3 minutes"]
    assert readiness.overall_score == 5  # 40 / 8
    assert len(readiness.recommendations) == 1
