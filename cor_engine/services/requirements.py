"""
Fixed COR program requirements.

COR certification cycle:
- Year 0: Certification audit
- Year 1: Maintenance audit
- Year 2: Maintenance audit
- Year 3: Re-certification audit (before the certificate expires)

None of these are configurable; they come from the regulatory standard.
"""
import enum
from dataclasses import dataclass
from typing import Dict, List

from cor_engine.models.auditor import AuditorType
from cor_engine.models.deficiency import DeficiencySeverity


class ElementId(str, enum.Enum):
    """The eight required COR elements (large employer)."""
    ELEMENT1 = "element1"
    ELEMENT2 = "element2"
    ELEMENT3 = "element3"
    ELEMENT4 = "element4"
    ELEMENT5 = "element5"
    ELEMENT6 = "element6"
    ELEMENT7 = "element7"
    ELEMENT8 = "element8"


@dataclass(frozen=True)
class CORElement:
    element_id: ElementId
    name: str
    weight_min: float
    weight_max: float
    description: str

    @property
    def weight(self) -> float:
        """Scoring weight: midpoint of the allowed range."""
        return (self.weight_min + self.weight_max) / 2


@dataclass(frozen=True)
class VerificationMethod:
    key: str
    label: str
    min_percent: int
    max_percent: int


COR_ELEMENTS: Dict[ElementId, CORElement] = {
    e.element_id: e
    for e in (
        CORElement(
            ElementId.ELEMENT1, "Management Leadership & Commitment", 10, 15,
            "Written H&S policy, accountability system, resource allocation",
        ),
        CORElement(
            ElementId.ELEMENT2, "Safe Work Procedures & Written Instructions", 10, 15,
            "Written procedures, WHMIS, first aid, worker training",
        ),
        CORElement(
            ElementId.ELEMENT3, "Training & Instruction of Workers", 10, 15,
            "Job-specific training, competency verification, emergency procedures",
        ),
        CORElement(
            ElementId.ELEMENT4, "Hazard Identification & Control", 10, 15,
            "Hazard analysis, engineering/administrative/PPE controls",
        ),
        CORElement(
            ElementId.ELEMENT5, "Inspection of Premises, Equipment & Work Practices", 10, 15,
            "Regular inspections, corrective action follow-up",
        ),
        CORElement(
            ElementId.ELEMENT6, "Investigation of Accidents", 10, 15,
            "Incident reporting, investigation, preventive actions",
        ),
        CORElement(
            ElementId.ELEMENT7, "Program Administration", 5, 10,
            "Records management, statistics analysis, program evaluation",
        ),
        CORElement(
            ElementId.ELEMENT8, "Joint Health & Safety Committee", 5, 10,
            "JHSC membership, meetings, minutes, recommendations follow-up",
        ),
    )
}

ELEMENT_ORDER: List[ElementId] = list(COR_ELEMENTS)

# Each method must account for 10-50% of an element's evidence
VERIFICATION_METHODS: Dict[str, VerificationMethod] = {
    "documentation": VerificationMethod("documentation", "Documentation Review", 10, 50),
    "interview": VerificationMethod("interview", "Interviews/Questionnaires", 10, 50),
    "observation": VerificationMethod("observation", "Workplace Observation", 10, 50),
}

MINIMUM_OVERALL_SCORE = 80
MINIMUM_ELEMENT_SCORE = 50
CERTIFICATE_VALIDITY_YEARS = 3
CERTIFICATE_EXPIRY_WARNING_DAYS = 90
MAINTENANCE_AUDIT_INTERVAL_MONTHS = 6
MAINTENANCE_AUDITS_PER_CYCLE = 2
AUDIT_REPORT_DEADLINE_DAYS = 30
CYCLE_LENGTH_YEARS = 3

AUDITOR_RECERTIFICATION_YEARS = 3
AUDITOR_MINIMUM_AUDITS_PER_CYCLE = 2  # informational only, never gated

AUDITOR_TRAINING_HOURS: Dict[AuditorType, int] = {
    AuditorType.INTERNAL: 14,
    AuditorType.EXTERNAL: 35,
}

DEFICIENCY_DAYS_TO_RESOLVE: Dict[DeficiencySeverity, int] = {
    DeficiencySeverity.MINOR: 30,
    DeficiencySeverity.MAJOR: 14,
    DeficiencySeverity.CRITICAL: 7,
}
