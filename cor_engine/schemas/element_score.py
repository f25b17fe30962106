"""Schemas for per-element audit scores (embedded in an audit record)."""
from typing import List, Optional

from pydantic import BaseModel, Field

from cor_engine.services.requirements import ElementId

ScoreValue = Optional[float]


class ElementScoreInput(BaseModel):
    """Verification-method scores submitted for one element."""
    element_id: ElementId
    documentation_score: ScoreValue = Field(None, ge=0, le=100)
    interview_score: ScoreValue = Field(None, ge=0, le=100)
    observation_score: ScoreValue = Field(None, ge=0, le=100)
    notes: str = ""


class ElementScore(ElementScoreInput):
    """Stored element result. total_score and passed are derived, never submitted."""
    element_name: str
    total_score: Optional[int] = None  # NULL iff all three method scores are NULL
    passed: Optional[bool] = None  # NULL iff total_score is NULL

    model_config = {"from_attributes": True}

    @property
    def method_scores(self) -> List[float]:
        return [
            s for s in (self.documentation_score, self.interview_score, self.observation_score)
            if s is not None
        ]


class ElementScoresUpdateRequest(BaseModel):
    """Complete current score set for an audit; replaces what is stored."""
    element_scores: List[ElementScoreInput] = Field(..., min_length=1)
