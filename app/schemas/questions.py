"""Pydantic schemas for question submissions and the question catalog."""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field, StrictStr, field_validator


class QuestionTranslation(BaseModel):
    """Question/answer pair in one language."""

    question: StrictStr = Field(..., description="Question text.")
    answer: StrictStr = Field(..., description="Expected answer text.")


class QuestionTranslations(BaseModel):
    """Both required languages of a question."""

    en: QuestionTranslation = Field(..., description="English version.")
    fr: QuestionTranslation = Field(..., description="French version.")


class ProposeQuestionRequest(BaseModel):
    """Payload of ``POST /api/propose-question``.

    Fields must be present and be strings; empty strings are accepted.
    Unknown fields are ignored and never stored.
    """

    category: StrictStr = Field(..., description="Question category (e.g. 'web').")
    difficulty: StrictStr = Field(..., description="Difficulty label.")
    frequency: StrictStr = Field(..., description="How often the question comes up.")
    translations: QuestionTranslations

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(include={"category", "difficulty", "frequency", "translations"})


class ReportQuestionRequest(BaseModel):
    """Payload of ``POST /api/report-question``."""

    question: Dict[str, Any] = Field(
        ..., description="The reported question, as displayed to the user."
    )
    reason: StrictStr = Field(..., description="Why the question is wrong (non-blank).")
    description: str = Field(
        default="",
        description="Optional free-text details. Non-string values are stored as ''.",
    )

    @field_validator("reason")
    @classmethod
    def _reason_not_blank(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("reason must not be blank")
        return stripped

    @field_validator("description", mode="before")
    @classmethod
    def _description_as_text(cls, value: Any) -> str:
        return value.strip() if isinstance(value, str) else ""

    def to_record(self) -> dict[str, Any]:
        return {
            "question": self.question,
            "reason": self.reason,
            "description": self.description,
        }


class SuccessResponse(BaseModel):
    """Body returned when a submission was stored."""

    success: bool = True


class FacetValues(BaseModel):
    """Distinct values of one question field and how many questions match each."""

    values: List[str] = Field(default_factory=list, description="Sorted distinct values.")
    counts: Dict[str, int] = Field(
        default_factory=dict,
        description="Matches per value, honouring the other active filters. 'all' is the total.",
    )


class QuestionFiltersResponse(BaseModel):
    category: FacetValues
    difficulty: FacetValues
    frequency: FacetValues


class QuestionListResponse(BaseModel):
    total: int = Field(..., description="Number of questions returned.")
    questions: List[Dict[str, Any]] = Field(default_factory=list)
