"""
Data Models
===========
Pydantic models for the structured questionnaire output.
All models are serializable to JSON for the calling service.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


# ─── Enums ────────────────────────────────────────────────────────────────────


class QuestionType(str, Enum):
    """
    Closed set of inferred input types.

    Declaration order is part of the public contract: when two types
    reach the same score, the one declared first wins.
    """
    TEXT = "text"
    TEXTAREA = "textarea"
    EMAIL = "email"
    PHONE = "phone"
    URL = "url"
    DATE = "date"
    TIME = "time"
    NUMBER = "number"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    SELECT = "select"
    RATING = "rating"
    SLIDER = "slider"
    FILE = "file"


SELECTION_TYPES = frozenset({
    QuestionType.RADIO,
    QuestionType.CHECKBOX,
    QuestionType.SELECT,
    QuestionType.RATING,
})


class LineTag(str, Enum):
    """Structural role assigned to a normalized document line."""
    SECTION = "section"
    QUESTION = "question"
    OPTION = "option"
    BLANK = "blank"
    SKIP = "skip"
    PLAIN = "plain"


class DiagnosticType(str, Enum):
    """Non-fatal conditions recorded while parsing."""
    DEGRADED_OPTIONS = "degraded_options"
    SCALE_SYNTHESIZED = "scale_synthesized"
    LOW_CONFIDENCE = "low_confidence"
    EMPTY_SECTION = "empty_section"
    FALLBACK_TIER = "fallback_tier"
    NO_STRUCTURE_DETECTED = "no_structure_detected"
    DUPLICATE_QUESTION_NUMBER = "duplicate_question_number"


# ─── Input ────────────────────────────────────────────────────────────────────


class Document(BaseModel):
    """
    Already-extracted document text handed over by an external extractor.

    ``markup`` is an optional rendered-structure side channel (HTML with
    bold/heading spans) used only as a tie-break for section detection.
    """
    model_config = ConfigDict(frozen=True)

    text: str
    markup: Optional[str] = None
    metadata: dict = Field(default_factory=dict)


# ─── Output Models ────────────────────────────────────────────────────────────


class MultilingualText(BaseModel):
    """Same source text per locale key, awaiting external translation."""
    en: str = ""
    sq: str = ""
    sr: str = ""

    @classmethod
    def replicate(cls, text: str) -> MultilingualText:
        return cls(en=text, sq=text, sr=text)


class Option(BaseModel):
    """One selectable choice within a question's choice list."""
    model_config = ConfigDict(populate_by_name=True)

    value: str
    label: MultilingualText
    allow_text: bool = Field(default=False, alias="allowText")


class Question(BaseModel):
    """One inferred input field."""
    number: Optional[int] = None
    text: MultilingualText
    type: QuestionType
    options: Optional[list[Option]] = None
    required: bool = False
    order_index: int = Field(ge=0)
    validation_rules: Optional[dict] = None
    help_text: MultilingualText = Field(default_factory=MultilingualText)
    confidence: float = Field(ge=0.0, le=1.0)


class Section(BaseModel):
    """A named, ordered group of questions."""
    title: MultilingualText
    description: MultilingualText = Field(default_factory=MultilingualText)
    order_index: int = Field(ge=0)
    questions: list[Question] = Field(default_factory=list)


# ─── Diagnostics & Report ─────────────────────────────────────────────────────


class Diagnostic(BaseModel):
    """A non-fatal condition detected during parsing."""
    type: DiagnosticType
    severity: int = Field(
        ge=0, le=100,
        description="Severity score 0-100"
    )
    message: str
    context: Optional[dict] = None


class ParseReport(BaseModel):
    """Post-parse aggregate report."""
    total_lines: int = 0
    consumed_lines: int = 0
    line_tags: dict[str, int] = Field(default_factory=dict)
    total_sections: int = 0
    total_questions: int = 0
    average_confidence: float = 0.0
    type_counts: dict[str, int] = Field(default_factory=dict)
    low_confidence_questions: list[str] = Field(default_factory=list)
    questions_missing_options: list[str] = Field(default_factory=list)
    missing_question_numbers: list[int] = Field(default_factory=list)
    duplicate_question_numbers: list[int] = Field(default_factory=list)
    empty_sections: list[int] = Field(default_factory=list)
    fallback_tier: int = 0
    diagnostic_breakdown: dict[str, int] = Field(default_factory=dict)

    @computed_field
    @property
    def no_structure_detected(self) -> bool:
        return self.total_questions == 0


class ParseResult(BaseModel):
    """
    Complete output of a parse run.
    ``sections`` is the questionnaire tree handed to persistence.
    """
    parser_version: str
    sections: list[Section] = Field(default_factory=list)
    report: ParseReport = Field(default_factory=ParseReport)
    diagnostics: list[Diagnostic] = Field(default_factory=list)

    def questions(self) -> list[Question]:
        return [q for s in self.sections for q in s.questions]

    def sections_payload(self) -> list[dict]:
        """The section tree as plain JSON-ready dicts."""
        return [s.model_dump(mode="json", by_alias=True) for s in self.sections]
