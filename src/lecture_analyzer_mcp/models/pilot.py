"""Lecture Pilot phase schemas — used with GeminiClient.generate_structured().

The pilot splits the dashboard into three smaller structured calls:
structure, deep dive, and exam mode. Each phase model is also the
response schema sent to Gemini.
"""

from __future__ import annotations

from pydantic import Field

from .analysis import CamelModel


class PilotChapter(CamelModel):
    title: str = ""
    timestamp: str = Field(default="", description="Chapter start, MM:SS or H:MM:SS")
    notes: list[str] = Field(default_factory=list)


class StructurePhase(CamelModel):
    """Phase 1: chapter segmentation and a cleaned transcript."""

    chapters: list[PilotChapter] = Field(default_factory=list)
    cleaned_transcript: str = Field(
        default="",
        description="Transcript with filler words and caption noise removed, wording otherwise unchanged",
    )


class Eli5Explanation(CamelModel):
    chapter_title: str = ""
    simple_explanation: str = ""


class PilotFormula(CamelModel):
    formula: str = Field(default="", description="LaTeX wrapped in $$...$$")
    explanation: str = ""


class DoubtResponse(CamelModel):
    question: str = ""
    answer: str = ""


class DeepDivePhase(CamelModel):
    """Phase 2: per-chapter ELI5, formulas, and anticipated doubts."""

    eli5_explanations: list[Eli5Explanation] = Field(default_factory=list)
    formulas: list[PilotFormula] = Field(default_factory=list)
    doubt_responses: list[DoubtResponse] = Field(default_factory=list)


class McqQuestion(CamelModel):
    question: str = ""
    options: list[str] = Field(default_factory=list)
    correct_answer: str = ""


class ShortAnswer(CamelModel):
    question: str = ""
    answer: str = ""


class LongAnswer(CamelModel):
    question: str = ""
    answer_outline: list[str] = Field(default_factory=list)


class ExamQuestionSet(CamelModel):
    mcqs: list[McqQuestion] = Field(default_factory=list)
    short_answers: list[ShortAnswer] = Field(default_factory=list)
    long_answers: list[LongAnswer] = Field(default_factory=list)


class Clarification(CamelModel):
    confusing_point: str = ""
    clarification: str = ""


class ExamPhase(CamelModel):
    """Phase 3: revision sheet, exam question bank, and clarifications."""

    revision_sheet: list[str] = Field(default_factory=list)
    exam_questions: ExamQuestionSet = Field(default_factory=ExamQuestionSet)
    confusion_clarifications: list[Clarification] = Field(default_factory=list)


class PilotResult(CamelModel):
    """All three phases for one transcript."""

    structure: StructurePhase
    deep_dive: DeepDivePhase
    exam: ExamPhase
