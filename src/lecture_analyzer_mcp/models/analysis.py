"""Lecture analysis models — the canonical dashboard artifact.

Field names are snake_case in Python and camelCase on the wire
(``videoTitle``, ``examNotes``...), matching the JSON contract the model
is instructed to emit. Every field has a default so a response that omits
a section still validates into a complete dashboard.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

Difficulty = Literal["Easy", "Medium", "Hard"]
DIFFICULTY_LEVELS: tuple[str, ...] = ("Easy", "Medium", "Hard")

DEFAULT_VIDEO_TITLE = "Lecture Analysis"


def format_timestamp(total_seconds: float) -> str:
    """Format seconds as ``MM:SS`` or ``H:MM:SS``."""
    seconds = max(int(total_seconds), 0)
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def _drop_nulls(data: Any) -> Any:
    """Treat explicit JSON nulls as omitted so field defaults apply."""
    if isinstance(data, dict):
        return {k: v for k, v in data.items() if v is not None}
    return data


class CamelModel(BaseModel):
    """Base model: camelCase aliases, population by either name."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _ignore_nulls(cls, data: Any) -> Any:
        return _drop_nulls(data)

    def to_wire(self) -> dict:
        """Serialise with camelCase keys for JSON responses and storage."""
        return self.model_dump(by_alias=True, mode="json")


class Chapter(CamelModel):
    """A contiguous segment of the lecture."""

    title: str = ""
    start: str = Field(default="", description="Start timestamp, MM:SS or H:MM:SS")
    end: str = Field(default="", description="End timestamp, MM:SS or H:MM:SS")
    notes: list[str] = Field(default_factory=list)

    @field_validator("start", "end", mode="before")
    @classmethod
    def _seconds_to_timestamp(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return format_timestamp(value)
        return value


class ExamNoteSection(CamelModel):
    """Exam-oriented bullet points for one chapter."""

    chapter_title: str = ""
    points: list[str] = Field(default_factory=list)


class Formula(CamelModel):
    """An equation quoted in the lecture, as ``$$...$$`` LaTeX."""

    equation: str = ""
    context: str = ""


class PracticeQuestion(CamelModel):
    question: str = ""
    answer: str = ""
    type: str = ""
    options: list[str] = Field(default_factory=list)


class ConfidenceQuestion(CamelModel):
    question: str = ""
    options: list[str] = Field(default_factory=list)
    answer: str = ""


class MindMapNode(CamelModel):
    """A node in the lecture mind map tree."""

    title: str = ""
    children: list[MindMapNode] = Field(default_factory=list)

    def depth(self) -> int:
        """Number of levels in the subtree rooted here (a leaf is 1)."""
        return 1 + max((child.depth() for child in self.children), default=0)


class LectureAnalysis(CamelModel):
    """The full study dashboard generated for one lecture.

    ``id``, ``date``, ``video_url`` and (when known) ``transcript`` are
    session bookkeeping set by the normalizer, never taken from the model.
    """

    id: str = ""
    date: str = ""
    video_url: str | None = None
    video_title: str = DEFAULT_VIDEO_TITLE
    transcript: str = ""
    topic_name: str = ""
    difficulty: Difficulty = "Medium"
    chapters: list[Chapter] = Field(default_factory=list)
    exam_notes: list[ExamNoteSection] = Field(default_factory=list)
    formulas: list[Formula] = Field(default_factory=list)
    practice_questions: list[PracticeQuestion] = Field(default_factory=list)
    quick_revision: list[str] = Field(default_factory=list)
    revision_sheet: str = ""
    mind_map: MindMapNode = Field(default_factory=MindMapNode)
    exam_questions: list[str] = Field(default_factory=list)
    confidence_questions: list[ConfidenceQuestion] = Field(default_factory=list)

    @field_validator("difficulty", mode="before")
    @classmethod
    def _normalize_difficulty(cls, value: Any) -> Any:
        if isinstance(value, str):
            for level in DIFFICULTY_LEVELS:
                if value.strip().lower() == level.lower():
                    return level
        return value

    @field_validator("video_title", mode="before")
    @classmethod
    def _default_title(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return DEFAULT_VIDEO_TITLE
        return value

    @model_validator(mode="after")
    def _name_mind_map_root(self) -> LectureAnalysis:
        if not self.mind_map.title:
            self.mind_map.title = self.topic_name or self.video_title
        return self
