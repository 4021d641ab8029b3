"""Models for the follow-up modules (doubt chat, explanation grading)."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from .analysis import CamelModel


class ChatMessage(CamelModel):
    """One turn of the doubt-resolver chat. Lives only in the UI session."""

    role: Literal["user", "assistant"]
    content: str


class Evaluation(CamelModel):
    """Structured grade for a student's own explanation of a topic.

    Doubles as the Gemini ``response_json_schema`` for the grading call.
    """

    score: int = Field(ge=0, le=100, description="Overall grade from 0 to 100")
    feedback: str = Field(description="Constructive feedback grounded in the transcript")
    missing_points: list[str] = Field(
        default_factory=list,
        description="Concepts from the transcript the explanation left out",
    )
    correction: str = Field(description="A better explanation using only transcript content")
