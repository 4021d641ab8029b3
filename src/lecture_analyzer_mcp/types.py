"""Shared type aliases for tool parameters."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Field

PilotPhase = Literal["structure", "deep-dive", "exam"]

YouTubeUrl = Annotated[str, Field(
    min_length=1,
    description="YouTube lecture URL (watch?v=, youtu.be/, embed/, v/ ...)",
)]
TranscriptText = Annotated[str, Field(
    min_length=1,
    description="Full lecture transcript; the only source the model may use",
)]
AnalysisId = Annotated[str, Field(min_length=1, description="Saved analysis id")]
