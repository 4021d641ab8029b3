"""Lecture analysis tools — 3 tools on a FastMCP sub-server."""

from __future__ import annotations

import logging
from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..errors import make_tool_error
from ..pilot import run_phase
from ..pipeline import process_text, process_url
from ..runtime import get_runtime
from ..tracing import trace
from ..types import PilotPhase, TranscriptText, YouTubeUrl

logger = logging.getLogger(__name__)
lecture_server = FastMCP("lecture")


@lecture_server.tool(annotations=ToolAnnotations(readOnlyHint=False, openWorldHint=True))
@trace(name="lecture_process_url", span_type="TOOL")
async def lecture_process_url(
    url: YouTubeUrl,
    grounded: Annotated[bool, Field(
        description="Let Gemini find the lecture content with Google Search "
        "instead of fetching the caption track",
    )] = False,
) -> dict:
    """Build a study dashboard from a YouTube lecture and save it to history.

    Fetches the captions, asks Gemini for chapters, exam notes, formulas,
    practice questions, revision sheet, mind map and quizzes, then stores
    the normalized result.

    Args:
        url: YouTube lecture URL.
        grounded: Use search grounding instead of the caption track.

    Returns:
        LectureAnalysis dict (camelCase keys) or a ToolError dict.
    """
    try:
        rt = get_runtime()
        analysis = await process_url(
            rt.client, rt.fetcher, url,
            store=rt.store, grounded=grounded, enforce_latex=rt.enforce_latex,
        )
        return analysis.to_wire()
    except Exception as exc:
        logger.warning("lecture_process_url failed for %s: %s", url, exc)
        return make_tool_error(exc)


@lecture_server.tool(annotations=ToolAnnotations(readOnlyHint=False, openWorldHint=True))
@trace(name="lecture_process_text", span_type="TOOL")
async def lecture_process_text(
    text: TranscriptText,
    title: Annotated[str | None, Field(description="Optional lecture title")] = None,
) -> dict:
    """Build a study dashboard from pasted lecture text and save it to history.

    Args:
        text: Transcript or lecture notes to analyze.
        title: Title to use for the dashboard.

    Returns:
        LectureAnalysis dict (camelCase keys) or a ToolError dict.
    """
    try:
        rt = get_runtime()
        analysis = await process_text(
            rt.client, text, title=title, store=rt.store, enforce_latex=rt.enforce_latex,
        )
        return analysis.to_wire()
    except Exception as exc:
        logger.warning("lecture_process_text failed: %s", exc)
        return make_tool_error(exc)


@lecture_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=True))
@trace(name="lecture_pilot", span_type="TOOL")
async def lecture_pilot(
    transcript: TranscriptText,
    phase: PilotPhase = "structure",
) -> dict:
    """Run one Lecture Pilot phase over a transcript.

    Earlier phases are computed first (or loaded from cache) because each
    phase builds on the previous one.

    Args:
        transcript: Lecture transcript.
        phase: "structure", "deep-dive", or "exam".

    Returns:
        The phase result dict or a ToolError dict.
    """
    try:
        result = await run_phase(get_runtime().client, transcript, phase)
        return result.model_dump(by_alias=True, mode="json")
    except Exception as exc:
        return make_tool_error(exc)
