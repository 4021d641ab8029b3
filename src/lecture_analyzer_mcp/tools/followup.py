"""Follow-up tools — 4 tools on a FastMCP sub-server."""

from __future__ import annotations

from typing import Annotated

from fastmcp import FastMCP
from mcp.types import ToolAnnotations
from pydantic import Field

from ..errors import make_tool_error
from ..followup import ask_doubt, evaluate_explanation, explain_like_im_5, generate_speech
from ..models.followup import ChatMessage
from ..runtime import get_runtime
from ..tracing import trace
from ..types import TranscriptText

followup_server = FastMCP("followup")


@followup_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=True))
@trace(name="doubt_ask", span_type="TOOL")
async def doubt_ask(
    transcript: TranscriptText,
    question: Annotated[str, Field(min_length=1, description="The student's question")],
    history: Annotated[list[ChatMessage] | None, Field(
        description="Earlier turns of this doubt chat, oldest first",
    )] = None,
) -> dict:
    """Answer a question strictly from the lecture transcript.

    Returns the literal "This topic was not covered in the lecture." when
    the transcript does not cover it.

    Returns:
        Dict with ``answer`` or a ToolError dict.
    """
    try:
        answer = await ask_doubt(get_runtime().client, transcript, question, history)
        return {"answer": answer}
    except Exception as exc:
        return make_tool_error(exc)


@followup_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=True))
@trace(name="eli5_explain", span_type="TOOL")
async def eli5_explain(
    selected_text: Annotated[str, Field(min_length=1, description="Highlighted text to simplify")],
    transcript: TranscriptText,
) -> dict:
    """Explain a highlighted passage like the reader is five, using only the transcript.

    Returns:
        Dict with ``explanation`` or a ToolError dict.
    """
    try:
        explanation = await explain_like_im_5(get_runtime().client, selected_text, transcript)
        return {"explanation": explanation}
    except Exception as exc:
        return make_tool_error(exc)


@followup_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=True))
@trace(name="explanation_evaluate", span_type="TOOL")
async def explanation_evaluate(
    topic: Annotated[str, Field(min_length=1, description="Topic the student explained")],
    user_explanation: Annotated[str, Field(min_length=1, description="The student's explanation")],
    transcript: TranscriptText,
) -> dict:
    """Grade a student's explanation against the transcript (score 0-100).

    Returns:
        Dict with score, feedback, missingPoints, correction, or a ToolError dict.
    """
    try:
        evaluation = await evaluate_explanation(
            get_runtime().client, topic, user_explanation, transcript,
        )
        return evaluation.to_wire()
    except Exception as exc:
        return make_tool_error(exc)


@followup_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=True))
@trace(name="speech_generate", span_type="TOOL")
async def speech_generate(
    text: Annotated[str, Field(min_length=1, description="Text to read aloud")],
) -> dict:
    """Synthesize speech for a passage.

    Returns:
        Dict with base64 ``audioData`` or a ToolError dict.
    """
    try:
        return {"audioData": await generate_speech(get_runtime().client, text)}
    except Exception as exc:
        return make_tool_error(exc)
