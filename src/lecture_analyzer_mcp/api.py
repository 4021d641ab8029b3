"""HTTP JSON API — the dashboard endpoints served next to the MCP transport.

Routes are registered on the root FastMCP app with ``custom_route`` and
handle Starlette requests directly. Every failure becomes
``{"error": <user-facing message>}`` with a status derived from the error
taxonomy; provider and parse details go to the log only.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from fastmcp import FastMCP
from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from .errors import (
    DashboardNotFound,
    InvalidInput,
    LectureError,
    MalformedResponse,
    http_status,
    user_message,
)
from .followup import ask_doubt, evaluate_explanation, explain_like_im_5, generate_speech
from .models.followup import ChatMessage
from .pilot import run_phase
from .pipeline import process_text, process_url
from .runtime import get_runtime
from .tracing import trace

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Awaitable[Response]]


def error_response(exc: Exception) -> JSONResponse:
    """Convert an exception into the JSON error envelope."""
    if isinstance(exc, MalformedResponse):
        logger.warning("Malformed model output: %s | raw=%r", exc, exc.raw_excerpt)
    elif isinstance(exc, LectureError):
        logger.warning("%s: %s", type(exc).__name__, exc)
    else:
        logger.exception("Unexpected error handling request")
    return JSONResponse({"error": user_message(exc)}, status_code=http_status(exc))


async def _json_body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidInput("Request body must be valid JSON") from exc
    if not isinstance(body, dict):
        raise InvalidInput("Request body must be a JSON object")
    return body


def _text_field(body: dict[str, Any], name: str, *, required: bool = True) -> str | None:
    value = body.get(name)
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise InvalidInput(f"{name} is required")
        return None
    if not isinstance(value, str):
        raise InvalidInput(f"{name} must be a string")
    return value


def _bool_field(body: dict[str, Any], name: str) -> bool:
    value = body.get(name, False)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise InvalidInput(f"{name} must be true or false")
    return value


def _history_field(body: dict[str, Any]) -> list[ChatMessage]:
    raw = body.get("history") or []
    if not isinstance(raw, list):
        raise InvalidInput("history must be a list of messages")
    try:
        return [ChatMessage.model_validate(m) for m in raw]
    except ValidationError as exc:
        raise InvalidInput("history entries need a role (user|assistant) and content") from exc


def _guarded(handler: Handler) -> Handler:
    """Wrap *handler* so every exception becomes an error response."""

    async def wrapper(request: Request) -> Response:
        try:
            return await handler(request)
        except Exception as exc:
            return error_response(exc)

    wrapper.__name__ = handler.__name__
    wrapper.__doc__ = handler.__doc__
    return wrapper


@trace(name="POST /api/process-url", span_type="TOOL")
async def process_url_route(request: Request) -> Response:
    """``{url, grounded?}`` → LectureAnalysis."""
    body = await _json_body(request)
    url = _text_field(body, "url")
    rt = get_runtime()
    analysis = await process_url(
        rt.client, rt.fetcher, url,
        store=rt.store,
        grounded=_bool_field(body, "grounded"),
        enforce_latex=rt.enforce_latex,
    )
    return JSONResponse(analysis.to_wire())


@trace(name="POST /api/process-text", span_type="TOOL")
async def process_text_route(request: Request) -> Response:
    """``{text, title?}`` → LectureAnalysis."""
    body = await _json_body(request)
    text = _text_field(body, "text")
    title = _text_field(body, "title", required=False)
    rt = get_runtime()
    analysis = await process_text(
        rt.client, text, title=title, store=rt.store, enforce_latex=rt.enforce_latex,
    )
    return JSONResponse(analysis.to_wire())


@trace(name="POST /api/ask-doubt", span_type="TOOL")
async def ask_doubt_route(request: Request) -> Response:
    """``{transcript, question, history?}`` → ``{answer}``."""
    body = await _json_body(request)
    answer = await ask_doubt(
        get_runtime().client,
        _text_field(body, "transcript"),
        _text_field(body, "question"),
        _history_field(body),
    )
    return JSONResponse({"answer": answer})


@trace(name="POST /api/explain-like-im-5", span_type="TOOL")
async def eli5_route(request: Request) -> Response:
    """``{selectedText, fullTranscriptContext}`` → ``{explanation}``."""
    body = await _json_body(request)
    explanation = await explain_like_im_5(
        get_runtime().client,
        _text_field(body, "selectedText"),
        _text_field(body, "fullTranscriptContext"),
    )
    return JSONResponse({"explanation": explanation})


@trace(name="POST /api/generate-speech", span_type="TOOL")
async def speech_route(request: Request) -> Response:
    """``{text}`` → ``{audioData}`` (base64)."""
    body = await _json_body(request)
    audio = await generate_speech(get_runtime().client, _text_field(body, "text"))
    return JSONResponse({"audioData": audio})


@trace(name="POST /api/evaluate-explanation", span_type="TOOL")
async def evaluate_route(request: Request) -> Response:
    """``{topic, userExplanation, transcript}`` → Evaluation."""
    body = await _json_body(request)
    evaluation = await evaluate_explanation(
        get_runtime().client,
        _text_field(body, "topic"),
        _text_field(body, "userExplanation"),
        _text_field(body, "transcript"),
    )
    return JSONResponse(evaluation.to_wire())


@trace(name="POST /api/pilot", span_type="TOOL")
async def pilot_route(request: Request) -> Response:
    """``{transcript}`` → the requested Lecture Pilot phase."""
    body = await _json_body(request)
    result = await run_phase(
        get_runtime().client,
        _text_field(body, "transcript"),
        request.path_params["phase"],
    )
    return JSONResponse(result.model_dump(by_alias=True, mode="json"))


async def list_dashboards_route(request: Request) -> Response:
    """All saved analyses, newest first."""
    return JSONResponse([a.to_wire() for a in get_runtime().store.list()])


async def get_dashboard_route(request: Request) -> Response:
    analysis_id = request.path_params["analysis_id"]
    analysis = get_runtime().store.get(analysis_id)
    if analysis is None:
        raise DashboardNotFound(analysis_id)
    return JSONResponse(analysis.to_wire())


async def delete_dashboard_route(request: Request) -> Response:
    """Delete one saved analysis; unknown ids are a no-op."""
    deleted = get_runtime().store.delete(request.path_params["analysis_id"])
    return JSONResponse({"deleted": deleted})


async def health_route(request: Request) -> Response:
    return JSONResponse({"status": "ok"})


ROUTES: list[tuple[str, list[str], Handler]] = [
    ("/api/process-url", ["POST"], process_url_route),
    ("/api/process-text", ["POST"], process_text_route),
    ("/api/ask-doubt", ["POST"], ask_doubt_route),
    ("/api/explain-like-im-5", ["POST"], eli5_route),
    ("/api/generate-speech", ["POST"], speech_route),
    ("/api/evaluate-explanation", ["POST"], evaluate_route),
    ("/api/pilot/{phase}", ["POST"], pilot_route),
    ("/api/dashboards", ["GET"], list_dashboards_route),
    ("/api/dashboards/{analysis_id}", ["GET"], get_dashboard_route),
    ("/api/dashboards/{analysis_id}", ["DELETE"], delete_dashboard_route),
    ("/health", ["GET"], health_route),
]


def register_routes(server: FastMCP) -> None:
    """Attach every HTTP route to *server*."""
    for path, methods, handler in ROUTES:
        server.custom_route(path, methods=methods)(_guarded(handler))
