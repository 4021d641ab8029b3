"""Turn raw model text into a validated, metadata-enriched LectureAnalysis.

Steps: strip code fences, slice the outermost ``{...}`` span, parse JSON,
validate against :class:`LectureAnalysis` (missing fields get defaults),
then stamp the session metadata the model is never trusted with.
"""

from __future__ import annotations

import json
import logging
import re
import uuid
from collections.abc import Callable
from datetime import datetime, timezone

from pydantic import ValidationError

from .errors import RAW_EXCERPT_LIMIT, MalformedResponse
from .models.analysis import LectureAnalysis
from .validation import is_latex_wrapped, validate_analysis

logger = logging.getLogger(__name__)

_FENCE_OPEN_RE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_CLOSE_RE = re.compile(r"\s*```$")
_INLINE_DOLLAR_RE = re.compile(r"(?<!\\)\$")

# Keys that are session bookkeeping and always overwritten.
_METADATA_KEYS = ("id", "date", "videoUrl", "video_url")


def strip_code_fences(text: str) -> str:
    """Trim *text* and drop a leading ```json / ``` fence and its closer."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = _FENCE_OPEN_RE.sub("", cleaned, count=1)
        cleaned = _FENCE_CLOSE_RE.sub("", cleaned, count=1)
    return cleaned


def extract_json_object(text: str) -> str:
    """Return the span from the first ``{`` to the last ``}``.

    Raises:
        MalformedResponse: Either brace is missing.
    """
    first = text.find("{")
    last = text.rfind("}")
    if first == -1 or last == -1 or last < first:
        raise MalformedResponse("No JSON object found in model output", raw=text)
    return text[first : last + 1]


def parse_model_json(raw: str) -> dict:
    """Recover the JSON object from raw model output.

    Raises:
        MalformedResponse: No object span, or the span is not valid JSON.
    """
    span = extract_json_object(strip_code_fences(raw))
    try:
        parsed = json.loads(span)
    except json.JSONDecodeError as exc:
        logger.warning("Unparseable model output: %r", raw[:RAW_EXCERPT_LIMIT])
        raise MalformedResponse(f"Model output is not valid JSON: {exc.msg}", raw=raw) from exc
    if not isinstance(parsed, dict):
        raise MalformedResponse("Model output is not a JSON object", raw=raw)
    return parsed


def ensure_latex(equation: str) -> str:
    """Wrap *equation* in ``$$...$$``, rewriting ``$``, ``\\[`` or ``\\(`` delimiters."""
    s = equation.strip()
    if not s or is_latex_wrapped(s):
        return s
    if s.startswith("\\[") and s.endswith("\\]"):
        s = s[2:-2]
    elif s.startswith("\\(") and s.endswith("\\)"):
        s = s[2:-2]
    elif "$" in s:
        # Drop inline delimiters; an escaped \$ is literal.
        s = _INLINE_DOLLAR_RE.sub("", s)
    if not s.strip():
        return equation.strip()
    return f"$${s.strip()}$$"


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


def _new_id() -> str:
    return str(uuid.uuid4())


def normalize_analysis(
    raw: str,
    *,
    source_url: str | None = None,
    transcript: str | None = None,
    enforce_latex: bool = True,
    id_factory: Callable[[], str] = _new_id,
    clock: Callable[[], str] = _now_iso,
) -> LectureAnalysis:
    """Produce a validated LectureAnalysis from raw model output.

    Args:
        raw: The model's text response.
        source_url: Video URL the analysis came from, if any.
        transcript: The exact transcript sent to the model. When given it
            replaces whatever the model echoed back.
        enforce_latex: Auto-wrap equations missing ``$$`` delimiters.
        id_factory: Source of fresh unique identifiers.
        clock: Source of the sortable ISO-8601 timestamp.

    Raises:
        MalformedResponse: The output cannot be parsed or fails schema
            validation (wrong field types, difficulty outside the enum).
    """
    data = parse_model_json(raw)
    for key in _METADATA_KEYS:
        data.pop(key, None)

    data["id"] = id_factory()
    data["date"] = clock()
    data["videoUrl"] = source_url
    if transcript is not None:
        data["transcript"] = transcript

    try:
        analysis = LectureAnalysis.model_validate(data)
    except ValidationError as exc:
        issues = [f"{'.'.join(map(str, e['loc']))}: {e['msg']}" for e in exc.errors()]
        logger.warning(
            "Model output failed schema validation (%d issue(s)): %s | raw=%r",
            len(issues), "; ".join(issues[:5]), raw[:RAW_EXCERPT_LIMIT],
        )
        raise MalformedResponse(
            "Model output does not match the lecture analysis schema", raw=raw, issues=issues,
        ) from exc

    if enforce_latex:
        for formula in analysis.formulas:
            if formula.equation and not is_latex_wrapped(formula.equation):
                logger.warning("Wrapping non-LaTeX equation %r", formula.equation)
                formula.equation = ensure_latex(formula.equation)

    result = validate_analysis(analysis)
    for issue in result.issues:
        logger.info("Analysis %s: %s", analysis.id, issue)
    return analysis
