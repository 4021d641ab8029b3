"""Lecture Pilot — the dashboard built in three cached phases.

Structure → Deep Dive → Exam Mode. Each phase is one structured Gemini
call whose output feeds the next. Results are cached per transcript and
model, so re-running after a failed later phase only repeats that phase.
"""

from __future__ import annotations

import json
import logging
from typing import TypeVar, get_args

from pydantic import BaseModel, ValidationError

from . import cache
from .client import GeminiClient
from .errors import InvalidInput
from .models.pilot import DeepDivePhase, ExamPhase, PilotResult, StructurePhase
from .prompts.analysis import wrap_transcript
from .prompts.pilot import DEEP_DIVE_PHASE, EXAM_PHASE, PILOT_SYSTEM, STRUCTURE_PHASE
from .tracing import annotate
from .types import PilotPhase

logger = logging.getLogger(__name__)

PHASES: tuple[str, ...] = get_args(PilotPhase)

P = TypeVar("P", bound=BaseModel)


def _as_json(model: BaseModel) -> str:
    return json.dumps(model.model_dump(by_alias=True, mode="json"), indent=2)


async def _run_phase(
    client: GeminiClient,
    transcript: str,
    phase: str,
    prompt: str,
    schema: type[P],
    *,
    use_cache: bool,
) -> P:
    if use_cache:
        cached = cache.load(transcript, phase, client.model)
        if cached is not None:
            try:
                result = schema.model_validate(cached)
                annotate(**{f"pilot.{phase}.cached": True})
                return result
            except ValidationError as exc:
                logger.warning(
                    "Ignoring stale %s cache entry: %s", phase, exc.errors()[:1],
                )

    logger.info("Running pilot phase %s (%d chars)", phase, len(transcript))
    annotate(**{f"pilot.{phase}.cached": False})
    result = await client.generate_structured(
        prompt, schema=schema, system_instruction=PILOT_SYSTEM,
    )
    cache.save(transcript, phase, client.model, result.model_dump(by_alias=True, mode="json"))
    return result


async def run_structure(
    client: GeminiClient, transcript: str, *, use_cache: bool = True,
) -> StructurePhase:
    """Phase 01: chapters with notes plus a cleaned transcript."""
    prompt = STRUCTURE_PHASE.format(transcript=wrap_transcript(transcript))
    return await _run_phase(
        client, transcript, "structure", prompt, StructurePhase, use_cache=use_cache,
    )


async def run_deep_dive(
    client: GeminiClient,
    transcript: str,
    structure: StructurePhase,
    *,
    use_cache: bool = True,
) -> DeepDivePhase:
    """Phase 02: ELI5 per chapter, formulas, anticipated doubts."""
    prompt = DEEP_DIVE_PHASE.format(
        transcript=wrap_transcript(transcript),
        structure=_as_json(structure),
    )
    return await _run_phase(
        client, transcript, "deep-dive", prompt, DeepDivePhase, use_cache=use_cache,
    )


async def run_exam(
    client: GeminiClient,
    transcript: str,
    structure: StructurePhase,
    deep_dive: DeepDivePhase,
    *,
    use_cache: bool = True,
) -> ExamPhase:
    """Phase 03: revision sheet, question bank, clarifications."""
    prompt = EXAM_PHASE.format(
        transcript=wrap_transcript(transcript),
        structure=_as_json(structure),
        deep_dive=_as_json(deep_dive),
    )
    return await _run_phase(
        client, transcript, "exam", prompt, ExamPhase, use_cache=use_cache,
    )


async def run_phase(
    client: GeminiClient,
    transcript: str,
    phase: str,
    *,
    use_cache: bool = True,
) -> BaseModel:
    """Run *phase*, computing (or loading) the earlier phases it depends on.

    Raises:
        InvalidInput: Empty transcript or unknown phase name.
    """
    if not transcript.strip():
        raise InvalidInput("Transcript is required")
    if phase not in PHASES:
        raise InvalidInput(f"Unknown pilot phase {phase!r}. Allowed: {', '.join(PHASES)}")

    structure = await run_structure(client, transcript, use_cache=use_cache)
    if phase == "structure":
        return structure
    deep_dive = await run_deep_dive(client, transcript, structure, use_cache=use_cache)
    if phase == "deep-dive":
        return deep_dive
    return await run_exam(client, transcript, structure, deep_dive, use_cache=use_cache)


async def run_pilot(
    client: GeminiClient, transcript: str, *, use_cache: bool = True,
) -> PilotResult:
    """Run all three phases in order."""
    if not transcript.strip():
        raise InvalidInput("Transcript is required")
    structure = await run_structure(client, transcript, use_cache=use_cache)
    deep_dive = await run_deep_dive(client, transcript, structure, use_cache=use_cache)
    exam = await run_exam(client, transcript, structure, deep_dive, use_cache=use_cache)
    return PilotResult(structure=structure, deep_dive=deep_dive, exam=exam)
