"""Follow-up query modules — doubt resolver, ELI5, grading, speech.

Each is one round trip against the already-stored transcript: check the
inputs, build a transcript-restricted prompt, call Gemini, return text or
a small typed object. A failure here never touches the stored analysis.
"""

from __future__ import annotations

import base64
import logging

from .client import GeminiClient
from .errors import InvalidInput
from .models.followup import ChatMessage, Evaluation
from .prompts.followup import (
    NOT_COVERED_ANSWER,
    build_doubt_prompt,
    build_eli5_prompt,
    build_evaluation_prompt,
)

logger = logging.getLogger(__name__)


def _require(**fields: str | None) -> None:
    """Raise InvalidInput naming the first blank required field."""
    for name, value in fields.items():
        if value is None or not value.strip():
            raise InvalidInput(f"{name} is required")


def _canonical_answer(answer: str) -> str:
    """Return the exact fallback sentence when the model produced it loosely."""
    bare = answer.strip().strip("\"'").strip()
    if bare.rstrip(".").lower() == NOT_COVERED_ANSWER.rstrip(".").lower():
        return NOT_COVERED_ANSWER
    return answer.strip()


async def ask_doubt(
    client: GeminiClient,
    transcript: str,
    question: str,
    history: list[ChatMessage] | None = None,
) -> str:
    """Answer *question* from *transcript* only.

    Returns :data:`NOT_COVERED_ANSWER` verbatim when the transcript does
    not cover the topic, so callers can tell "answered" from "out of scope".
    """
    _require(transcript=transcript, question=question)
    turns = [(m.role, m.content) for m in history or []]
    prompt = build_doubt_prompt(transcript, question, turns)
    answer = await client.generate(prompt.user, system_instruction=prompt.system)
    return _canonical_answer(answer)


async def explain_like_im_5(client: GeminiClient, selected_text: str, context: str) -> str:
    """Re-explain *selected_text* for a child, using only ideas from *context*."""
    _require(selectedText=selected_text, fullTranscriptContext=context)
    prompt = build_eli5_prompt(selected_text, context)
    explanation = await client.generate(prompt.user, system_instruction=prompt.system)
    return explanation.strip()


async def evaluate_explanation(
    client: GeminiClient,
    topic: str,
    explanation: str,
    transcript: str,
) -> Evaluation:
    """Grade a student's explanation of *topic* against the transcript."""
    _require(topic=topic, userExplanation=explanation, transcript=transcript)
    prompt = build_evaluation_prompt(topic, explanation, transcript)
    evaluation = await client.generate_structured(
        prompt.user, schema=Evaluation, system_instruction=prompt.system,
    )
    logger.info("Graded explanation of %r: %d/100", topic, evaluation.score)
    return evaluation


async def generate_speech(client: GeminiClient, text: str) -> str:
    """Synthesize *text* and return the audio as base64 text.

    Decoding and playback are the caller's job.
    """
    _require(text=text)
    audio = await client.synthesize_speech(text)
    return base64.b64encode(audio).decode("ascii")
