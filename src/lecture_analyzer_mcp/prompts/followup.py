"""Follow-up prompt templates — doubt resolution, ELI5, explanation grading.

Every template restricts the model to the supplied transcript. Builders
return a :class:`PromptPair` and perform no I/O.
"""

from __future__ import annotations

from .analysis import PromptPair, wrap_transcript

NOT_COVERED_ANSWER = "This topic was not covered in the lecture."

DOUBT_SYSTEM = f"""\
You are the Doubt Resolution module of the Lecture Analyzer.
**SINGLE SOURCE OF TRUTH**: Answer ONLY using the provided transcript.
**RULE**: If the topic of the question is not covered in the transcript, respond with \
EXACTLY this sentence and nothing else: "{NOT_COVERED_ANSWER}"
Do not try to be helpful by adding external facts."""

ELI5_SYSTEM = """\
You are the "Explain Like I'm 5" (ELI5) module.
Rephrase the selected text for a 5-year-old child.
**INSTRUCTIONS**:
1. Use extremely simple vocabulary (kindergarten level).
2. Use short, cheerful, declarative sentences.
3. Use relatable, everyday analogies (toys, playground, animals, food).
4. **CRITICAL CONSTRAINT**: Derive ALL concepts and analogies ONLY from the provided transcript.
5. **ZERO EXTERNAL KNOWLEDGE**: Do not introduce new facts. If the transcript does not explain \
something, do not explain it from outside knowledge."""

EVALUATION_SYSTEM = """\
You are a tutor evaluating a student's explanation of a concept from a lecture.
Grade the explanation for accuracy and completeness STRICTLY against the transcript; \
concepts outside the transcript neither earn nor lose points.
Return a JSON object with:
- score: integer from 0 to 100
- feedback: constructive criticism
- missingPoints: concepts from the transcript the student missed
- correction: a better way to explain it, using only the transcript"""


def _render_history(history: list[tuple[str, str]]) -> str:
    lines = [f"{role.upper()}: {content}" for role, content in history]
    return "PREVIOUS CONVERSATION:\n" + "\n".join(lines)


def build_doubt_prompt(
    transcript: str,
    question: str,
    history: list[tuple[str, str]] | None = None,
) -> PromptPair:
    """Prompt pair for one doubt-resolver question."""
    sections = [wrap_transcript(transcript)]
    if history:
        sections.append(_render_history(history))
    sections.append(f"USER QUESTION:\n{question}")
    return PromptPair(system=DOUBT_SYSTEM, user="\n\n".join(sections))


def build_eli5_prompt(selected_text: str, context: str) -> PromptPair:
    """Prompt pair for simplifying a highlighted span."""
    return PromptPair(
        system=ELI5_SYSTEM,
        user=(
            f"FULL CONTEXT (for reference only):\n{wrap_transcript(context)}\n\n"
            f'SELECTED TEXT TO EXPLAIN:\n"{selected_text}"'
        ),
    )


def build_evaluation_prompt(topic: str, explanation: str, transcript: str) -> PromptPair:
    """Prompt pair for grading a student's explanation."""
    return PromptPair(
        system=EVALUATION_SYSTEM,
        user=(
            f"{wrap_transcript(transcript)}\n\n"
            f"TOPIC: {topic}\n"
            f"STUDENT EXPLANATION: {explanation}"
        ),
    )
