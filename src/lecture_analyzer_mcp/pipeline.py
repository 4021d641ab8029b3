"""Lecture analysis pipeline.

URL → transcript → prompt → Gemini → normalized LectureAnalysis → store.
Persistence happens only after normalization succeeded, so a failed run
never leaves a partial dashboard behind.
"""

from __future__ import annotations

import logging

from google.genai import types

from .client import GeminiClient
from .errors import InvalidInput
from .models.analysis import LectureAnalysis
from .normalizer import normalize_analysis
from .prompts.analysis import build_analysis_prompt, build_grounded_prompt
from .store import DashboardStore
from .tracing import annotate
from .transcript import TranscriptFetcher, require_video_id

logger = logging.getLogger(__name__)


def _persist(analysis: LectureAnalysis, store: DashboardStore | None) -> LectureAnalysis:
    if store is not None:
        store.save(analysis)
        logger.info("Saved dashboard %s (%s)", analysis.id, analysis.video_title)
        annotate(analysis_id=analysis.id)
    return analysis


async def analyze_transcript(
    client: GeminiClient,
    transcript: str,
    *,
    source_url: str | None = None,
    title: str | None = None,
    enforce_latex: bool = True,
) -> LectureAnalysis:
    """Generate a dashboard from transcript text.

    The transcript stored on the result is exactly the one sent to the
    model, whatever the model echoes back.
    """
    if not transcript or not transcript.strip():
        raise InvalidInput("Transcript text is required")
    annotate(transcript_chars=len(transcript))
    prompt = build_analysis_prompt(transcript, title_hint=title)
    raw = await client.generate(prompt.user, system_instruction=prompt.system, json_mode=True)
    return normalize_analysis(
        raw,
        source_url=source_url,
        transcript=transcript,
        enforce_latex=enforce_latex,
    )


async def analyze_grounded(
    client: GeminiClient,
    url: str,
    *,
    enforce_latex: bool = True,
) -> LectureAnalysis:
    """Generate a dashboard by letting Gemini find the video's content via search.

    Search grounding cannot be combined with JSON mode, so the normalizer's
    fence stripping and brace extraction do the work here.
    """
    prompt = build_grounded_prompt(url)
    raw = await client.generate(
        prompt.user,
        system_instruction=prompt.system,
        tools=[types.Tool(google_search=types.GoogleSearch())],
    )
    return normalize_analysis(raw, source_url=url, enforce_latex=enforce_latex)


async def process_url(
    client: GeminiClient,
    fetcher: TranscriptFetcher,
    url: str,
    *,
    store: DashboardStore | None = None,
    grounded: bool = False,
    enforce_latex: bool = True,
) -> LectureAnalysis:
    """Analyze a YouTube lecture URL and persist the dashboard.

    Raises:
        InvalidUrl: No 11-character video id in *url* (before any network call).
        NoTranscriptAvailable: The video has no captions (transcript mode).
        ProviderError: The caption service or Gemini failed.
        MalformedResponse: The model output could not be normalized.
    """
    video_id = require_video_id(url)
    annotate(video_id=video_id, grounded=grounded)
    if grounded:
        logger.info("Analyzing %s with search grounding", video_id)
        analysis = await analyze_grounded(client, url, enforce_latex=enforce_latex)
    else:
        transcript = await fetcher.fetch(video_id)
        analysis = await analyze_transcript(
            client, transcript, source_url=url, enforce_latex=enforce_latex,
        )
    return _persist(analysis, store)


async def process_text(
    client: GeminiClient,
    text: str,
    *,
    title: str | None = None,
    store: DashboardStore | None = None,
    enforce_latex: bool = True,
) -> LectureAnalysis:
    """Analyze pasted lecture text and persist the dashboard."""
    analysis = await analyze_transcript(
        client, text, title=title, enforce_latex=enforce_latex,
    )
    return _persist(analysis, store)
