"""YouTube transcript acquisition.

Extracts the 11-character video id from the usual YouTube URL shapes and
fetches the caption track through ``youtube-transcript-api`` (sync, wrapped
in ``asyncio.to_thread``).
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass

from youtube_transcript_api import (
    CouldNotRetrieveTranscript,
    NoTranscriptFound,
    YouTubeTranscriptApi,
)

from .errors import InvalidUrl, NoTranscriptAvailable, TranscriptFetchFailed

logger = logging.getLogger(__name__)

# watch?v=, youtu.be/, embed/, v/, u/<ch>/, &v=
_VIDEO_ID_RE = re.compile(r"^.*(?:youtu\.be/|v/|u/\w/|embed/|watch\?v=|&v=)([^#&?]*).*")
_ID_CHARS_RE = re.compile(r"[\w-]{11}")


def extract_video_id(url: str) -> str | None:
    """Return the 11-character video id in *url*, or None if there is none."""
    match = _VIDEO_ID_RE.match(url.strip())
    if not match:
        return None
    candidate = match.group(1)
    return candidate if _ID_CHARS_RE.fullmatch(candidate) else None


def require_video_id(url: str) -> str:
    """Like :func:`extract_video_id` but raises :class:`InvalidUrl`."""
    video_id = extract_video_id(url or "")
    if video_id is None:
        raise InvalidUrl(url)
    return video_id


@dataclass(frozen=True)
class TranscriptFragment:
    """One timed caption line."""

    text: str
    start: float = 0.0
    duration: float = 0.0


def join_fragments(fragments: list[TranscriptFragment]) -> str:
    """Concatenate fragment texts in order with single spaces."""
    texts = (" ".join(f.text.split()) for f in fragments)
    return " ".join(t for t in texts if t)


class TranscriptFetcher:
    """Caption fetcher bound to a language preference list."""

    def __init__(
        self,
        languages: list[str] | None = None,
        api: YouTubeTranscriptApi | None = None,
    ) -> None:
        self.languages = languages or ["en"]
        self._api = api or YouTubeTranscriptApi()

    def _fetch_sync(self, video_id: str) -> list[TranscriptFragment]:
        try:
            fetched = self._api.fetch(video_id, languages=self.languages)
        except NoTranscriptFound:
            # Fall back to whatever track exists, generated or manual.
            fetched = None
            for transcript in self._api.list(video_id):
                fetched = transcript.fetch()
                break
            if fetched is None:
                raise
        return [
            TranscriptFragment(text=s.text, start=s.start, duration=s.duration)
            for s in fetched
        ]

    async def fetch_fragments(self, video_id: str) -> list[TranscriptFragment]:
        """Fetch the timed caption fragments for *video_id*.

        Raises:
            NoTranscriptAvailable: Captions are disabled, missing, or empty.
            TranscriptFetchFailed: The caption service itself failed.
        """
        try:
            fragments = await asyncio.to_thread(self._fetch_sync, video_id)
        except CouldNotRetrieveTranscript as exc:
            logger.info("No transcript for %s: %s", video_id, type(exc).__name__)
            raise NoTranscriptAvailable(video_id, reason=type(exc).__name__) from exc
        except Exception as exc:
            logger.error("Transcript fetch for %s failed: %s", video_id, exc)
            raise TranscriptFetchFailed(str(exc)) from exc
        if not fragments:
            raise NoTranscriptAvailable(video_id, reason="empty")
        return fragments

    async def fetch(self, video_id: str) -> str:
        """Fetch the transcript for *video_id* as one plain-text string."""
        text = join_fragments(await self.fetch_fragments(video_id))
        if not text:
            raise NoTranscriptAvailable(video_id, reason="empty")
        logger.info("Fetched transcript for %s (%d chars)", video_id, len(text))
        return text
