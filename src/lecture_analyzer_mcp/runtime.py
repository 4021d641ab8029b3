"""Process-wide wiring of the collaborators the service layer needs.

The Gemini client, transcript fetcher and dashboard store are built once
from :func:`get_config` and handed explicitly to each module call. Tests
install their own :class:`Runtime` with :func:`set_runtime`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .client import GeminiClient
from .config import ServerConfig, get_config
from .store import DashboardStore
from .transcript import TranscriptFetcher

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    client: GeminiClient
    fetcher: TranscriptFetcher
    store: DashboardStore
    enforce_latex: bool = True

    @classmethod
    def from_config(cls, cfg: ServerConfig) -> Runtime:
        """Build every collaborator from *cfg*."""
        return cls(
            client=GeminiClient.from_config(cfg),
            fetcher=TranscriptFetcher(languages=cfg.transcript_languages),
            store=DashboardStore(cfg.dashboard_db_path, max_entries=cfg.max_dashboards),
            enforce_latex=cfg.enforce_latex,
        )

    async def aclose(self) -> None:
        await self.client.aclose()
        self.store.close()


_runtime: Runtime | None = None


def get_runtime() -> Runtime:
    """Return the process runtime, building it on first access."""
    global _runtime
    if _runtime is None:
        _runtime = Runtime.from_config(get_config())
        logger.info("Runtime ready (model=%s)", _runtime.client.model)
    return _runtime


def set_runtime(runtime: Runtime | None) -> None:
    """Install *runtime* (or clear it with None)."""
    global _runtime
    _runtime = runtime


async def close_runtime() -> bool:
    """Close and forget the runtime. Returns True if one was open."""
    global _runtime
    if _runtime is None:
        return False
    runtime, _runtime = _runtime, None
    await runtime.aclose()
    return True
