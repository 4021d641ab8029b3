"""Shared test fixtures for lecture-analyzer-mcp."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from lecture_analyzer_mcp.client import GeminiClient
from lecture_analyzer_mcp.runtime import Runtime, set_runtime
from lecture_analyzer_mcp.store import DashboardStore
from lecture_analyzer_mcp.transcript import TranscriptFetcher


def unwrap_tool(tool: Any) -> Any:
    """Extract the raw coroutine from a FastMCP FunctionTool, if wrapped.

    FastMCP 2.x wraps @server.tool functions in FunctionTool (not callable).
    FastMCP 3.x preserves the original function. This helper works with both.
    """
    return getattr(tool, "fn", tool)


@pytest.fixture(autouse=True, scope="session")
def _unwrap_fastmcp_tools():
    """Patch tool modules so FunctionTool objects become directly callable."""
    import importlib
    import pkgutil

    import lecture_analyzer_mcp.tools as tools_pkg

    modules = [
        importlib.import_module(info.name)
        for info in pkgutil.walk_packages(tools_pkg.__path__, tools_pkg.__name__ + ".")
    ]
    for mod in modules:
        for name in list(vars(mod)):
            obj = getattr(mod, name, None)
            if obj is not None and hasattr(obj, "fn") and not callable(obj):
                setattr(mod, name, obj.fn)


@pytest.fixture(autouse=True)
def _set_dummy_api_key(monkeypatch):
    """Ensure tests never hit the real Gemini API."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-key-not-real")


@pytest.fixture(autouse=True)
def _disable_tracing(monkeypatch):
    """Disable MLflow tracing so no test talks to a tracking server."""
    monkeypatch.setenv("LECTURE_TRACING_ENABLED", "false")


@pytest.fixture(autouse=True)
def _isolate_dotenv(tmp_path, monkeypatch):
    """Prevent tests from loading a real .env from the working dir or ~/.config."""
    monkeypatch.delenv("LECTURE_ENV_FILE", raising=False)
    monkeypatch.setattr(
        "lecture_analyzer_mcp.dotenv.DEFAULT_ENV_PATH",
        tmp_path / "nonexistent.env",
    )
    monkeypatch.setattr(
        "lecture_analyzer_mcp.dotenv.LOCAL_ENV_PATH",
        tmp_path / "nonexistent-local.env",
    )


@pytest.fixture(autouse=True)
def _isolate_storage(tmp_path, monkeypatch):
    """Point the pilot cache at a temp dir and keep the dashboard store in memory."""
    cache_dir = tmp_path / "cache"
    monkeypatch.setenv("LECTURE_CACHE_DIR", str(cache_dir))
    monkeypatch.setenv("LECTURE_DB_PATH", "")


@pytest.fixture(autouse=True)
def clean_config():
    """Reset the config singleton between tests."""
    import lecture_analyzer_mcp.config as cfg_mod

    cfg_mod._config = None
    yield
    cfg_mod._config = None


@pytest.fixture()
def fake_client():
    """A GeminiClient stand-in with async generate/generate_structured/synthesize_speech."""
    client = MagicMock(spec=GeminiClient)
    client.model = "gemini-test"
    client.generate = AsyncMock()
    client.generate_structured = AsyncMock()
    client.synthesize_speech = AsyncMock()
    client.aclose = AsyncMock()
    return client


@pytest.fixture()
def fake_fetcher():
    """A TranscriptFetcher stand-in whose fetch() returns a fixed transcript."""
    fetcher = MagicMock(spec=TranscriptFetcher)
    fetcher.fetch = AsyncMock(return_value="The cat sat on the mat. 2+2=4.")
    return fetcher


@pytest.fixture()
def store():
    s = DashboardStore("")
    yield s
    s.close()


@pytest.fixture()
def runtime(fake_client, fake_fetcher, store):
    """Install a Runtime built from the fakes for tools and HTTP routes."""
    rt = Runtime(client=fake_client, fetcher=fake_fetcher, store=store)
    set_runtime(rt)
    yield rt
    set_runtime(None)


def dashboard_json(**overrides: Any) -> str:
    """A model response for the cat/mat lecture, as the model would send it."""
    payload: dict[str, Any] = {
        "videoTitle": "Cats and Sums",
        "transcript": "The cat sat on the mat. 2+2=4.",
        "topicName": "Basic statements",
        "difficulty": "Easy",
        "chapters": [
            {
                "title": "The cat",
                "start": "00:00",
                "end": "00:05",
                "notes": ["The cat sat on the mat."],
            },
        ],
        "examNotes": [{"chapterTitle": "The cat", "points": ["The cat sat on the mat."]}],
        "formulas": [{"equation": "$$2+2=4$$", "context": "A simple sum stated in the lecture."}],
        "practiceQuestions": [
            {"question": "Where did the cat sit?", "answer": "On the mat", "type": "short", "options": []},
        ],
        "quickRevision": ["The cat sat on the mat."],
        "revisionSheet": "## Revision\n- The cat sat on the mat.",
        "mindMap": {"title": "Lecture", "children": [{"title": "Cat", "children": []}]},
        "examQuestions": ["What is 2+2?"],
        "confidenceQuestions": [
            {"question": "What is 2+2?", "options": ["3", "4"], "answer": "4"},
        ],
    }
    payload.update(overrides)
    return json.dumps(payload)


@pytest.fixture()
def dashboard_response():
    """Factory for model output JSON text (see :func:`dashboard_json`)."""
    return dashboard_json
