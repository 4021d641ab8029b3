"""Environment files for the API key and server settings.

Files are read in order: the one named by ``LECTURE_ENV_FILE``, then
``.env`` in the working directory, then
``~/.config/lecture-analyzer-mcp/.env``. The process environment always
wins, and among the files the first to define a key wins.
"""

from __future__ import annotations

import os
from pathlib import Path

ENV_FILE_VAR = "LECTURE_ENV_FILE"
LOCAL_ENV_PATH = Path(".env")
DEFAULT_ENV_PATH = Path.home() / ".config" / "lecture-analyzer-mcp" / ".env"

_QUOTES = ('"', "'")


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in _QUOTES:
        return value[1:-1]
    return value


def _is_unset(key: str, value: str | None) -> bool:
    """Blank values and unresolved ``${KEY}`` placeholders count as unset.

    Some MCP hosts pass ``"${GEMINI_API_KEY}"`` through verbatim when the
    variable is missing from the user's shell.
    """
    if value is None:
        return True
    value = _unquote(value.strip()).strip()
    if not value:
        return True
    if value in {f"${key}", f"${{{key}}}"}:
        return True
    return value.startswith(f"${{{key}:-") and value.endswith("}")


def _parse_value(raw: str) -> str:
    raw = raw.strip()
    if raw[:1] in _QUOTES:
        end = raw.find(raw[0], 1)
        if end != -1:
            return raw[1:end]
    # Unquoted values may carry a trailing " # comment".
    return raw.split(" #", 1)[0].rstrip()


def parse_dotenv(path: Path) -> dict[str, str]:
    """Parse ``KEY=VALUE`` lines from *path*; a missing file parses as empty.

    Handles quoting, ``export`` prefixes and comments. No variable expansion.
    """
    if not path.is_file():
        return {}

    result: dict[str, str] = {}
    for line in path.read_text().splitlines():
        line = line.strip()
        if line.startswith("export "):
            line = line[len("export "):]
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        if key:
            result[key] = _parse_value(value)
    return result


def env_paths() -> list[Path]:
    """Files :func:`load_dotenv` consults, highest priority first."""
    paths: list[Path] = []
    explicit = os.environ.get(ENV_FILE_VAR, "").strip()
    if explicit:
        paths.append(Path(explicit).expanduser())
    paths.extend([LOCAL_ENV_PATH, DEFAULT_ENV_PATH])
    return paths


def load_dotenv(path: Path | None = None) -> dict[str, str]:
    """Copy settings into ``os.environ`` where they are unset.

    Args:
        path: A single file to read. Defaults to every file in :func:`env_paths`.

    Returns:
        The vars that were actually injected.
    """
    injected: dict[str, str] = {}
    for candidate in [path] if path is not None else env_paths():
        for key, value in parse_dotenv(candidate).items():
            if key not in injected and _is_unset(key, os.environ.get(key)):
                os.environ[key] = value
                injected[key] = value
    return injected
