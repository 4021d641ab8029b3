"""File-based cache for Lecture Pilot phase results, with TTL."""

from __future__ import annotations

import hashlib
import json
import logging
from datetime import datetime, timedelta
from pathlib import Path

from .config import get_config

logger = logging.getLogger(__name__)


def _cache_dir() -> Path:
    """Return the cache directory path, creating it if needed."""
    d = Path(get_config().cache_dir)
    d.mkdir(parents=True, exist_ok=True)
    return d


def content_id(text: str) -> str:
    """Stable short id for a transcript."""
    return hashlib.sha256(text.encode()).hexdigest()[:16]


def cache_key(content: str, phase: str, model: str) -> str:
    """Generate ``{content_id}_{phase}_{model_hash}``."""
    model_hash = hashlib.md5(model.encode()).hexdigest()[:8]
    return f"{content_id(content)}_{phase}_{model_hash}"


def cache_path(content: str, phase: str, model: str) -> Path:
    """Return the full filesystem path for a cache entry's JSON file."""
    return _cache_dir() / f"{cache_key(content, phase, model)}.json"


def load(content: str, phase: str, model: str) -> dict | None:
    """Return the cached phase result or *None* if miss/expired."""
    ttl = get_config().cache_ttl_days
    p = cache_path(content, phase, model)
    if not p.exists():
        return None
    mtime = datetime.fromtimestamp(p.stat().st_mtime)
    if datetime.now() > mtime + timedelta(days=ttl):
        logger.debug("Cache expired: %s", p.name)
        return None
    try:
        data = json.loads(p.read_text())
        logger.info("Cache hit: %s", p.name)
        return data.get("result")
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Cache read error: %s", exc)
        return None


def save(content: str, phase: str, model: str, result: dict) -> bool:
    """Write *result* to cache. Returns True on success."""
    p = cache_path(content, phase, model)
    try:
        envelope = {
            "cached_at": datetime.now().isoformat(),
            "content_id": content_id(content),
            "phase": phase,
            "model": model,
            "result": result,
        }
        p.write_text(json.dumps(envelope, indent=2))
        logger.info("Cached: %s", p.name)
        return True
    except OSError as exc:
        logger.warning("Cache write error: %s", exc)
        return False


def clear(content: str | None = None) -> int:
    """Remove cache files. If *content* given, only that transcript's phases."""
    prefix = f"{content_id(content)}_" if content is not None else ""
    removed = 0
    for f in _cache_dir().glob("*.json"):
        if f.name.startswith(prefix):
            try:
                f.unlink()
                removed += 1
            except OSError as exc:
                logger.warning("Could not remove %s: %s", f.name, exc)
    return removed
