"""Optional MLflow tracing for tools, routes and the Gemini calls beneath them.

``setup()`` turns on ``mlflow.gemini.autolog()`` so each ``generate_content``
call is recorded as a ``CHAT_MODEL`` span. ``trace()`` wraps MCP tools and
HTTP routes in ``TOOL`` spans that parent those calls, and ``annotate()``
tags the active span with lecture context such as the video id, the pilot
phase or a cache hit.

Everything here is a no-op unless ``mlflow-tracing`` is installed and
``ServerConfig.tracing_enabled`` is true (``MLFLOW_TRACKING_URI`` set and
``LECTURE_TRACING_ENABLED`` not ``"false"``).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

try:
    import mlflow
    import mlflow.gemini

    _HAS_MLFLOW = True
except ImportError:
    _HAS_MLFLOW = False


def is_enabled() -> bool:
    if not _HAS_MLFLOW:
        return False
    from .config import get_config

    return get_config().tracing_enabled


def trace(
    func: Callable | None = None,
    *,
    name: str | None = None,
    span_type: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Callable:
    """Wrap a tool or route handler in an MLflow span; identity when disabled.

    Usage::

        @trace(name="lecture_process_url", span_type="TOOL")
        async def lecture_process_url(...): ...
    """
    if not is_enabled():
        return func if func is not None else (lambda f: f)
    return mlflow.trace(func, name=name, span_type=span_type, attributes=attributes)


def annotate(**attributes: Any) -> None:
    """Set *attributes* on the active span. ``None`` values are dropped."""
    if not is_enabled():
        return
    values = {k: v for k, v in attributes.items() if v is not None}
    if not values:
        return
    try:
        span = mlflow.get_current_active_span()
        if span is not None:
            span.set_attributes(values)
    except Exception:
        logger.debug("Could not annotate active span", exc_info=True)


def setup() -> None:
    """Point MLflow at the configured tracking server and enable autolog.

    A setup failure is logged and tracing stays off for the process; the
    server still starts.
    """
    if not is_enabled():
        return

    from .config import get_config

    cfg = get_config()
    try:
        mlflow.set_tracking_uri(cfg.mlflow_tracking_uri)
        mlflow.set_experiment(cfg.mlflow_experiment_name)
        mlflow.gemini.autolog()
    except Exception:
        logger.warning("MLflow tracing setup failed, continuing without tracing", exc_info=True)
        return
    logger.info(
        "Tracing lecture analyses to %s (experiment %s)",
        cfg.mlflow_tracking_uri, cfg.mlflow_experiment_name,
    )


def shutdown() -> None:
    """Flush traces still queued for async export."""
    if not is_enabled():
        return
    try:
        mlflow.flush_trace_async_logging()
    except Exception:
        logger.warning("MLflow trace flush failed", exc_info=True)
