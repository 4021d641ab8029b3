"""Main FastMCP server — mounts the tool sub-servers and the HTTP API."""

from __future__ import annotations

import argparse
import logging
from contextlib import asynccontextmanager

from fastmcp import FastMCP

from . import tracing
from .api import register_routes
from .config import get_config
from .runtime import close_runtime
from .tools.dashboard import dashboard_server
from .tools.followup import followup_server
from .tools.lecture import lecture_server

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(server: FastMCP):
    """Startup/shutdown hook — closes the Gemini client and the store."""
    tracing.setup()
    yield {}
    if await close_runtime():
        logger.info("Lifespan shutdown: runtime closed")
    tracing.shutdown()


app = FastMCP(
    "lecture-analyzer",
    instructions=(
        "Lecture analyzer and revision dashboard. Turns a YouTube lecture or "
        "pasted transcript into chapters, exam notes, LaTeX formulas, quizzes, "
        "a revision sheet and a mind map, using the transcript as the only "
        "source of truth. Follow-up tools answer doubts, simplify passages, "
        "grade explanations and read text aloud."
    ),
    lifespan=_lifespan,
)

app.mount(lecture_server)
app.mount(followup_server)
app.mount(dashboard_server)
register_routes(app)


def main() -> None:
    """Entry-point for the ``lecture-analyzer-mcp`` console script."""
    parser = argparse.ArgumentParser(prog="lecture-analyzer-mcp")
    parser.add_argument("--http", action="store_true", help="serve MCP and the JSON API over HTTP")
    parser.add_argument("--port", type=int, default=None, help="HTTP port (default: $PORT or 8080)")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    cfg = get_config()
    if args.http or cfg.transport == "http":
        port = args.port or cfg.port
        logger.info("Serving HTTP on port %d", port)
        app.run(transport="http", host="0.0.0.0", port=port)
    else:
        app.run()


if __name__ == "__main__":
    main()
