"""Dashboard history tools — 3 tools on a FastMCP sub-server."""

from __future__ import annotations

from fastmcp import FastMCP
from mcp.types import ToolAnnotations

from ..errors import DashboardNotFound, make_tool_error
from ..runtime import get_runtime
from ..tracing import trace
from ..types import AnalysisId

dashboard_server = FastMCP("dashboard")


@dashboard_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=False))
@trace(name="dashboard_list", span_type="TOOL")
async def dashboard_list() -> dict:
    """List saved dashboards, newest first (id, title, topic, date only).

    Returns:
        Dict with ``dashboards`` summaries.
    """
    try:
        entries = get_runtime().store.list()
    except Exception as exc:
        return make_tool_error(exc)
    return {
        "dashboards": [
            {
                "id": a.id,
                "videoTitle": a.video_title,
                "topicName": a.topic_name,
                "date": a.date,
                "videoUrl": a.video_url,
            }
            for a in entries
        ]
    }


@dashboard_server.tool(annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=False))
@trace(name="dashboard_get", span_type="TOOL")
async def dashboard_get(analysis_id: AnalysisId) -> dict:
    """Return one saved dashboard in full.

    Returns:
        LectureAnalysis dict or a ToolError dict for an unknown id.
    """
    try:
        analysis = get_runtime().store.get(analysis_id)
    except Exception as exc:
        return make_tool_error(exc)
    if analysis is None:
        return make_tool_error(DashboardNotFound(analysis_id))
    return analysis.to_wire()


@dashboard_server.tool(
    annotations=ToolAnnotations(
        readOnlyHint=False,
        destructiveHint=True,
        idempotentHint=True,
        openWorldHint=False,
    )
)
@trace(name="dashboard_delete", span_type="TOOL")
async def dashboard_delete(analysis_id: AnalysisId) -> dict:
    """Delete a saved dashboard. Unknown ids are a no-op.

    Returns:
        Dict with ``deleted`` (True if an entry was removed).
    """
    try:
        return {"deleted": get_runtime().store.delete(analysis_id)}
    except Exception as exc:
        return make_tool_error(exc)
