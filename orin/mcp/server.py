"""
Minimal MCP-style tool server: exposes each registered capability as a standalone
tool endpoint so external agents can run a single invocation without a plan.
"""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from orin.agent.dispatcher import run_invocation
from orin.agent.plan import ToolInvocation, ToolName
from orin.agent.tools import TOOL_REGISTRY, describe_registry
from orin.schemas.query import ToolInvokeRequest

logger = logging.getLogger(__name__)

mcp_router = APIRouter(tags=["mcp"])


@mcp_router.get("/tools", summary="MCP tool discovery")
def mcp_list_tools() -> dict[str, list[dict[str, str]]]:
    return {"tools": describe_registry()}


@mcp_router.post(
    "/tools/{tool_name}",
    summary="MCP tool: run one invocation",
    description="Run a single tool invocation. Tool failures are returned as an error result, not an HTTP error.",
)
async def mcp_invoke_tool(tool_name: str, body: ToolInvokeRequest) -> dict[str, Any]:
    """Run `tool_name` once with `argument`. 404 for a tool outside the registry."""
    logger.info("MCP tool called: %s", tool_name)
    try:
        tool = ToolName(tool_name)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=f"Unknown tool: {tool_name!r}") from e
    executor = TOOL_REGISTRY.get(tool)
    if executor is None:
        raise HTTPException(status_code=404, detail=f"No executor registered for {tool_name!r}")
    result = await run_invocation(ToolInvocation(index=0, tool=tool, argument=body.argument), executor)
    return {"result": result.to_dict()}
