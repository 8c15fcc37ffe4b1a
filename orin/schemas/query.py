"""Schemas for the query and tool endpoints."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class QueryRequest(BaseModel):
    """Request body for POST /query and POST /query/stream. Each query is an independent run."""

    query: str = Field(..., min_length=1, description="Free-text user query.")


class ToolResultModel(BaseModel):
    """One tool invocation outcome, in plan order."""

    index: int = Field(..., description="Position in the flattened plan.")
    tool: str = Field(..., description="Tool identifier (webSearch, fetchUrl, generateHaiku).")
    argument: str = Field(..., description="The single argument the tool was invoked with.")
    status: str = Field(..., description="'success' or 'error'.")
    degraded: bool = Field(False, description="True when the result is a canned fallback.")
    result: Optional[Any] = Field(None, description="Tool payload when status is 'success'.")
    error: Optional[str] = Field(None, description="Error message when status is 'error'.")


class QueryResponse(BaseModel):
    """Response for POST /query."""

    plan: dict[str, Any] = Field(..., description="The plan produced by the planner.")
    tool_results: list[ToolResultModel] = Field(default_factory=list, description="Ordered tool results.")
    answer: str = Field(..., description="Final synthesized answer.")


class ToolInvokeRequest(BaseModel):
    """Request body for POST /mcp/tools/{tool_name}."""

    argument: str = ""
