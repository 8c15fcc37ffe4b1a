"""
API route aggregator: register endpoints; no orchestration logic here — only delegate
to the workflow and map workflow errors to HTTP.
"""

import json
import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from orin.agent import graph
from orin.agent.tools import describe_registry
from orin.core.errors import WorkflowCancelled, WorkflowError
from orin.schemas.query import QueryRequest, QueryResponse

logger = logging.getLogger(__name__)
router = APIRouter()


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "Orin agentic backend running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


@router.get("/tools", tags=["system"], summary="List the tools a plan may use")
def get_tools() -> dict:
    return {"tools": describe_registry()}


# --- Query (HTTP) ---

def _error_detail(e: WorkflowError) -> dict:
    return {"kind": e.kind, "stage": e.stage_name, "message": e.message}


@router.post(
    "/query",
    response_model=QueryResponse,
    tags=["query"],
    summary="Answer a query (plan, execute tools, synthesize)",
    description="Returns the plan, ordered tool results, and the final answer. 502 when planning or synthesis fails, 503 when cancelled.",
)
async def post_query(body: QueryRequest) -> QueryResponse:
    logger.info("[api:post_query] IN  query=%r", body.query)
    try:
        result = await graph.run_workflow(body.query)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except WorkflowCancelled as e:
        raise HTTPException(status_code=503, detail=_error_detail(e)) from e
    except WorkflowError as e:
        logger.warning("[api:post_query] workflow failed kind=%s: %s", e.kind, e.message)
        raise HTTPException(status_code=502, detail=_error_detail(e)) from e
    logger.info("[api:post_query] OUT results=%d answer_len=%d", len(result.tool_results), len(result.answer))
    return QueryResponse(**result.to_dict())


async def _sse_generator(query: str):
    """Yield Server-Sent Events for a streaming workflow run."""
    try:
        async for evt in graph.run_workflow_stream(query):
            event_type = evt.get("event", "")
            yield f"event: {event_type}\ndata: {json.dumps(evt, default=str)}\n\n"
    except Exception as e:
        logger.exception("SSE stream failed")
        yield f"event: error\ndata: {json.dumps({'kind': 'internal', 'message': str(e)})}\n\n"


@router.post(
    "/query/stream",
    tags=["query"],
    summary="Answer a query (SSE stream)",
    description="Stream workflow progress via Server-Sent Events. Events: stage, plan, tool_started, tool_finished, done, error.",
)
def post_query_stream(body: QueryRequest) -> StreamingResponse:
    logger.info("[api:post_query_stream] IN  query=%r", body.query)
    return StreamingResponse(
        _sse_generator(body.query),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
