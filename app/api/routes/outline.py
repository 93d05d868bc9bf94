from __future__ import annotations

import json as _json

from fastapi import APIRouter, Depends
from sse_starlette.sse import EventSourceResponse

from app.agents.orchestrator import OutlineOrchestrator
from app.api.deps import get_outline_orchestrator
from app.errors import ContentScopeError
from app.models.schemas import ErrorResponse, OutlineRequest, OutlineResponse
from app.services import logger as log_service
from app.services import streaming

router = APIRouter(prefix="/api/outline", tags=["outline"])

_ERROR_RESPONSES = {code: {"model": ErrorResponse} for code in (400, 402, 422, 500, 502)}


@router.post("", response_model=OutlineResponse, response_model_by_alias=True, responses=_ERROR_RESPONSES)
async def generate_outline(
    request: OutlineRequest,
    orchestrator: OutlineOrchestrator = Depends(get_outline_orchestrator),
):
    """Search (or fetch manual URLs), analyze each competitor and return the master outline."""
    log_service.log_event(
        event_type="outline_requested",
        message="Outline requested",
        run_id=orchestrator.run_id,
        keyword=(request.keyword or "")[:100],
        engine=request.search_engine,
        manual=request.manual,
    )
    return await orchestrator.generate(request)


@router.post("/stream")
async def stream_outline(
    request: OutlineRequest,
    orchestrator: OutlineOrchestrator = Depends(get_outline_orchestrator),
):
    """SSE variant of POST /api/outline that reports each pipeline stage."""

    async def event_generator():
        try:
            async for event in orchestrator.run(request):
                yield {"event": event.event.value, "data": _json.dumps(event.data)}
        except ContentScopeError as e:
            error_event = streaming.error(str(e), code=e.code, manual_fallback=e.manual_fallback)
            yield {"event": error_event.event.value, "data": _json.dumps(error_event.data)}
        except Exception as e:
            log_service.log_event(
                event_type="stream_error",
                message="Unhandled error in outline stream",
                error=str(e),
                run_id=orchestrator.run_id,
            )
            error_event = streaming.error("Outline stream failed unexpectedly.")
            yield {"event": error_event.event.value, "data": _json.dumps(error_event.data)}

    return EventSourceResponse(event_generator())
