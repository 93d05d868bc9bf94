from __future__ import annotations

from typing import Any

from app.models.events import STAGE_PROGRESS, EventType, PipelineStage, SSEEvent
from app.models.schemas import OutlineResponse, SearchResult


def stage_changed(stage: PipelineStage, **kwargs: Any) -> SSEEvent:
    return SSEEvent(
        event=EventType.STAGE_CHANGED,
        data={"stage": stage.value, "progress": STAGE_PROGRESS[stage], **kwargs},
    )


def search_result(results: list[SearchResult], provider: str) -> SSEEvent:
    return SSEEvent(
        event=EventType.SEARCH_RESULT,
        data={
            "provider": provider,
            "results": [r.model_dump(by_alias=True, exclude_none=True) for r in results],
        },
    )


def analysis_completed(index: int, link: str) -> SSEEvent:
    return SSEEvent(event=EventType.ANALYSIS_COMPLETED, data={"index": index, "link": link})


def outline_complete(response: OutlineResponse) -> SSEEvent:
    return SSEEvent(event=EventType.OUTLINE_COMPLETE, data=response.model_dump(by_alias=True, mode="json"))


def error(message: str, *, code: str = "internal_error", manual_fallback: bool = False) -> SSEEvent:
    return SSEEvent(
        event=EventType.ERROR,
        data={"message": message, "code": code, "manualFallback": manual_fallback},
    )
