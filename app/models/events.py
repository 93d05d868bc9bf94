from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PipelineStage(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    ANALYZING = "analyzing"
    SYNTHESIZING = "synthesizing"
    SAVING = "saving"
    DONE = "done"
    FAILED = "failed"


# Cosmetic progress shown while a stage is running.
STAGE_PROGRESS: dict[PipelineStage, int] = {
    PipelineStage.IDLE: 0,
    PipelineStage.SEARCHING: 10,
    PipelineStage.ANALYZING: 40,
    PipelineStage.SYNTHESIZING: 70,
    PipelineStage.SAVING: 90,
    PipelineStage.DONE: 100,
    PipelineStage.FAILED: 0,
}


class EventType(str, Enum):
    STAGE_CHANGED = "stage_changed"
    SEARCH_RESULT = "search_result"
    ANALYSIS_COMPLETED = "analysis_completed"
    OUTLINE_COMPLETE = "outline_complete"
    ERROR = "error"


@dataclass
class SSEEvent:
    event: EventType
    data: dict[str, Any] = field(default_factory=dict)
