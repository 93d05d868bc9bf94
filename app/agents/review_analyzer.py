from __future__ import annotations

import json
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from app.agents.base import BaseAgent
from app.errors import ResponseFormatError
from app.services.logger import logger
from app.services.prompt_store import render_prompt

CATEGORIES = ("motivation", "value", "anxiety")
MESSAGE_TYPES = ("Pain Point", "Purchase Prompt", "Feature Request", "Praise")

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def _match_label(value: Any, allowed: tuple[str, ...]) -> str | None:
    if not isinstance(value, str):
        return None
    wanted = value.strip().lower()
    for label in allowed:
        if label.lower() == wanted:
            return label
    return None


class ReviewTags(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    topic: str | None = None
    category: str | None = None
    message_type: str | None = Field(default=None, alias="messageType")
    feedback_location: str | None = Field(default=None, alias="feedbackLocation")

    @field_validator("category", mode="before")
    @classmethod
    def _known_category(cls, value: Any) -> str | None:
        label = _match_label(value, CATEGORIES)
        if value and label is None:
            logger.warning(f"Dropping unknown review category: {value!r}")
        return label

    @field_validator("message_type", mode="before")
    @classmethod
    def _known_message_type(cls, value: Any) -> str | None:
        label = _match_label(value, MESSAGE_TYPES)
        if value and label is None:
            logger.warning(f"Dropping unknown review message type: {value!r}")
        return label


def parse_tags(text: str) -> ReviewTags:
    """Parse the model's JSON answer, tolerating a fenced code block."""
    cleaned = _FENCE_RE.sub("", text.strip())
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ResponseFormatError(f"Review tags are not valid JSON: {e}", source="llm") from e
    if not isinstance(payload, dict):
        raise ResponseFormatError("Review tags must be a JSON object", source="llm")
    try:
        return ReviewTags.model_validate(payload)
    except ValidationError as e:
        raise ResponseFormatError(f"Unexpected review tag shape: {e}", source="llm") from e


class ReviewAnalyzerAgent(BaseAgent):
    """Tags a single business review with topic, category and message type."""

    name = "review_analyzer"

    @property
    def system_prompt(self) -> str:
        return render_prompt("reviews.system")

    async def tag(self, review_text: str) -> ReviewTags:
        text = await self.complete(render_prompt("reviews.tagging", review=review_text))
        return parse_tags(text)
