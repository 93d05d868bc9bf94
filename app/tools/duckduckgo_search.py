from __future__ import annotations

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from app.config import Settings
from app.errors import ResponseFormatError, SearchProviderError
from app.models.schemas import SearchResult


class RelatedTopic(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    text: str = Field(default="", alias="Text")
    first_url: str = Field(default="", alias="FirstURL")


class InstantAnswerPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    related_topics: list[RelatedTopic] = Field(default_factory=list, alias="RelatedTopics")


def map_payload(payload: InstantAnswerPayload) -> list[SearchResult]:
    """Map related topics that carry both text and a URL.

    Topic groups (entries with nested ``Topics`` and no text of their own)
    are skipped. The title is the text before the first " - ".
    """
    return [
        SearchResult(
            title=topic.text.split(" - ")[0],
            snippet=topic.text,
            link=topic.first_url,
            result_type="organic",
        )
        for topic in payload.related_topics
        if topic.text and topic.first_url
    ]


async def search(keyword: str, config: Settings) -> list[SearchResult]:
    """Query the DuckDuckGo Instant Answer API."""
    params = {"q": keyword, "format": "json", "no_html": "1"}
    try:
        async with httpx.AsyncClient(timeout=config.http_timeout_seconds) as client:
            response = await client.get(config.duckduckgo_base_url, params=params)
            response.raise_for_status()
            # DuckDuckGo serves JSON as application/x-javascript
            raw = response.json()
    except httpx.HTTPError as e:
        raise SearchProviderError(f"DuckDuckGo request failed: {e}") from e
    except ValueError as e:
        raise ResponseFormatError("DuckDuckGo returned a non-JSON body", source="duckduckgo", manual_fallback=True) from e

    try:
        payload = InstantAnswerPayload.model_validate(raw)
    except ValidationError as e:
        raise ResponseFormatError(f"Unexpected DuckDuckGo payload: {e}", source="duckduckgo", manual_fallback=True) from e
    return map_payload(payload)
