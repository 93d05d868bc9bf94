from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from app.config import Settings
from app.errors import ResponseFormatError, SearchProviderError
from app.models.schemas import SearchResult


class _SerpModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class _OrganicResult(_SerpModel):
    title: str = ""
    snippet: str = ""
    link: str = ""
    position: int | None = None


class _LocalPlace(_SerpModel):
    title: str = ""
    description: str = ""
    position: int | None = None
    rating: float | None = None
    reviews: int | None = None
    address: str | None = None
    hours: str | None = None
    links: dict[str, Any] = {}

    @field_validator("hours", mode="before")
    @classmethod
    def _hours_as_text(cls, value: Any) -> str | None:
        return value if isinstance(value, str) else None

    @field_validator("reviews", mode="before")
    @classmethod
    def _reviews_as_int(cls, value: Any) -> int | None:
        if isinstance(value, str):
            digits = "".join(ch for ch in value if ch.isdigit())
            return int(digits) if digits else None
        return value


class _LocalResults(_SerpModel):
    places: list[_LocalPlace] = []


class _KnowledgeGraph(_SerpModel):
    title: str = ""
    description: str = ""
    website: str = ""


class SerpApiPayload(_SerpModel):
    error: str | None = None
    organic_results: list[_OrganicResult] = []
    local_results: _LocalResults | list[_LocalPlace] | None = None
    knowledge_graph: _KnowledgeGraph | None = None

    @property
    def local_places(self) -> list[_LocalPlace]:
        if isinstance(self.local_results, _LocalResults):
            return self.local_results.places
        return self.local_results or []


def map_payload(payload: SerpApiPayload) -> list[SearchResult]:
    """Flatten a SerpAPI Google payload into organic, then local, then brand results."""
    mapped: list[SearchResult] = [
        SearchResult(
            title=item.title,
            snippet=item.snippet,
            link=item.link,
            position=item.position,
            result_type="organic",
        )
        for item in payload.organic_results
    ]

    for place in payload.local_places:
        website = place.links.get("website") if isinstance(place.links.get("website"), str) else ""
        mapped.append(
            SearchResult(
                title=place.title,
                snippet=place.description,
                link=website or "",
                result_type="local",
                rating=place.rating,
                reviews=place.reviews,
                address=place.address,
                hours=place.hours,
            )
        )

    kg = payload.knowledge_graph
    if kg is not None and kg.title:
        mapped.append(
            SearchResult(
                title=kg.title,
                snippet=kg.description,
                link=kg.website,
                result_type="brand",
            )
        )
    return mapped


async def search(keyword: str, config: Settings) -> list[SearchResult]:
    """Query Google through SerpAPI and normalize the results."""
    if not config.serp_api_key:
        raise SearchProviderError("SERP_API_KEY is not configured")

    params = {
        "engine": "google",
        "q": keyword,
        "api_key": config.serp_api_key,
    }
    try:
        async with httpx.AsyncClient(timeout=config.http_timeout_seconds) as client:
            response = await client.get(config.serpapi_base_url, params=params)
            response.raise_for_status()
            raw = response.json()
    except httpx.HTTPError as e:
        raise SearchProviderError(f"SerpAPI request failed: {e}") from e
    except ValueError as e:
        raise ResponseFormatError("SerpAPI returned a non-JSON body", source="serpapi", manual_fallback=True) from e

    try:
        payload = SerpApiPayload.model_validate(raw)
    except ValidationError as e:
        raise ResponseFormatError(f"Unexpected SerpAPI payload: {e}", source="serpapi", manual_fallback=True) from e

    if payload.error:
        raise SearchProviderError(f"SerpAPI error: {payload.error}")
    return map_payload(payload)
