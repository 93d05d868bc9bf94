from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from app.config import Settings
from app.errors import ResponseFormatError, SearchProviderError

TEXT_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"
DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"
OK_STATUSES = ("OK", "ZERO_RESULTS")


class _PlacesModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Place(_PlacesModel):
    name: str
    place_id: str
    rating: float = 0.0
    user_ratings_total: int = 0
    formatted_address: str = ""

    @property
    def url(self) -> str:
        return f"https://www.google.com/maps/place/?q=place_id:{self.place_id}"


class PlaceReview(_PlacesModel):
    author_name: str = "Anonymous"
    rating: float | None = None
    text: str = ""
    time: int | None = None

    @property
    def review_date(self) -> str | None:
        if self.time is None:
            return None
        return datetime.fromtimestamp(self.time, tz=timezone.utc).isoformat()


class PlaceDetails(_PlacesModel):
    name: str = ""
    formatted_address: str = ""
    url: str = ""
    reviews: list[PlaceReview] = []


class _TextSearchPayload(_PlacesModel):
    status: str
    error_message: str | None = None
    results: list[Place] = []


class _DetailsPayload(_PlacesModel):
    status: str
    error_message: str | None = None
    result: PlaceDetails | None = None


async def _get(url: str, params: dict[str, Any], config: Settings) -> Any:
    if not config.google_maps_api_key:
        raise SearchProviderError("GOOGLE_MAPS_API_KEY is not configured")
    try:
        async with httpx.AsyncClient(timeout=config.http_timeout_seconds) as client:
            response = await client.get(url, params={**params, "key": config.google_maps_api_key})
            response.raise_for_status()
            return response.json()
    except httpx.HTTPError as e:
        raise SearchProviderError(f"Google Places request failed: {e}") from e
    except ValueError as e:
        raise ResponseFormatError("Google Places returned a non-JSON body", source="google_places") from e


def _check_status(status: str, error_message: str | None) -> None:
    if status not in OK_STATUSES:
        raise SearchProviderError(f"Google Places API error: {status} - {error_message or 'Unknown error'}")


async def search_places(query: str, config: Settings, *, max_results: int = 5) -> list[Place]:
    """Text-search Google Maps places for ``query``."""
    raw = await _get(TEXT_SEARCH_URL, {"query": query}, config)
    try:
        payload = _TextSearchPayload.model_validate(raw)
    except ValidationError as e:
        raise ResponseFormatError(f"Unexpected Places search payload: {e}", source="google_places") from e
    _check_status(payload.status, payload.error_message)
    return payload.results[:max_results]


async def fetch_reviews(place_id: str, config: Settings, *, max_reviews: int = 10) -> PlaceDetails:
    """Fetch a place's details including its (at most five, per Google) reviews."""
    raw = await _get(
        DETAILS_URL,
        {"place_id": place_id, "fields": "name,rating,formatted_address,review,url"},
        config,
    )
    try:
        payload = _DetailsPayload.model_validate(raw)
    except ValidationError as e:
        raise ResponseFormatError(f"Unexpected Places details payload: {e}", source="google_places") from e
    _check_status(payload.status, payload.error_message)

    details = payload.result or PlaceDetails()
    details.reviews = details.reviews[:max_reviews]
    return details
