from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

SearchEngine = Literal["google", "duckduckgo"]
ResultType = Literal["organic", "local", "brand"]


class WireModel(BaseModel):
    """Accepts both snake_case and camelCase keys, serializes with aliases."""

    model_config = ConfigDict(populate_by_name=True)


# --- Outline ---


class SearchResult(WireModel):
    title: str
    snippet: str = ""
    link: str
    position: int | None = None
    result_type: ResultType | None = Field(default=None, alias="resultType")
    rating: float | None = None
    reviews: int | None = None
    address: str | None = None
    hours: str | None = None
    analysis: str | None = None

    def as_prompt_text(self) -> str:
        return f"{self.title}\n{self.snippet}"


class OutlineRequest(WireModel):
    keyword: str | None = None
    search_engine: SearchEngine = Field(default="duckduckgo", alias="searchEngine")
    manual_urls: list[str] | None = Field(default=None, alias="manualUrls")
    is_manual_mode: bool = Field(default=False, alias="isManualMode")
    user_id: str | None = Field(default=None, alias="userId")

    @property
    def manual(self) -> bool:
        return self.is_manual_mode or (bool(self.manual_urls) and not (self.keyword or "").strip())


class OutlineResponse(WireModel):
    outline: str
    search_results: list[SearchResult] = Field(alias="searchResults")
    saved: bool = False
    analysis_id: str | None = Field(default=None, alias="analysisId")


class ErrorResponse(WireModel):
    error: str
    code: str = "internal_error"
    manual_fallback: bool = Field(default=False, alias="manualFallback")


class CompetitorAnalysisRecord(BaseModel):
    id: str
    keyword: str
    search_engine: str
    outline: str | None = None
    search_results: list[SearchResult] = Field(default_factory=list)
    created_at: datetime


# --- Reviews ---


class ReviewAnalysis(BaseModel):
    id: str | None = None
    business_name: str
    business_location: str | None = None
    rating: float | None = None
    review_text: str
    review_date: str | None = None
    reviewer_name: str | None = None
    keyword: str
    topic: str | None = None
    category: str | None = None
    message_type: str | None = None
    feedback_location: str | None = None
    review_source: str | None = None
    source_link: str | None = None
    competitor_url: str | None = None
    created_at: datetime | None = None


class ReviewRequest(BaseModel):
    keyword: str
    location: str | None = None


class ReviewResponse(BaseModel):
    success: bool
    reviews: list[ReviewAnalysis] = Field(default_factory=list)
    message: str | None = None


# --- Subscriptions ---


class Subscription(BaseModel):
    user_id: str
    status: str
    plan_name: str | None = None
