from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from uuid import uuid4

from app.agents.review_analyzer import ReviewAnalyzerAgent, ReviewTags
from app.config import Settings
from app.errors import ContentScopeError, PersistenceError
from app.models.schemas import ReviewAnalysis, ReviewResponse
from app.services import logger as log_service
from app.services.supabase import SupabaseStore
from app.tools import google_places

REVIEW_SOURCE = "Google Maps"


def build_query(keyword: str, location: str | None) -> str:
    location = (location or "").strip()
    return f"{keyword} in {location}" if location else keyword


class ReviewService:
    """Finds businesses for a keyword, pulls their reviews and tags each one."""

    def __init__(self, config: Settings, analyzer: ReviewAnalyzerAgent, store: SupabaseStore | None = None):
        self.config = config
        self.analyzer = analyzer
        self.store = store

    async def _tag(self, review_text: str) -> ReviewTags:
        try:
            return await self.analyzer.tag(review_text)
        except ContentScopeError as e:
            log_service.log_event("review_tagging_failed", "Storing review without tags", error=str(e))
            return ReviewTags()

    async def _reviews_for_place(self, place: google_places.Place, keyword: str) -> list[ReviewAnalysis]:
        try:
            details = await google_places.fetch_reviews(
                place.place_id, self.config, max_reviews=self.config.places_max_reviews
            )
        except ContentScopeError as e:
            log_service.log_event("place_reviews_failed", f"Skipping {place.name}", error=str(e))
            return []

        reviews = [r for r in details.reviews if r.text.strip()]
        tags = await asyncio.gather(*(self._tag(r.text) for r in reviews))
        created_at = datetime.now(timezone.utc)
        return [
            ReviewAnalysis(
                id=str(uuid4()),
                business_name=details.name or place.name,
                business_location=details.formatted_address or place.formatted_address or None,
                rating=review.rating,
                review_text=review.text,
                review_date=review.review_date,
                reviewer_name=review.author_name,
                keyword=keyword,
                topic=tag.topic,
                category=tag.category,
                message_type=tag.message_type,
                feedback_location=tag.feedback_location,
                review_source=REVIEW_SOURCE,
                source_link=details.url or place.url,
                competitor_url=place.url,
                created_at=created_at,
            )
            for review, tag in zip(reviews, tags)
        ]

    async def analyze(self, keyword: str, location: str | None = None) -> ReviewResponse:
        keyword = (keyword or "").strip()
        if not keyword:
            return ReviewResponse(success=False, message="Please provide a keyword to search for.")

        query = build_query(keyword, location)
        log_service.log_event("review_analysis_started", "Review analysis started", query=query)
        try:
            places = await google_places.search_places(
                query, self.config, max_results=self.config.places_max_results
            )
        except ContentScopeError as e:
            return ReviewResponse(success=False, message=f"Error searching places: {e}")

        if not places:
            return ReviewResponse(
                success=True,
                message="No places found for the given keyword. Try a different keyword or location.",
            )

        per_place = await asyncio.gather(*(self._reviews_for_place(p, keyword) for p in places))
        reviews = [review for batch in per_place for review in batch]
        if not reviews:
            return ReviewResponse(success=True, message="No reviews were found for the places matching your keyword.")

        message = f"Analyzed {len(reviews)} reviews from {len(places)} businesses matching \"{keyword}\""
        if self.store is not None:
            try:
                await self.store.save_reviews(reviews)
            except PersistenceError as e:
                log_service.log_event("db_error", "Failed to persist reviews", error=str(e))
                message += " (not saved)"
        return ReviewResponse(success=True, reviews=reviews, message=message)
