from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_review_service, get_store
from app.models.schemas import ReviewAnalysis, ReviewRequest, ReviewResponse
from app.services.reviews import ReviewService
from app.services.supabase import SupabaseStore

router = APIRouter(prefix="/api/reviews", tags=["reviews"])


@router.post("/analyze", response_model=ReviewResponse)
async def analyze_reviews(request: ReviewRequest, service: ReviewService = Depends(get_review_service)):
    """Find businesses for the keyword and tag their Google Maps reviews."""
    return await service.analyze(request.keyword, request.location)


@router.get("", response_model=list[ReviewAnalysis])
async def list_reviews(
    category: str | None = None,
    message_type: str | None = Query(default=None, alias="messageType"),
    keyword: str | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    store: SupabaseStore | None = Depends(get_store),
):
    if store is None:
        raise HTTPException(status_code=503, detail="Persistence is not configured")
    return await store.list_reviews(
        category=category,
        message_type=message_type,
        keyword=keyword,
        limit=limit,
    )
