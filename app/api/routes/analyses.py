from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_store
from app.models.schemas import CompetitorAnalysisRecord
from app.services.supabase import SupabaseStore

router = APIRouter(prefix="/api/analyses", tags=["analyses"])


def _require_store(store: SupabaseStore | None = Depends(get_store)) -> SupabaseStore:
    if store is None:
        raise HTTPException(status_code=503, detail="Persistence is not configured")
    return store


@router.get("", response_model=list[CompetitorAnalysisRecord])
async def list_analyses(
    limit: int = Query(default=5, ge=1, le=100),
    store: SupabaseStore = Depends(_require_store),
):
    """Most recent saved analyses, newest first."""
    return await store.load_recent(limit)


@router.get("/{analysis_id}", response_model=CompetitorAnalysisRecord)
async def get_analysis(analysis_id: str, store: SupabaseStore = Depends(_require_store)):
    record = await store.get_analysis(analysis_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return record
