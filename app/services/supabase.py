from __future__ import annotations

import asyncio
import json
from typing import Any

from supabase import Client, create_client

from app.config import Settings
from app.errors import PersistenceError
from app.models.schemas import CompetitorAnalysisRecord, ReviewAnalysis, SearchResult, Subscription
from app.services import logger as log_service

ANALYSES_TABLE = "competitor_analyses"
REVIEWS_TABLE = "business_reviews"
SUBSCRIPTIONS_TABLE = "subscriptions"


def get_client(config: Settings) -> Client:
    if not config.supabase_url or not config.supabase_key:
        raise PersistenceError("SUPABASE_URL and SUPABASE_KEY must be configured")
    return create_client(config.supabase_url, config.supabase_key)


async def _execute(query: Any) -> Any:
    """Run blocking Supabase query execution in a worker thread."""
    return await asyncio.to_thread(query.execute)


async def _select(table: str, query: Any) -> list[dict[str, Any]]:
    try:
        result = await _execute(query)
    except Exception as e:
        log_service.log_db_operation("select", table, "error", error=str(e))
        raise PersistenceError(f"Failed to read {table}") from e
    return result.data or []


def _coerce_json_list(value: Any) -> list[Any]:
    """Normalize JSON-string columns into lists."""
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            return []
        return parsed if isinstance(parsed, list) else []
    return []


def _to_analysis_record(row: dict[str, Any]) -> CompetitorAnalysisRecord:
    results = [
        SearchResult.model_validate(item)
        for item in _coerce_json_list(row.get("search_results"))
        if isinstance(item, dict) and item.get("title") and item.get("link")
    ]
    return CompetitorAnalysisRecord(
        id=str(row["id"]),
        keyword=row["keyword"],
        search_engine=row["search_engine"],
        outline=row.get("outline"),
        search_results=results,
        created_at=row["created_at"],
    )


class SupabaseStore:
    """Append-only persistence for analyses and reviews, read access to subscriptions."""

    def __init__(self, client: Client):
        self.client = client

    # --- Competitor analyses ---

    async def save_analysis(
        self,
        keyword: str,
        search_engine: str,
        outline: str,
        search_results: list[SearchResult],
    ) -> CompetitorAnalysisRecord:
        row = {
            "keyword": keyword,
            "search_engine": search_engine,
            "outline": outline,
            "search_results": [
                r.model_dump(by_alias=True, exclude_none=True)
                for r in search_results
                if r.title and r.link
            ],
        }
        try:
            result = await _execute(self.client.table(ANALYSES_TABLE).insert(row))
        except Exception as e:
            log_service.log_db_operation("insert", ANALYSES_TABLE, "error", error=str(e))
            raise PersistenceError(f"Failed to store analysis for {keyword!r}") from e

        if not result.data:
            log_service.log_db_operation("insert", ANALYSES_TABLE, "error", error="no row returned")
            raise PersistenceError(f"Insert into {ANALYSES_TABLE} returned no row")

        log_service.log_db_operation("insert", ANALYSES_TABLE, "success", details=f"keyword={keyword}")
        return _to_analysis_record(result.data[0])

    async def load_recent(self, limit: int = 5) -> list[CompetitorAnalysisRecord]:
        rows = await _select(
            ANALYSES_TABLE,
            self.client.table(ANALYSES_TABLE)
            .select("*")
            .order("created_at", desc=True)
            .limit(limit),
        )
        return [_to_analysis_record(row) for row in rows]

    async def get_analysis(self, analysis_id: str) -> CompetitorAnalysisRecord | None:
        rows = await _select(ANALYSES_TABLE, self.client.table(ANALYSES_TABLE).select("*").eq("id", analysis_id))
        return _to_analysis_record(rows[0]) if rows else None

    # --- Business reviews ---

    async def save_reviews(self, reviews: list[ReviewAnalysis]) -> list[ReviewAnalysis]:
        if not reviews:
            return []
        rows = [r.model_dump(mode="json", exclude_none=True) for r in reviews]
        try:
            result = await _execute(self.client.table(REVIEWS_TABLE).insert(rows))
        except Exception as e:
            log_service.log_db_operation("insert", REVIEWS_TABLE, "error", error=str(e))
            raise PersistenceError(f"Failed to store {len(rows)} reviews") from e

        log_service.log_db_operation("insert", REVIEWS_TABLE, "success", details=f"rows={len(rows)}")
        return [ReviewAnalysis.model_validate(row) for row in result.data or []]

    async def list_reviews(
        self,
        *,
        category: str | None = None,
        message_type: str | None = None,
        keyword: str | None = None,
        limit: int = 100,
    ) -> list[ReviewAnalysis]:
        query = self.client.table(REVIEWS_TABLE).select("*")
        if category:
            query = query.eq("category", category)
        if message_type:
            query = query.eq("message_type", message_type)
        if keyword:
            query = query.eq("keyword", keyword)
        rows = await _select(REVIEWS_TABLE, query.order("created_at", desc=True).limit(limit))
        return [ReviewAnalysis.model_validate(row) for row in rows]

    # --- Subscriptions ---

    async def get_active_subscription(self, user_id: str) -> Subscription | None:
        rows = await _select(
            SUBSCRIPTIONS_TABLE,
            self.client.table(SUBSCRIPTIONS_TABLE)
            .select("*, subscription_plans(*)")
            .eq("user_id", user_id)
            .eq("status", "active")
            .limit(1),
        )
        if not rows:
            return None
        row = rows[0]
        plan = row.get("subscription_plans") or {}
        return Subscription(
            user_id=row["user_id"],
            status=row["status"],
            plan_name=plan.get("name") if isinstance(plan, dict) else None,
        )
