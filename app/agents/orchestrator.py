from __future__ import annotations

import time
from typing import AsyncGenerator
from uuid import uuid4

from app.agents.competitor_analyzer import CompetitorAnalyzerAgent
from app.agents.master_synthesizer import MasterSynthesizerAgent
from app.config import Settings
from app.errors import (
    ContentScopeError,
    PersistenceError,
    PipelineValidationError,
    ResponseFormatError,
    SearchProviderError,
)
from app.models.events import PipelineStage, SSEEvent
from app.models.schemas import OutlineRequest, OutlineResponse, SearchResult
from app.services import logger as log_service
from app.services import streaming
from app.services.subscription import SubscriptionGate
from app.services.supabase import SupabaseStore
from app.tools.page_fetcher import PageFetcher, is_valid_url
from app.tools.search_provider import SearchAdapter


class OutlineOrchestrator:
    """Runs search -> per-competitor analysis -> master synthesis -> save.

    `run` is an async generator of stage events and re-raises the failure
    after emitting a `failed` stage. `generate` drives `run` and returns the
    final payload.
    """

    def __init__(
        self,
        *,
        config: Settings,
        search: SearchAdapter,
        pages: PageFetcher,
        analyzer: CompetitorAnalyzerAgent,
        synthesizer: MasterSynthesizerAgent,
        gate: SubscriptionGate,
        store: SupabaseStore | None = None,
    ):
        self.config = config
        self.search = search
        self.pages = pages
        self.analyzer = analyzer
        self.synthesizer = synthesizer
        self.gate = gate
        self.store = store
        self.run_id = uuid4().hex[:12]
        self.stage = PipelineStage.IDLE
        self.result: OutlineResponse | None = None

    def _enter(self, stage: PipelineStage, **data) -> SSEEvent:
        self.stage = stage
        log_service.log_pipeline_stage(self.run_id, stage.value, "failed" if stage == PipelineStage.FAILED else "started", data or None)
        return streaming.stage_changed(stage, **data)

    async def _search(self, keyword: str, engine: str) -> tuple[list[SearchResult], str]:
        try:
            response = await self.search.fetch_results(keyword, engine)
        except (SearchProviderError, ResponseFormatError):
            raise
        except Exception as e:
            raise SearchProviderError(f"Search failed for {keyword!r}: {e}") from e
        if not response.results:
            raise SearchProviderError(f"No search results found for {keyword!r}")
        return response.results, response.provider

    async def _fetch_manual(self, urls: list[str]) -> list[SearchResult]:
        invalid = [u for u in urls if not is_valid_url(u)]
        if invalid:
            raise PipelineValidationError(f"Invalid URLs: {', '.join(invalid)}")
        return await self.pages.fetch_pages(urls)

    async def _save(self, keyword: str, engine: str, outline: str, results: list[SearchResult]) -> str | None:
        if self.store is None:
            log_service.log_event("persistence_skipped", "No store configured", run_id=self.run_id)
            return None
        try:
            record = await self.store.save_analysis(keyword, engine, outline, results)
        except PersistenceError as e:
            log_service.log_event(
                event_type="db_error",
                message="Failed to persist competitor analysis",
                error=str(e),
                run_id=self.run_id,
            )
            return None
        return record.id

    async def run(self, request: OutlineRequest) -> AsyncGenerator[SSEEvent, None]:
        t0 = time.monotonic()
        manual = request.manual
        keyword = (request.keyword or "").strip()

        try:
            if manual:
                urls = [u.strip() for u in request.manual_urls or [] if u.strip()]
                if not urls:
                    raise PipelineValidationError("Add at least one competitor URL")
                yield self._enter(PipelineStage.ANALYZING, mode="manual", urls=len(urls))
                results = await self._fetch_manual(urls)
                keyword = keyword or results[0].title
            else:
                if not keyword:
                    raise PipelineValidationError("Keyword must not be empty")
                await self.gate.require_engine_access(request.search_engine, request.user_id)

                yield self._enter(PipelineStage.SEARCHING, keyword=keyword, engine=request.search_engine)
                results, provider = await self._search(keyword, request.search_engine)
                yield streaming.search_result(results, provider)
                yield self._enter(PipelineStage.ANALYZING, results=len(results))

            analyses = await self.analyzer.analyze_all(results, max_parallel=self.config.analysis_max_parallel)
            results = [r.model_copy(update={"analysis": a}) for r, a in zip(results, analyses)]
            for index, r in enumerate(results):
                yield streaming.analysis_completed(index, r.link)

            yield self._enter(PipelineStage.SYNTHESIZING, analyses=len(analyses))
            outline = await self.synthesizer.synthesize(keyword, analyses)

            analysis_id = None
            if not manual:
                yield self._enter(PipelineStage.SAVING)
                analysis_id = await self._save(keyword, request.search_engine, outline, results)

            self.result = OutlineResponse(
                outline=outline,
                search_results=results,
                saved=analysis_id is not None,
                analysis_id=analysis_id,
            )
            yield self._enter(
                PipelineStage.DONE,
                runtime_ms=int((time.monotonic() - t0) * 1000),
                saved=self.result.saved,
            )
            yield streaming.outline_complete(self.result)
        except ContentScopeError as e:
            # Manual mode is already the fallback path.
            e.manual_fallback = e.manual_fallback and not manual
            yield self._enter(PipelineStage.FAILED, error=str(e), manualFallback=e.manual_fallback)
            raise
        except Exception as e:
            yield self._enter(PipelineStage.FAILED, error=str(e), manualFallback=False)
            raise ContentScopeError(f"Outline pipeline failed: {e}") from e

    async def generate(self, request: OutlineRequest) -> OutlineResponse:
        async for _ in self.run(request):
            pass
        if self.result is None:
            raise ContentScopeError("Outline pipeline finished without a result")
        return self.result
