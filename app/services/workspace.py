"""Per-user outline session state: current outline, manual-URL fallback and history."""
from __future__ import annotations

from typing import Callable

from app.agents.orchestrator import OutlineOrchestrator
from app.errors import PipelineValidationError, UpgradeRequiredError
from app.models.schemas import CompetitorAnalysisRecord, OutlineRequest, OutlineResponse
from app.services import logger as log_service
from app.services.supabase import SupabaseStore
from app.tools.page_fetcher import is_valid_url


class OutlineWorkspace:
    def __init__(
        self,
        orchestrator_factory: Callable[[], OutlineOrchestrator],
        store: SupabaseStore | None = None,
        *,
        history_limit: int = 5,
    ):
        self._new_orchestrator = orchestrator_factory
        self.store = store
        self.history_limit = history_limit
        self.manual_mode = False
        self.manual_urls: list[str] = []
        self.outline: OutlineResponse | None = None
        self.recent: list[CompetitorAnalysisRecord] = []
        self.last_error: str | None = None

    async def refresh_history(self) -> list[CompetitorAnalysisRecord]:
        """Reload recent analyses; on failure the previous list is kept."""
        if self.store is None:
            return self.recent
        try:
            self.recent = await self.store.load_recent(self.history_limit)
        except Exception as e:
            log_service.log_event("history_refresh_failed", "Keeping previous history", error=str(e))
        return self.recent

    async def generate(self, keyword: str, engine: str = "duckduckgo", *, user_id: str | None = None) -> OutlineResponse | None:
        """Run the keyword pipeline; any upstream failure switches to manual mode.

        Entered manual URLs are kept on failure and cleared on success.
        """
        request = OutlineRequest(keyword=keyword, search_engine=engine, user_id=user_id)
        try:
            response = await self._new_orchestrator().generate(request)
        except (UpgradeRequiredError, PipelineValidationError) as e:
            self.last_error = str(e)
            return None
        except Exception as e:
            self.last_error = str(e)
            self.manual_mode = True
            log_service.log_event("manual_mode_enabled", "Outline generation failed", error=str(e))
            return None

        self.last_error = None
        self.outline = response
        self.manual_mode = False
        self.manual_urls = []
        if response.saved:
            await self.refresh_history()
        return response

    def add_manual_url(self, url: str) -> None:
        url = url.strip()
        if not is_valid_url(url):
            raise PipelineValidationError("Please enter a valid URL starting with http:// or https://")
        self.manual_urls.append(url)

    def remove_manual_url(self, index: int) -> None:
        if 0 <= index < len(self.manual_urls):
            del self.manual_urls[index]

    async def run_manual_analysis(self) -> OutlineResponse | None:
        if not self.manual_urls:
            return None

        request = OutlineRequest(manual_urls=list(self.manual_urls), is_manual_mode=True)
        try:
            response = await self._new_orchestrator().generate(request)
        except Exception as e:
            self.last_error = str(e)
            return None

        self.last_error = None
        self.outline = response
        return response

    def load_history_item(self, record: CompetitorAnalysisRecord) -> OutlineResponse:
        self.outline = OutlineResponse(
            outline=record.outline or "",
            search_results=record.search_results,
            saved=True,
            analysis_id=record.id,
        )
        return self.outline
