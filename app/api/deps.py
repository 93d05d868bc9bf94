from __future__ import annotations

from functools import lru_cache

from app.agents.competitor_analyzer import CompetitorAnalyzerAgent
from app.agents.master_synthesizer import MasterSynthesizerAgent
from app.agents.orchestrator import OutlineOrchestrator
from app.agents.review_analyzer import ReviewAnalyzerAgent
from app.config import Settings, settings
from app.errors import PersistenceError
from app.llm_client import OpenRouterChatAdapter, get_client, get_model
from app.services import logger as log_service
from app.services import supabase
from app.services.reviews import ReviewService
from app.services.subscription import SubscriptionGate
from app.tools.page_fetcher import PageFetcher
from app.tools.search_provider import SearchAdapter


def get_settings() -> Settings:
    return settings


@lru_cache
def get_llm() -> OpenRouterChatAdapter:
    return get_client(get_settings())


@lru_cache
def get_store() -> supabase.SupabaseStore | None:
    """Shared store, or None when Supabase is not configured."""
    try:
        return supabase.SupabaseStore(supabase.get_client(get_settings()))
    except PersistenceError as e:
        log_service.log_event("persistence_disabled", "Supabase unavailable", error=str(e))
        return None


def build_outline_orchestrator(
    config: Settings,
    llm: OpenRouterChatAdapter,
    store: supabase.SupabaseStore | None,
) -> OutlineOrchestrator:
    model = get_model(config)
    return OutlineOrchestrator(
        config=config,
        search=SearchAdapter(config),
        pages=PageFetcher(config),
        analyzer=CompetitorAnalyzerAgent(llm, model, max_tokens=config.llm_max_tokens),
        synthesizer=MasterSynthesizerAgent(
            llm,
            model,
            max_tokens=config.llm_max_tokens,
            context_char_budget=config.synthesis_context_char_budget,
        ),
        gate=SubscriptionGate(store, config),
        store=store,
    )


def build_review_service(
    config: Settings,
    llm: OpenRouterChatAdapter,
    store: supabase.SupabaseStore | None,
) -> ReviewService:
    analyzer = ReviewAnalyzerAgent(llm, get_model(config), max_tokens=config.llm_max_tokens)
    return ReviewService(config, analyzer, store)


def get_outline_orchestrator() -> OutlineOrchestrator:
    # One orchestrator per request; it carries run state.
    return build_outline_orchestrator(get_settings(), get_llm(), get_store())


def get_review_service() -> ReviewService:
    return build_review_service(get_settings(), get_llm(), get_store())
