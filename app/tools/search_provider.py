from __future__ import annotations

from dataclasses import dataclass

from app.config import Settings
from app.models.schemas import SearchResult
from app.tools import duckduckgo_search, serpapi_search

PROVIDER_NAMES = {
    "google": "serpapi",
    "duckduckgo": "duckduckgo",
}


@dataclass
class SearchResponse:
    results: list[SearchResult]
    provider: str


def finalize_results(results: list[SearchResult], limit: int) -> list[SearchResult]:
    """Drop entries without a title or link, keep provider order, cap at ``limit``.

    Missing positions are filled with the 1-based rank in the returned list.
    """
    kept: list[SearchResult] = []
    for result in results:
        if not result.title.strip() or not result.link.strip():
            continue
        kept.append(result)
        if len(kept) >= limit:
            break

    return [
        r if r.position is not None else r.model_copy(update={"position": rank})
        for rank, r in enumerate(kept, start=1)
    ]


class SearchAdapter:
    """Fetches the top SERP entries for a keyword from one of two engines."""

    def __init__(self, config: Settings):
        self.config = config

    async def fetch_results(self, keyword: str, engine: str) -> SearchResponse:
        engine = (engine or "").lower().strip()
        if engine == "google":
            raw = await serpapi_search.search(keyword, self.config)
        elif engine == "duckduckgo":
            raw = await duckduckgo_search.search(keyword, self.config)
        else:
            raise ValueError(f"Unsupported search engine: {engine}")

        return SearchResponse(
            results=finalize_results(raw, self.config.search_max_results),
            provider=PROVIDER_NAMES[engine],
        )
