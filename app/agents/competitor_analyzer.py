from __future__ import annotations

import asyncio

from app.agents.base import BaseAgent
from app.models.schemas import SearchResult
from app.services.prompt_store import render_prompt


class CompetitorAnalyzerAgent(BaseAgent):
    """Breaks one competitor page (title + snippet) down into its content strategy."""

    name = "competitor_analyzer"

    @property
    def system_prompt(self) -> str:
        return render_prompt("outline.competitor_analysis.system")

    async def analyze(self, result: SearchResult, index: int) -> str:
        user_message = render_prompt(
            "outline.competitor_analysis.user",
            number=index + 1,
            content=result.as_prompt_text(),
        )
        return await self.complete(user_message)

    async def analyze_all(self, results: list[SearchResult], *, max_parallel: int = 0) -> list[str]:
        """Analyze every result concurrently; the first failure fails the batch.

        Output order matches ``results``. ``max_parallel`` of 0 starts every
        call at once.
        """
        if max_parallel <= 0:
            return list(await asyncio.gather(*(self.analyze(r, i) for i, r in enumerate(results))))

        semaphore = asyncio.Semaphore(max_parallel)

        async def bounded(result: SearchResult, index: int) -> str:
            async with semaphore:
                return await self.analyze(result, index)

        return list(await asyncio.gather(*(bounded(r, i) for i, r in enumerate(results))))
