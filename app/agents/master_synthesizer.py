from __future__ import annotations

from app.agents.base import BaseAgent
from app.errors import ContextTooLongError, PipelineValidationError
from app.services.prompt_store import render_prompt

ANALYSIS_DELIMITER = "\n\n=== NEXT COMPETITOR ===\n\n"


class MasterSynthesizerAgent(BaseAgent):
    """Combines per-competitor analyses into one master content outline."""

    name = "master_synthesizer"

    def __init__(self, *args, context_char_budget: int = 0, **kwargs):
        super().__init__(*args, **kwargs)
        self.context_char_budget = context_char_budget

    @property
    def system_prompt(self) -> str:
        return render_prompt("outline.master_strategy.system")

    def build_user_message(self, keyword: str, analyses: list[str]) -> str:
        joined = ANALYSIS_DELIMITER.join(analyses)
        if self.context_char_budget and len(joined) > self.context_char_budget:
            raise ContextTooLongError(len(joined), self.context_char_budget)
        return render_prompt("outline.master_strategy.user", keyword=keyword, analyses=joined)

    async def synthesize(self, keyword: str, analyses: list[str]) -> str:
        if not analyses:
            raise PipelineValidationError("Nothing to synthesize: no competitor analyses")
        return await self.complete(self.build_user_message(keyword, analyses))
