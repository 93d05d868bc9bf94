from __future__ import annotations

import time

from app.errors import ResponseFormatError
from app.llm_client import OpenRouterChatAdapter
from app.services import logger as log_service


class BaseAgent:
    """Base agent that wraps one system-prompted completion call.

    Subclasses define `name` and `system_prompt`; `complete` sends a single
    user message and returns the raw text of the answer.
    """

    name: str = "base"
    system_prompt: str = ""

    def __init__(self, llm: OpenRouterChatAdapter, model: str, *, max_tokens: int = 4096):
        self.llm = llm
        self.model = model
        self.max_tokens = max_tokens

    async def complete(self, user_message: str) -> str:
        t0 = time.monotonic()
        try:
            completion = await self.llm.complete(
                model=self.model,
                system=self.system_prompt,
                user=user_message,
                max_tokens=self.max_tokens,
            )
        except Exception as e:
            log_service.log_llm_call(
                model=self.model,
                caller=self.name,
                duration_ms=int((time.monotonic() - t0) * 1000),
                status="error",
                error=str(e),
            )
            raise

        log_service.log_llm_call(
            model=completion.model,
            caller=self.name,
            input_tokens=completion.usage.input_tokens,
            output_tokens=completion.usage.output_tokens,
            duration_ms=int((time.monotonic() - t0) * 1000),
        )

        text = completion.text.strip()
        if not text:
            raise ResponseFormatError(f"{self.name} returned an empty completion", source="llm")
        return text
