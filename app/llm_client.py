"""OpenRouter chat-completion client built on the OpenAI-compatible SDK."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from app.config import Settings
from app.errors import LLMProviderError, ResponseFormatError


@dataclass
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass
class Completion:
    text: str
    model: str
    usage: Usage = field(default_factory=Usage)


class OpenRouterChatAdapter:
    """Single-turn system+user completions with usage mapped to input/output tokens."""

    def __init__(self, openai_client: Any):
        self._client = openai_client

    @staticmethod
    def _temperature_for_model(model: str) -> float:
        # Some GPT-5-compatible gateways reject anything but the default temperature.
        lowered = (model or "").lower()
        if "gpt-5" in lowered:
            return 1
        return 0.7

    @staticmethod
    def _to_openai_messages(system: str, user: str) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]

    @staticmethod
    def _from_openai_response(response: Any, model: str) -> Completion:
        choices = getattr(response, "choices", None) or []
        if not choices:
            raise ResponseFormatError("Completion response has no choices", source="llm")
        message = getattr(choices[0], "message", None)
        text = getattr(message, "content", None)
        if not isinstance(text, str):
            raise ResponseFormatError("Completion message has no text content", source="llm")

        usage = getattr(response, "usage", None)
        return Completion(
            text=text,
            model=getattr(response, "model", None) or model,
            usage=Usage(
                input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                output_tokens=getattr(usage, "completion_tokens", 0) or 0,
            ),
        )

    async def complete(
        self,
        *,
        model: str,
        system: str,
        user: str,
        max_tokens: int,
    ) -> Completion:
        from openai import OpenAIError

        try:
            response = await self._client.chat.completions.create(
                model=model,
                messages=self._to_openai_messages(system, user),
                max_tokens=max_tokens,
                temperature=self._temperature_for_model(model),
            )
        except OpenAIError as e:
            raise LLMProviderError(f"Completion request failed: {e}") from e
        return self._from_openai_response(response, model)


def get_client(config: Settings) -> OpenRouterChatAdapter:
    """Build an OpenRouter client via the OpenAI SDK."""
    from openai import AsyncOpenAI

    if not config.openrouter_api_key:
        raise LLMProviderError("OPENROUTER_API_KEY is not configured")

    base_url = config.openrouter_base_url.strip() or "https://openrouter.ai/api/v1"
    openai_client = AsyncOpenAI(
        api_key=config.openrouter_api_key,
        base_url=base_url,
        timeout=config.llm_timeout_seconds,
    )
    return OpenRouterChatAdapter(openai_client)


def get_model(config: Settings) -> str:
    """Get the active OpenRouter model id."""
    if config.openrouter_model:
        return config.openrouter_model
    return config.default_model
