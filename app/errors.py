"""Domain exceptions raised by the outline and review pipelines."""
from __future__ import annotations


class ContentScopeError(Exception):
    """Base class for errors the API converts into an error payload."""

    code = "internal_error"
    status_code = 500
    manual_fallback = False


class PipelineValidationError(ContentScopeError):
    code = "invalid_request"
    status_code = 400


class UpgradeRequiredError(ContentScopeError):
    code = "upgrade_required"
    status_code = 402


class SearchProviderError(ContentScopeError):
    """A search or places backend failed or answered with a non-success status."""

    code = "search_failed"
    status_code = 502
    manual_fallback = True


class ResponseFormatError(ContentScopeError):
    """An upstream payload did not match the expected shape."""

    code = "invalid_data_format"
    status_code = 502

    def __init__(self, message: str, *, source: str = "", manual_fallback: bool = False):
        super().__init__(message)
        self.source = source
        self.manual_fallback = manual_fallback


class LLMProviderError(ContentScopeError):
    code = "llm_failed"
    status_code = 502


class ContextTooLongError(ContentScopeError):
    code = "context_too_long"
    status_code = 422

    def __init__(self, size: int, budget: int):
        super().__init__(f"Synthesis input is {size} chars, budget is {budget}")
        self.size = size
        self.budget = budget


class PersistenceError(ContentScopeError):
    code = "persistence_failed"
    status_code = 500
