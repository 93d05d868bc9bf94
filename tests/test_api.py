"""Tests for API routes."""
import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.api import deps
from app.config import Settings
from app.errors import (
    ContextTooLongError,
    LLMProviderError,
    PipelineValidationError,
    SearchProviderError,
    UpgradeRequiredError,
)
from app.models.events import PipelineStage
from app.models.schemas import CompetitorAnalysisRecord, OutlineResponse, ReviewResponse, SearchResult
from app.services import streaming


@pytest.fixture
def app():
    from app.main import app

    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient
    return TestClient(app)


def _orchestrator(generate=None) -> MagicMock:
    orchestrator = MagicMock()
    orchestrator.run_id = "run123"
    orchestrator.generate = generate or AsyncMock(
        return_value=OutlineResponse(
            outline="# Outline",
            search_results=[SearchResult(title="T", link="https://t.example", position=1, result_type="organic")],
            saved=True,
            analysis_id="a1",
        )
    )
    return orchestrator


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["service"] == "contentscope"


def test_outline_returns_camel_case_payload(app, client):
    orchestrator = _orchestrator()
    app.dependency_overrides[deps.get_outline_orchestrator] = lambda: orchestrator

    response = client.post("/api/outline", json={"keyword": "plumbers", "searchEngine": "duckduckgo"})

    assert response.status_code == 200
    data = response.json()
    assert data["outline"] == "# Outline"
    assert data["saved"] is True
    assert data["analysisId"] == "a1"
    assert data["searchResults"][0]["resultType"] == "organic"
    request = orchestrator.generate.await_args.args[0]
    assert request.keyword == "plumbers"


@pytest.mark.parametrize(
    ("error", "status", "code", "fallback"),
    [
        (PipelineValidationError("Keyword must not be empty"), 400, "invalid_request", False),
        (UpgradeRequiredError("Google search is only available on Pro and Agency plans"), 402, "upgrade_required", False),
        (SearchProviderError("SerpAPI error"), 502, "search_failed", True),
        (ContextTooLongError(70000, 60000), 422, "context_too_long", False),
    ],
)
def test_outline_errors_map_to_status_codes(app, client, error, status, code, fallback):
    app.dependency_overrides[deps.get_outline_orchestrator] = lambda: _orchestrator(AsyncMock(side_effect=error))

    response = client.post("/api/outline", json={"keyword": "plumbers"})

    assert response.status_code == status
    data = response.json()
    assert data["error"] == str(error)
    assert data["code"] == code
    assert data["manualFallback"] is fallback


def test_outline_rejects_unknown_engine(app, client):
    orchestrator = _orchestrator()
    app.dependency_overrides[deps.get_outline_orchestrator] = lambda: orchestrator

    response = client.post("/api/outline", json={"keyword": "plumbers", "searchEngine": "bing"})

    assert response.status_code == 400
    data = response.json()
    assert data["code"] == "invalid_request"
    assert "searchEngine" in data["error"]
    assert data["manualFallback"] is False
    orchestrator.generate.assert_not_awaited()


def test_outline_store_failure_returns_error_payload(app, client):
    store = MagicMock()
    store.get_active_subscription = AsyncMock(side_effect=RuntimeError("postgrest unavailable"))
    orchestrator = deps.build_outline_orchestrator(Settings(), MagicMock(), store)
    app.dependency_overrides[deps.get_outline_orchestrator] = lambda: orchestrator

    response = client.post("/api/outline", json={"keyword": "x", "searchEngine": "google", "userId": "u1"})

    assert response.status_code == 500
    data = response.json()
    assert data["code"] == "internal_error"
    assert "postgrest unavailable" in data["error"]
    assert data["manualFallback"] is False


def test_outline_without_llm_key_returns_error_payload(client):
    with patch("app.api.deps.get_llm", side_effect=LLMProviderError("OPENROUTER_API_KEY is not configured")):
        response = client.post("/api/outline", json={"keyword": "plumbers"})

    assert response.status_code == 502
    assert response.json() == {
        "error": "OPENROUTER_API_KEY is not configured",
        "code": "llm_failed",
        "manualFallback": False,
    }


def test_unexpected_error_returns_error_payload(app):
    from fastapi.testclient import TestClient

    store = MagicMock()
    store.load_recent = AsyncMock(side_effect=RuntimeError("socket closed"))
    app.dependency_overrides[deps.get_store] = lambda: store

    response = TestClient(app, raise_server_exceptions=False).get("/api/analyses")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error", "code": "internal_error", "manualFallback": False}


def test_outline_stream_emits_stage_and_error_events(app, client):
    async def run(request):
        yield streaming.stage_changed(PipelineStage.SEARCHING, keyword=request.keyword)
        raise SearchProviderError("quota exceeded")

    orchestrator = _orchestrator()
    orchestrator.run = run
    app.dependency_overrides[deps.get_outline_orchestrator] = lambda: orchestrator

    with client.stream("POST", "/api/outline/stream", json={"keyword": "plumbers"}) as response:
        body = "".join(response.iter_text())

    assert response.status_code == 200
    assert "event: stage_changed" in body
    assert "event: error" in body
    error_line = [line for line in body.splitlines() if line.startswith("data:") and "quota" in line][0]
    payload = json.loads(error_line[len("data:"):].strip())
    assert payload == {"message": "quota exceeded", "code": "search_failed", "manualFallback": True}


def test_list_analyses_uses_limit(app, client):
    store = MagicMock()
    store.load_recent = AsyncMock(
        return_value=[
            CompetitorAnalysisRecord(
                id="a1",
                keyword="plumbers",
                search_engine="google",
                outline="# Outline",
                created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            )
        ]
    )
    app.dependency_overrides[deps.get_store] = lambda: store

    response = client.get("/api/analyses", params={"limit": 3})

    assert response.status_code == 200
    assert response.json()[0]["keyword"] == "plumbers"
    store.load_recent.assert_awaited_once_with(3)


def test_get_analysis_missing_is_404(app, client):
    store = MagicMock()
    store.get_analysis = AsyncMock(return_value=None)
    app.dependency_overrides[deps.get_store] = lambda: store

    assert client.get("/api/analyses/nope").status_code == 404


def test_analyses_without_store_is_503(app, client):
    app.dependency_overrides[deps.get_store] = lambda: None

    assert client.get("/api/analyses").status_code == 503


def test_analyze_reviews(app, client):
    service = MagicMock()
    service.analyze = AsyncMock(return_value=ReviewResponse(success=True, message="No places found"))
    app.dependency_overrides[deps.get_review_service] = lambda: service

    response = client.post("/api/reviews/analyze", json={"keyword": "plumber", "location": "Austin"})

    assert response.status_code == 200
    assert response.json()["success"] is True
    service.analyze.assert_awaited_once_with("plumber", "Austin")


def test_list_reviews_passes_filters(app, client):
    store = MagicMock()
    store.list_reviews = AsyncMock(return_value=[])
    app.dependency_overrides[deps.get_store] = lambda: store

    response = client.get("/api/reviews", params={"category": "anxiety", "messageType": "Pain Point"})

    assert response.status_code == 200
    store.list_reviews.assert_awaited_once_with(
        category="anxiety", message_type="Pain Point", keyword=None, limit=100
    )
