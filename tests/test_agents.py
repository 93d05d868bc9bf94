"""Tests for the competitor analyzer, master synthesizer and review tagger agents."""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.agents.competitor_analyzer import CompetitorAnalyzerAgent
from app.agents.master_synthesizer import ANALYSIS_DELIMITER, MasterSynthesizerAgent
from app.agents.review_analyzer import ReviewAnalyzerAgent, parse_tags
from app.errors import ContextTooLongError, LLMProviderError, PipelineValidationError, ResponseFormatError
from app.llm_client import Completion
from app.models.schemas import SearchResult


def _llm(*texts: str) -> MagicMock:
    llm = MagicMock()
    llm.complete = AsyncMock(side_effect=[Completion(text=t, model="test-model") for t in texts])
    return llm


def _results(n: int) -> list[SearchResult]:
    return [
        SearchResult(title=f"Title {i}", snippet=f"Snippet {i}", link=f"https://{i}.example", position=i + 1)
        for i in range(n)
    ]


class TestCompetitorAnalyzer:
    @pytest.mark.asyncio
    async def test_analyze_sends_title_and_snippet_with_one_based_number(self):
        llm = _llm("analysis")
        agent = CompetitorAnalyzerAgent(llm, "test-model")

        text = await agent.analyze(_results(1)[0], 0)

        kwargs = llm.complete.await_args.kwargs
        assert text == "analysis"
        assert kwargs["model"] == "test-model"
        assert kwargs["user"] == "Analyze this content from competitor 1:\n\nTitle 0\nSnippet 0"
        assert "SECTION-BY-SECTION ANALYSIS" in kwargs["system"]

    @pytest.mark.asyncio
    async def test_analyze_all_preserves_order_with_out_of_order_completion(self):
        agent = CompetitorAnalyzerAgent(MagicMock(), "test-model")

        async def fake_complete(user_message: str) -> str:
            number = int(user_message.split("competitor ")[1].split(":")[0])
            await asyncio.sleep(0.01 * (4 - number))
            return f"analysis {number}"

        agent.complete = fake_complete

        analyses = await agent.analyze_all(_results(3))

        assert analyses == ["analysis 1", "analysis 2", "analysis 3"]

    @pytest.mark.asyncio
    async def test_analyze_all_respects_max_parallel(self):
        agent = CompetitorAnalyzerAgent(MagicMock(), "test-model")
        running = 0
        peak = 0

        async def fake_complete(user_message: str) -> str:
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            return "ok"

        agent.complete = fake_complete

        await agent.analyze_all(_results(5), max_parallel=2)

        assert peak == 2

    @pytest.mark.asyncio
    async def test_analyze_all_fails_when_one_analysis_fails(self):
        llm = MagicMock()
        llm.complete = AsyncMock(
            side_effect=[
                Completion(text="a", model="m"),
                LLMProviderError("down"),
                Completion(text="c", model="m"),
            ]
        )
        agent = CompetitorAnalyzerAgent(llm, "m")

        with pytest.raises(LLMProviderError):
            await agent.analyze_all(_results(3))

    @pytest.mark.asyncio
    async def test_empty_completion_is_format_error(self):
        agent = CompetitorAnalyzerAgent(_llm("   "), "m")
        with pytest.raises(ResponseFormatError):
            await agent.analyze(_results(1)[0], 0)


class TestMasterSynthesizer:
    def test_user_message_joins_analyses_with_delimiter(self):
        agent = MasterSynthesizerAgent(MagicMock(), "m")

        message = agent.build_user_message("plumbers", ["one", "two"])

        assert '"plumbers"' in message
        assert message.endswith("one" + ANALYSIS_DELIMITER + "two")

    def test_context_budget_exceeded_raises(self):
        agent = MasterSynthesizerAgent(MagicMock(), "m", context_char_budget=10)

        with pytest.raises(ContextTooLongError) as exc_info:
            agent.build_user_message("plumbers", ["x" * 8, "y" * 8])

        assert exc_info.value.budget == 10
        assert exc_info.value.size > 10

    @pytest.mark.asyncio
    async def test_synthesize_returns_outline(self):
        llm = _llm("  # Master outline  ")
        agent = MasterSynthesizerAgent(llm, "m")

        outline = await agent.synthesize("plumbers", ["a", "b"])

        assert outline == "# Master outline"
        assert "CONTENT STRATEGY SYNTHESIS" in llm.complete.await_args.kwargs["system"]

    @pytest.mark.asyncio
    async def test_synthesize_requires_analyses(self):
        with pytest.raises(PipelineValidationError):
            await MasterSynthesizerAgent(MagicMock(), "m").synthesize("plumbers", [])


class TestReviewAnalyzer:
    def test_parse_tags_accepts_fenced_json(self):
        tags = parse_tags(
            '```json\n{"topic": "Wait time", "category": "Anxiety", '
            '"messageType": "pain point", "feedbackLocation": "We waited an hour."}\n```'
        )

        assert tags.topic == "Wait time"
        assert tags.category == "anxiety"
        assert tags.message_type == "Pain Point"
        assert tags.feedback_location == "We waited an hour."

    def test_parse_tags_drops_unknown_labels(self):
        tags = parse_tags('{"topic": "Price", "category": "cost", "messageType": "Rant"}')

        assert tags.topic == "Price"
        assert tags.category is None
        assert tags.message_type is None

    def test_parse_tags_rejects_non_json(self):
        with pytest.raises(ResponseFormatError):
            parse_tags("The review is about pricing.")

    @pytest.mark.asyncio
    async def test_tag_renders_review_into_prompt(self):
        llm = _llm('{"topic": "Service", "category": "value", "messageType": "Praise"}')
        agent = ReviewAnalyzerAgent(llm, "m")

        tags = await agent.tag("Great service!")

        assert tags.message_type == "Praise"
        assert 'Review: "Great service!"' in llm.complete.await_args.kwargs["user"]
