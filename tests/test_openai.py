"""Tests for the chat-completion client: reply parsing, retries and circuit breaking."""

from __future__ import annotations

from types import SimpleNamespace

import httpx
import openai
import pytest

from app.services.openai import (
    OpenAIClientManager,
    OpenAISettings,
    TaskType,
    generate_json,
    parse_json_reply,
    reset_client_manager,
)
from app.services.openai.validation import clamp_unit, pick_choice, string_list


def _completion(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeCompletions:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls: list[dict] = []

    async def create(self, **params):
        self.calls.append(params)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeManager:
    """Stands in for ``OpenAIClientManager`` with a scripted client."""

    def __init__(self, outcomes=(), available: bool = True):
        self.completions = FakeCompletions(outcomes)
        self.client = SimpleNamespace(chat=SimpleNamespace(completions=self.completions))
        self.available = available
        self.successes = 0
        self.failures = 0

    async def get_client(self):
        return self.client if self.available else None

    def record_success(self):
        self.successes += 1

    def record_failure(self):
        self.failures += 1


def _request() -> httpx.Request:
    return httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")


@pytest.fixture
def single_attempt(monkeypatch):
    from app.services.openai import generate

    monkeypatch.setattr(
        generate, "get_settings", lambda: OpenAISettings(api_key="k", max_retries=1)
    )


class TestParseJsonReply:
    def test_plain_object(self):
        assert parse_json_reply('{"overall": "bullish"}') == {"overall": "bullish"}

    def test_code_fences_are_stripped(self):
        reply = '```json\n{"sentiment": "positive", "confidence": 0.8}\n```'
        assert parse_json_reply(reply) == {"sentiment": "positive", "confidence": 0.8}

    def test_leading_prose_is_skipped(self):
        reply = 'Sure! Here is the analysis: {"summary": "uses {braces} inside"} Hope it helps.'
        assert parse_json_reply(reply) == {"summary": "uses {braces} inside"}

    @pytest.mark.parametrize("reply", [None, "", "   ", "no json here", "[1, 2, 3]", "{broken"])
    def test_unusable_replies(self, reply):
        assert parse_json_reply(reply) is None


class TestValidationHelpers:
    def test_clamp_unit(self):
        assert clamp_unit(1.7) == 1.0
        assert clamp_unit(-2) == 0.0
        assert clamp_unit("0.25") == 0.25
        assert clamp_unit("high") == 0.5
        assert clamp_unit(float("nan")) == 0.5

    def test_pick_choice(self):
        assert pick_choice(" Bullish ", ("bullish", "bearish"), "neutral") == "bullish"
        assert pick_choice("sideways", ("bullish", "bearish"), "neutral") == "neutral"
        assert pick_choice(3, ("bullish",), "neutral") == "neutral"

    def test_string_list(self):
        assert string_list(["a", " ", 3, "b"]) == ["a", "3", "b"]
        assert string_list("not a list") == []
        assert string_list(["a", "b", "c"], limit=2) == ["a", "b"]


class TestGenerateJson:
    @pytest.mark.asyncio
    async def test_returns_none_without_client(self):
        reset_client_manager(FakeManager(available=False))
        assert await generate_json(TaskType.MARKET_SENTIMENT, "prompt") is None

    @pytest.mark.asyncio
    async def test_parses_reply_and_records_success(self):
        manager = FakeManager([_completion('```json\n{"overall": "bullish"}\n```')])
        reset_client_manager(manager)

        result = await generate_json(TaskType.MARKET_SENTIMENT, "How is the market?")

        assert result == {"overall": "bullish"}
        assert manager.successes == 1
        params = manager.completions.calls[0]
        assert params["messages"][0]["role"] == "system"
        assert params["messages"][1] == {"role": "user", "content": "How is the market?"}
        assert params["max_tokens"] == 400

    @pytest.mark.asyncio
    async def test_unparseable_reply_returns_none(self):
        manager = FakeManager([_completion("I cannot help with that.")])
        reset_client_manager(manager)
        assert await generate_json(TaskType.NEWS_IMPACT, "prompt") is None
        assert manager.successes == 1

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self):
        error = openai.BadRequestError(
            "bad request", response=httpx.Response(400, request=_request()), body=None
        )
        manager = FakeManager([error, _completion("{}")])
        reset_client_manager(manager)

        assert await generate_json(TaskType.SUGGESTIONS, "prompt") is None
        assert len(manager.completions.calls) == 1
        assert manager.failures == 1

    @pytest.mark.asyncio
    async def test_connection_error_records_failure(self, single_attempt):
        manager = FakeManager([openai.APIConnectionError(request=_request())])
        reset_client_manager(manager)

        assert await generate_json(TaskType.PORTFOLIO_RISK, "prompt") is None
        assert manager.failures == 1


class TestClientManager:
    @pytest.mark.asyncio
    async def test_no_api_key_gives_no_client(self):
        manager = OpenAIClientManager(OpenAISettings(api_key=""))
        assert manager.is_configured is False
        assert await manager.get_client() is None

    @pytest.mark.asyncio
    async def test_client_is_reused(self):
        manager = OpenAIClientManager(OpenAISettings(api_key="sk-test"))
        first = await manager.get_client()
        second = await manager.get_client()
        assert isinstance(first, openai.AsyncOpenAI)
        assert first is second
        await manager.close()

    @pytest.mark.asyncio
    async def test_circuit_opens_after_threshold(self):
        manager = OpenAIClientManager(
            OpenAISettings(api_key="sk-test", circuit_breaker_threshold=2, circuit_breaker_timeout=60)
        )
        manager.record_failure()
        assert manager.is_circuit_open() is False

        manager.record_failure()
        assert manager.is_circuit_open() is True
        assert await manager.get_client() is None

        manager.record_success()
        assert manager.is_circuit_open() is False
        assert await manager.get_client() is not None
        await manager.close()

    @pytest.mark.asyncio
    async def test_half_open_after_timeout(self):
        manager = OpenAIClientManager(
            OpenAISettings(api_key="sk-test", circuit_breaker_threshold=1, circuit_breaker_timeout=0)
        )
        manager.record_failure()
        assert manager.is_circuit_open() is True
        assert await manager.get_client() is not None
        await manager.close()
