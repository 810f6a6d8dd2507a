"""Tests for LLMService (LiteLLM Router wrapper) and Settings defaults.

The Router is patched out; no network calls are made.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from src.minutes_ai.config import Environment, Settings
from src.minutes_ai.schemas.llm import CompletionResult, LLMMessage, TokenUsage
from src.minutes_ai.services.llm import MODEL_GROUP, LLMService
from src.minutes_ai.structured.errors import ApiError


def _settings(**overrides) -> Settings:
    values = {"ANTHROPIC_API_KEY": "sk-ant-test", "OPENAI_API_KEY": "sk-openai-test"}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def _response(content: str | None = "hello", model: str = "claude-sonnet-4-20250514", usage=True):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        model=model,
        usage=SimpleNamespace(prompt_tokens=120, completion_tokens=30) if usage else None,
    )


@pytest.fixture
def router_cls():
    with patch("src.minutes_ai.services.llm.Router") as mock_cls:
        mock_cls.return_value.acompletion = AsyncMock(return_value=_response())
        yield mock_cls


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ("ANTHROPIC_API_KEY", "OPENAI_API_KEY", "MINUTES_MAX_TOKENS",
                     "MINUTES_RETRY_COUNT", "ENVIRONMENT"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings(_env_file=None)

        assert settings.ENVIRONMENT == Environment.development
        assert settings.MINUTES_MAX_TOKENS == 8000
        assert settings.MINUTES_RETRY_COUNT == 2
        assert settings.LLM_MAX_RETRIES == 0
        assert not settings.has_llm_provider()

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-openai")
        monkeypatch.setenv("MINUTES_RETRY_COUNT", "4")

        settings = Settings(_env_file=None)

        assert settings.has_llm_provider()
        assert settings.MINUTES_RETRY_COUNT == 4

    def test_blank_key_is_not_a_provider(self):
        assert not _settings(ANTHROPIC_API_KEY="   ", OPENAI_API_KEY="").has_llm_provider()


class TestRouterConfiguration:
    def test_primary_and_fallback_share_model_group(self, router_cls):
        service = LLMService(_settings())

        model_list = router_cls.call_args.kwargs["model_list"]
        assert [m["model_name"] for m in model_list] == [MODEL_GROUP, MODEL_GROUP]
        assert model_list[0]["litellm_params"]["model"] == "anthropic/claude-sonnet-4-20250514"
        assert model_list[1]["litellm_params"]["model"] == "openai/gpt-4o"
        assert router_cls.call_args.kwargs["num_retries"] == 0
        assert service.default_model == "anthropic/claude-sonnet-4-20250514"

    def test_openai_only(self, router_cls):
        service = LLMService(_settings(ANTHROPIC_API_KEY=""))
        assert service.default_model == "openai/gpt-4o"

    async def test_no_keys_raises_api_error(self, router_cls):
        service = LLMService(_settings(ANTHROPIC_API_KEY="", OPENAI_API_KEY=""))

        assert service.router is None
        router_cls.assert_not_called()
        with pytest.raises(ApiError, match="No LLM API keys"):
            await service.send_message([LLMMessage(role="user", content="hi")])


class TestSendMessage:
    async def test_returns_completion_result_with_usage(self, router_cls):
        service = LLMService(_settings())

        result = await service.send_message([LLMMessage(role="user", content="hi")])

        assert isinstance(result, CompletionResult)
        assert result.text == "hello"
        assert result.model == "claude-sonnet-4-20250514"
        assert result.usage == TokenUsage(input_tokens=120, output_tokens=30)

    async def test_system_prompt_sent_first(self, router_cls):
        service = LLMService(_settings())

        await service.send_message(
            [{"role": "user", "content": "hi"}], system="Be precise.", max_tokens=500
        )

        kwargs = router_cls.return_value.acompletion.call_args.kwargs
        assert kwargs["model"] == MODEL_GROUP
        assert kwargs["max_tokens"] == 500
        assert kwargs["messages"] == [
            {"role": "system", "content": "Be precise."},
            {"role": "user", "content": "hi"},
        ]

    async def test_default_max_tokens(self, router_cls):
        service = LLMService(_settings(LLM_DEFAULT_MAX_TOKENS=2048))

        await service.send_message([LLMMessage(role="user", content="hi")])

        assert router_cls.return_value.acompletion.call_args.kwargs["max_tokens"] == 2048

    async def test_missing_usage_is_none(self, router_cls):
        router_cls.return_value.acompletion.return_value = _response(usage=False)
        service = LLMService(_settings())

        result = await service.send_message([LLMMessage(role="user", content="hi")])

        assert result.usage is None

    async def test_empty_messages_rejected(self, router_cls):
        service = LLMService(_settings())

        with pytest.raises(ApiError):
            await service.send_message([])

        router_cls.return_value.acompletion.assert_not_called()

    async def test_provider_exception_wrapped(self, router_cls):
        class _ServiceUnavailable(Exception):
            status_code = 503

        original = _ServiceUnavailable("upstream down")
        router_cls.return_value.acompletion.side_effect = original
        service = LLMService(_settings())

        with pytest.raises(ApiError) as exc_info:
            await service.send_message([LLMMessage(role="user", content="hi")])

        assert exc_info.value.status_code == 503
        assert exc_info.value.cause is original
        assert "upstream down" in str(exc_info.value)

    async def test_empty_content_raises(self, router_cls):
        router_cls.return_value.acompletion.return_value = _response(content="")
        service = LLMService(_settings())

        with pytest.raises(ApiError, match="No text content"):
            await service.send_message([LLMMessage(role="user", content="hi")])
