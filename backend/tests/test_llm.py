"""
Unit tests for the LLM module.
Tests LLMMessage, LLMResponse, the OpenAI provider, and the factory.
"""

import pytest
from unittest.mock import AsyncMock, patch, MagicMock

from leadcoach.llm.base import LLMMessage, LLMResponse
from leadcoach.llm.openai_provider import OpenAIProvider
from leadcoach.llm.factory import create_llm_provider


class TestLLMMessage:
    """Tests for LLMMessage dataclass."""

    def test_text_message(self):
        msg = LLMMessage.text("user", "Hello")
        assert msg.role == "user"
        assert msg.content == "Hello"

    def test_system_message(self):
        msg = LLMMessage.text("system", "You are a leadership coach")
        assert msg.role == "system"
        assert msg.content == "You are a leadership coach"


class TestLLMResponse:
    """Tests for LLMResponse dataclass."""

    def test_basic_response(self):
        resp = LLMResponse(content="Hello!", model="gpt-4")
        assert resp.content == "Hello!"
        assert resp.model == "gpt-4"
        assert resp.usage == {}
        assert resp.raw is None

    def test_response_with_usage(self):
        resp = LLMResponse(
            content="Hi",
            model="test",
            usage={"prompt_tokens": 10, "completion_tokens": 5}
        )
        assert resp.usage["prompt_tokens"] == 10


def mock_async_client(mock_client, mock_response):
    mock_instance = AsyncMock()
    mock_instance.post.return_value = mock_response
    mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
    mock_instance.__aexit__ = AsyncMock(return_value=False)
    mock_client.return_value = mock_instance
    return mock_instance


class TestOpenAIProvider:
    """Tests for OpenAI-compatible provider."""

    def test_init_defaults(self):
        provider = OpenAIProvider(api_key="test-key")
        assert provider.api_key == "test-key"
        assert provider.model == "gpt-4o"
        assert provider.base_url == "https://api.openai.com/v1"
        assert provider.timeout == 120.0

    def test_init_custom(self):
        provider = OpenAIProvider(
            api_key="key",
            model="gpt-4o-mini",
            base_url="https://gateway.example.com/v1",
            timeout=30,
        )
        assert provider.model == "gpt-4o-mini"
        assert provider.base_url == "https://gateway.example.com/v1"
        assert provider.timeout == 30

    def test_format_messages(self):
        provider = OpenAIProvider(api_key="test")
        messages = [
            LLMMessage.text("system", "sys prompt"),
            LLMMessage.text("user", "hello")
        ]
        formatted = provider._format_messages(messages)
        assert len(formatted) == 2
        assert formatted[0] == {"role": "system", "content": "sys prompt"}
        assert formatted[1] == {"role": "user", "content": "hello"}

    def test_headers(self):
        provider = OpenAIProvider(api_key="sk-test123")
        headers = provider._get_headers()
        assert headers["Authorization"] == "Bearer sk-test123"
        assert headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_chat_completion_success(self):
        provider = OpenAIProvider(api_key="test-key")
        mock_response = MagicMock()
        mock_response.json.return_value = {
            "choices": [{"message": {"content": "Test response"}}],
            "model": "gpt-4o",
            "usage": {"prompt_tokens": 10, "completion_tokens": 5}
        }
        mock_response.raise_for_status = MagicMock()

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = mock_async_client(mock_client, mock_response)

            result = await provider.chat_completion(
                [LLMMessage.text("user", "Hello")], temperature=0.2
            )

            assert result.content == "Test response"
            assert result.model == "gpt-4o"
            url = mock_instance.post.call_args.args[0]
            payload = mock_instance.post.call_args.kwargs["json"]
            assert url == "https://api.openai.com/v1/chat/completions"
            assert payload["temperature"] == 0.2
            assert payload["messages"] == [{"role": "user", "content": "Hello"}]

    @pytest.mark.asyncio
    async def test_chat_completion_error_propagates(self):
        provider = OpenAIProvider(api_key="test-key")
        mock_response = MagicMock()
        mock_response.raise_for_status = MagicMock(side_effect=RuntimeError("401 Unauthorized"))

        with patch("httpx.AsyncClient") as mock_client:
            mock_async_client(mock_client, mock_response)

            with pytest.raises(RuntimeError, match="401"):
                await provider.chat_completion([LLMMessage.text("user", "Hello")])

    @pytest.mark.asyncio
    async def test_responses_api_success(self):
        provider = OpenAIProvider(api_key="test-key")
        mock_response = MagicMock()
        mock_response.json.return_value = {
            "output": [
                {"type": "reasoning", "content": []},
                {
                    "type": "message",
                    "content": [
                        {"type": "output_text", "text": "Response "},
                        {"type": "output_text", "text": "text"},
                    ]
                }
            ],
            "model": "gpt-4o",
            "usage": {"input_tokens": 12, "output_tokens": 3}
        }
        mock_response.raise_for_status = MagicMock()

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = mock_async_client(mock_client, mock_response)

            result = await provider.responses(
                [LLMMessage.text("user", "Hello")], max_tokens=256
            )

            assert result.content == "Response text"
            url = mock_instance.post.call_args.args[0]
            payload = mock_instance.post.call_args.kwargs["json"]
            assert url == "https://api.openai.com/v1/responses"
            assert payload["input"] == [{"role": "user", "content": "Hello"}]
            assert payload["max_output_tokens"] == 256

    @pytest.mark.asyncio
    async def test_chat_completion_stream_yields_deltas(self):
        provider = OpenAIProvider(api_key="test-key")

        async def fake_events(url, payload):
            assert payload["stream"] is True
            yield {"choices": [{"delta": {"role": "assistant"}}]}
            yield {"choices": [{"delta": {"content": "Lead "}}]}
            yield {"choices": [{"delta": {"content": "by example."}}]}
            yield {"choices": [], "usage": {"total_tokens": 9}}

        provider._stream_events = fake_events
        chunks = [c async for c in provider.chat_completion_stream([LLMMessage.text("user", "Hi")])]

        assert chunks == ["Lead ", "by example."]

    @pytest.mark.asyncio
    async def test_responses_stream_stops_at_completed(self):
        provider = OpenAIProvider(api_key="test-key")

        async def fake_events(url, payload):
            assert url.endswith("/responses")
            yield {"type": "response.created"}
            yield {"type": "response.output_text.delta", "delta": "Ask "}
            yield {"type": "response.output_text.delta", "delta": "more questions."}
            yield {"type": "response.completed", "response": {"usage": {"output_tokens": 4}}}
            yield {"type": "response.output_text.delta", "delta": "ignored"}

        provider._stream_events = fake_events
        chunks = [c async for c in provider.responses_stream([LLMMessage.text("user", "Hi")])]

        assert chunks == ["Ask ", "more questions."]

    @pytest.mark.asyncio
    async def test_responses_stream_closes_events_after_completed(self):
        provider = OpenAIProvider(api_key="test-key")
        closed = []

        async def fake_events(url, payload):
            try:
                yield {"type": "response.output_text.delta", "delta": "Listen first."}
                yield {"type": "response.completed", "response": {}}
                yield {"type": "response.output_text.delta", "delta": "ignored"}
            finally:
                closed.append(True)

        provider._stream_events = fake_events
        chunks = [c async for c in provider.responses_stream([LLMMessage.text("user", "Hi")])]

        assert chunks == ["Listen first."]
        assert closed == [True]

    @pytest.mark.asyncio
    async def test_responses_stream_failure_raises(self):
        provider = OpenAIProvider(api_key="test-key")

        async def fake_events(url, payload):
            yield {"type": "response.output_text.delta", "delta": "partial"}
            yield {"type": "response.failed", "response": {"error": {"message": "overloaded"}}}

        provider._stream_events = fake_events
        chunks = []
        with pytest.raises(RuntimeError, match="Responses stream error"):
            async for chunk in provider.responses_stream([LLMMessage.text("user", "Hi")]):
                chunks.append(chunk)
        assert chunks == ["partial"]


class TestLLMFactory:
    """Tests for LLM provider factory."""

    def test_create_openai_provider(self):
        provider = create_llm_provider(
            provider="openai",
            api_key="test-key",
            model="gpt-4o"
        )
        assert isinstance(provider, OpenAIProvider)
        assert provider.model == "gpt-4o"

    def test_no_api_key_returns_none(self):
        provider = create_llm_provider(provider="openai", api_key="")
        assert provider is None

    def test_unsupported_provider_raises(self):
        with pytest.raises(ValueError, match="Unsupported"):
            create_llm_provider(provider="unsupported", api_key="key")

    def test_custom_base_url(self):
        provider = create_llm_provider(
            provider="openai",
            api_key="key",
            base_url="https://custom.api.com/v1"
        )
        assert provider.base_url == "https://custom.api.com/v1"

    def test_model_defaults_when_not_given(self):
        provider = create_llm_provider(provider="openai", api_key="key", model=None, timeout=15)
        assert provider.model == "gpt-4o"
        assert provider.timeout == 15
