"""
Tests for the coaching service and topic catalogue.
"""

import pytest
from unittest.mock import AsyncMock

from leadcoach.coaching import CoachingService, CoachNotConfiguredError
from leadcoach.coaching.topics import DEFAULT_TOPIC_PROMPT, TOPICS, get_topic
from leadcoach.llm.base import LLMProvider, LLMResponse
from leadcoach.models import ChatRequest, Message


def make_request(**overrides) -> ChatRequest:
    fields = {
        "message": "How do I stay calm in tense meetings?",
        "topic": "red-green-zones",
        "conversation_history": [],
    }
    fields.update(overrides)
    return ChatRequest(**fields)


class TestTopics:

    def test_catalogue(self):
        assert set(TOPICS) == {
            "growth-profile", "red-green-zones", "big-practice", "360-report",
            "growth-values", "growth-matrix", "oora-conversation", "daily-checkin",
        }
        assert get_topic("oora-conversation").title == "OORA Conversation Prep"

    def test_unknown_topic_uses_default_prompt(self):
        topic = get_topic("custom-topic")
        assert topic.id == "custom-topic"
        assert topic.system_prompt == DEFAULT_TOPIC_PROMPT


class TestBuildMessages:

    def test_system_history_then_message(self):
        service = CoachingService(None)
        history = [Message.from_user("Hi"), Message.from_ai("Hello! What's up?")]

        messages = service.build_messages("I lose my temper", "red-green-zones", history)

        assert [m.role for m in messages] == ["system", "user", "assistant", "user"]
        assert "Current topic: Red & Green Zone Behaviors" in messages[0].content
        assert messages[0].content.startswith(TOPICS["red-green-zones"].system_prompt)
        assert messages[2].content == "Hello! What's up?"
        assert messages[-1].content == "I lose my temper"


class TestRespond:

    @pytest.mark.asyncio
    async def test_not_configured(self):
        response = await CoachingService(None).respond(make_request())
        assert response.message == ""
        assert response.error.startswith("LLM not configured")

    @pytest.mark.asyncio
    async def test_chat_completion_reply(self):
        mock_provider = AsyncMock(spec=LLMProvider)
        mock_provider.chat_completion.return_value = LLMResponse(content="  Breathe first.  ")

        service = CoachingService(mock_provider, api_mode="chat", temperature=0.3)
        response = await service.respond(make_request())

        assert response.message == "Breathe first."
        assert response.error is None
        kwargs = mock_provider.chat_completion.call_args.kwargs
        assert kwargs["temperature"] == 0.3

    @pytest.mark.asyncio
    async def test_responses_api_used_when_available(self):
        mock_provider = AsyncMock(spec=LLMProvider)
        mock_provider.responses = AsyncMock(return_value=LLMResponse(content="Via responses"))

        service = CoachingService(mock_provider, api_mode="responses")
        response = await service.respond(make_request())

        assert response.message == "Via responses"
        mock_provider.responses.assert_awaited_once()
        mock_provider.chat_completion.assert_not_called()

    @pytest.mark.asyncio
    async def test_responses_mode_falls_back_to_chat(self):
        mock_provider = AsyncMock(spec=LLMProvider)
        mock_provider.chat_completion.return_value = LLMResponse(content="Via chat")

        service = CoachingService(mock_provider, api_mode="responses")
        response = await service.respond(make_request())

        assert response.message == "Via chat"

    @pytest.mark.asyncio
    async def test_provider_exception_becomes_error(self):
        mock_provider = AsyncMock(spec=LLMProvider)
        mock_provider.chat_completion.side_effect = RuntimeError("rate limited")

        response = await CoachingService(mock_provider).respond(make_request())

        assert response.message == ""
        assert response.error == "LLM call failed: rate limited"

    @pytest.mark.asyncio
    async def test_empty_reply_becomes_error(self):
        mock_provider = AsyncMock(spec=LLMProvider)
        mock_provider.chat_completion.return_value = LLMResponse(content="   ")

        response = await CoachingService(mock_provider).respond(make_request())

        assert response.error == "Empty response from model"


class TestStream:

    @pytest.mark.asyncio
    async def test_stream_chunks(self, stub_provider):
        service = CoachingService(stub_provider, api_mode="chat")
        chunks = [c async for c in service.stream(make_request())]
        assert chunks == stub_provider.chunks
        assert stub_provider.calls[0][-1].content == "How do I stay calm in tense meetings?"

    @pytest.mark.asyncio
    async def test_stream_not_configured(self):
        with pytest.raises(CoachNotConfiguredError):
            async for _ in CoachingService(None).stream(make_request()):
                pass
