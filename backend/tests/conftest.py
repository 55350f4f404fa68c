"""
Shared test fixtures and configuration.
"""

import asyncio
import os
import tempfile
from typing import Dict, List, Optional, Sequence

import pytest

# Set test environment variables before importing app modules
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOCAL_STORAGE_PATH", tempfile.mkdtemp(prefix="leadcoach_test_"))
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ["LLM_API_KEY"] = ""
os.environ["OPENAI_API_KEY"] = ""

from leadcoach.client.errors import PersistenceError  # noqa: E402
from leadcoach.llm.base import LLMMessage, LLMProvider, LLMResponse  # noqa: E402
from leadcoach.models import Conversation, Message, utc_now  # noqa: E402
from leadcoach.storage import ConversationStorage, LocalStorage  # noqa: E402


@pytest.fixture
def conversation_storage(tmp_path):
    return ConversationStorage(LocalStorage(str(tmp_path / "data")))


class FakeCoach:
    """Stands in for RemoteCoachClient and records every call."""

    def __init__(self, replies: Optional[List[str]] = None):
        self.replies = list(replies or [])
        self.calls: List[Dict] = []
        self.error: Optional[Exception] = None
        self.gate: Optional[asyncio.Event] = None
        self.on_call = None

    async def reply(
        self,
        message: str,
        topic: str,
        history: Sequence[Message],
        conversation_id: Optional[str] = None,
    ) -> str:
        self.calls.append({
            "message": message,
            "topic": topic,
            "history": list(history),
            "conversation_id": conversation_id,
        })
        if self.on_call is not None:
            self.on_call()
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        if self.replies:
            return self.replies.pop(0)
        return f"Coach reply to: {message}"


class FakeConversations:
    """In-memory stand-in for ConversationClient."""

    def __init__(self):
        self.records: Dict[str, Conversation] = {}
        self.created: List[Dict] = []
        self.updated: List[Dict] = []
        self.fail_create = False
        self.fail_update = False

    def add(self, conversation: Conversation) -> None:
        self.records[conversation.id] = conversation

    async def create(self, topic: str, title: str, messages: Sequence[Message]) -> Conversation:
        self.created.append({"topic": topic, "title": title, "messages": list(messages)})
        if self.fail_create:
            raise PersistenceError("POST /conversations failed with 500", status_code=500)
        conversation = Conversation(
            id=f"conv-{len(self.records) + 1}",
            topic=topic,
            title=title,
            messages=list(messages),
            message_count=len(messages),
            last_message_at=utc_now(),
        )
        self.records[conversation.id] = conversation
        return conversation

    async def update(self, conversation_id: str, messages: Sequence[Message]) -> Conversation:
        self.updated.append({"id": conversation_id, "messages": list(messages)})
        if self.fail_update:
            raise PersistenceError(f"PATCH /conversations/{conversation_id} failed: connection reset")
        conversation = self.records[conversation_id].model_copy(
            update={"messages": list(messages), "message_count": len(messages)}
        )
        self.records[conversation_id] = conversation
        return conversation

    async def get(self, conversation_id: str) -> Conversation:
        if conversation_id not in self.records:
            raise PersistenceError(f"GET /conversations/{conversation_id} failed with 404", status_code=404)
        return self.records[conversation_id]


class StubProvider(LLMProvider):
    """LLM provider returning canned text."""

    def __init__(self, reply: str = "Start by naming one behavior you want to change.", chunks=None):
        super().__init__(api_key="test-key", model="stub-model")
        self.reply = reply
        self.chunks = chunks or ["Start by ", "naming one ", "behavior."]
        self.calls: List[List[LLMMessage]] = []

    async def chat_completion(self, messages, temperature=None, max_tokens=None, **kwargs):
        self.calls.append(messages)
        return LLMResponse(content=self.reply, model=self.model)

    async def chat_completion_stream(self, messages, temperature=None, max_tokens=None, **kwargs):
        self.calls.append(messages)
        for chunk in self.chunks:
            yield chunk


@pytest.fixture
def fake_coach():
    return FakeCoach()


@pytest.fixture
def fake_conversations():
    return FakeConversations()


@pytest.fixture
def stub_provider():
    return StubProvider()

