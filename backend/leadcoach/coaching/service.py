"""
Coaching Service - turns a chat request into an LLM call.
"""

import logging
from typing import AsyncGenerator, List, Optional

from ..llm.base import LLMMessage, LLMProvider
from ..models import ChatRequest, ChatResponse, Message, Sender
from .topics import get_topic

logger = logging.getLogger(__name__)

ROLE_BY_SENDER = {
    Sender.USER: "user",
    Sender.AI: "assistant",
}


class CoachNotConfiguredError(RuntimeError):
    """Raised when a reply is requested but no LLM provider is configured."""


class CoachingService:
    """
    Builds the topic-framed prompt and asks the LLM for a coaching reply.
    ``respond`` never raises: failures come back as ``ChatResponse.error``.
    """

    def __init__(
        self,
        llm_provider: Optional[LLMProvider],
        api_mode: str = "chat",
        temperature: float = 0.7,
    ):
        """
        Args:
            llm_provider: Configured provider, or None when no API key is set
            api_mode: "chat" for chat/completions, "responses" for the Responses API
            temperature: Sampling temperature
        """
        self._llm_provider = llm_provider
        self._api_mode = api_mode
        self.temperature = temperature

    @property
    def configured(self) -> bool:
        return self._llm_provider is not None

    def _use_responses_api(self) -> bool:
        return self._api_mode == "responses" and hasattr(self._llm_provider, "responses")

    def build_messages(
        self,
        message: str,
        topic_id: str,
        history: List[Message],
    ) -> List[LLMMessage]:
        """System prompt for the topic, then the prior turns, then the new message."""
        topic = get_topic(topic_id)
        system_prompt = (
            f"{topic.system_prompt}\n\n"
            f"Current topic: {topic.title}\n"
            f"Please provide a helpful, practical response focused on {topic.title.lower()}. "
            "Keep your response conversational and actionable."
        )
        llm_messages = [LLMMessage.text("system", system_prompt)]
        for item in history:
            llm_messages.append(LLMMessage.text(ROLE_BY_SENDER[item.sender], item.text))
        llm_messages.append(LLMMessage.text("user", message))
        return llm_messages

    async def respond(self, request: ChatRequest) -> ChatResponse:
        """
        Produce a coaching reply for one chat turn.

        Returns:
            ChatResponse with ``message`` set, or with ``error`` set and an
            empty ``message`` when the model is unavailable or returns nothing
        """
        if self._llm_provider is None:
            return ChatResponse(
                error="LLM not configured. Set LLM_API_KEY and LLM_PROVIDER in environment to enable AI responses."
            )

        llm_messages = self.build_messages(
            request.message, request.topic, request.conversation_history
        )
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"Coaching reply requested: topic={request.topic}, "
                f"history={len(request.conversation_history)}, conversation_id={request.conversation_id}"
            )

        try:
            if self._use_responses_api():
                response = await self._llm_provider.responses(llm_messages, temperature=self.temperature)
            else:
                response = await self._llm_provider.chat_completion(llm_messages, temperature=self.temperature)
        except Exception as e:
            logger.error(
                f"Coaching reply failed: {e}",
                extra={"extra_fields": {
                    "topic": request.topic,
                    "conversation_id": request.conversation_id,
                }}
            )
            return ChatResponse(error=f"LLM call failed: {e}")

        content = (response.content or "").strip()
        if not content:
            logger.warning(f"LLM returned an empty reply for topic {request.topic}")
            return ChatResponse(error="Empty response from model")
        return ChatResponse(message=content)

    async def stream(self, request: ChatRequest) -> AsyncGenerator[str, None]:
        """
        Stream the coaching reply chunk by chunk.

        Raises:
            CoachNotConfiguredError: If no LLM provider is configured
        """
        if self._llm_provider is None:
            raise CoachNotConfiguredError("LLM not configured")

        llm_messages = self.build_messages(
            request.message, request.topic, request.conversation_history
        )
        if self._use_responses_api() and hasattr(self._llm_provider, "responses_stream"):
            chunks = self._llm_provider.responses_stream(llm_messages, temperature=self.temperature)
        else:
            chunks = self._llm_provider.chat_completion_stream(llm_messages, temperature=self.temperature)

        async for chunk in chunks:
            yield chunk
