"""
Model backends for the coaching service.

CoachingService builds the prompt (topic system prompt, earlier turns, the new
message) as a list of LLMMessage and hands it to an LLMProvider. Providers may
also offer ``responses`` / ``responses_stream`` for the Responses API; the
service only calls those when the provider has them and the API mode asks
for them.
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, List, AsyncGenerator
from dataclasses import dataclass, field


@dataclass
class LLMMessage:
    """One prompt entry: the topic's system prompt, an earlier turn, or the leader's new message."""
    role: str  # "system", "user", "assistant"
    content: str

    @staticmethod
    def text(role: str, text: str) -> "LLMMessage":
        return LLMMessage(role=role, content=text)


@dataclass
class LLMResponse:
    """The coach's reply. ``content`` becomes the ChatResponse message."""
    content: str
    model: str = ""
    usage: Dict[str, int] = field(default_factory=dict)
    raw: Optional[Dict[str, Any]] = None


class LLMProvider(ABC):
    """
    A model endpoint the coaching service can ask for replies.

    ``chat_completion`` backs POST /chat and ``chat_completion_stream`` backs
    POST /chat/stream.
    """

    def __init__(self, api_key: str, model: str, base_url: Optional[str] = None,
                 default_temperature: float = 0.7, default_max_tokens: int = 2048):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.default_temperature = default_temperature
        self.default_max_tokens = default_max_tokens

    @abstractmethod
    async def chat_completion(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> LLMResponse:
        """
        Produce one complete coaching reply.

        Args:
            messages: Topic system prompt, then prior turns, then the new message
            temperature: Overrides default_temperature
            max_tokens: Overrides default_max_tokens

        Returns:
            LLMResponse holding the reply text

        Raises whatever the backend raises; CoachingService turns it into an
        ``error`` on the ChatResponse.
        """
        pass

    @abstractmethod
    async def chat_completion_stream(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        **kwargs
    ) -> AsyncGenerator[str, None]:
        """Yield the coaching reply as text chunks, in order, for SSE delta events."""
        pass

    def _format_messages(self, messages: List[LLMMessage]) -> List[Dict[str, Any]]:
        """Prompt entries as role/content dicts for the request body."""
        return [{"role": m.role, "content": m.content} for m in messages]
