"""
Chat Session - the request/response lifecycle of one chat view.

A session owns its message store and conversation id. Each ``send_message``
call is one turn through ``IDLE -> SENDING -> SUCCEEDED | FAILED -> IDLE``:
the user message is appended before the first await, the coaching reply (or
the fallback message) is appended when the remote call settles, and a
successful turn is persisted by creating the conversation once and updating
it afterwards.
"""

import asyncio
import inspect
import logging
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Tuple, Union

import httpx

from ..config import settings
from ..core.logging_config import LoggerAdapter
from ..models import Conversation, Message, Sender
from .coach_client import RemoteCoachClient
from .errors import CoachServiceError, EmptyMessageError, PersistenceError, SessionBusyError
from .message_store import MessageStore
from .persistence import ConversationClient
from .title import generate_title
from .transport import build_http_client

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = (
    "I apologize, but I'm having trouble processing your request right now. "
    "Please try again in a moment."
)

PersistedListener = Callable[[Conversation], Union[None, Awaitable[None]]]


class ChatState(str, Enum):
    """Pipeline state of a session."""
    IDLE = "idle"
    SENDING = "sending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class TurnResult:
    """Outcome of one ``send_message`` call."""
    state: ChatState  # SUCCEEDED or FAILED
    user_message: Message
    reply: Message
    conversation: Optional[Conversation] = None  # set when the turn was persisted

    @property
    def persisted(self) -> bool:
        return self.conversation is not None


class ChatSession:
    """
    Client-side chat state for one conversation.

    Only one turn may be in flight: a second ``send_message`` while a turn
    is running raises SessionBusyError instead of being queued.
    """

    def __init__(
        self,
        coach: RemoteCoachClient,
        conversations: ConversationClient,
        reply_timeout: Optional[float] = None,
        store: Optional[MessageStore] = None,
    ):
        """
        Args:
            coach: Client for the coaching endpoint
            conversations: Client for the conversation endpoint
            reply_timeout: Seconds to wait for a reply before falling back
                (defaults to settings.chat_timeout_seconds)
            store: Message store to use (a new empty one by default)
        """
        self._coach = coach
        self._conversations = conversations
        self._reply_timeout = reply_timeout if reply_timeout is not None else settings.chat_timeout_seconds
        self._store = store or MessageStore()
        self._conversation_id: Optional[str] = None
        self._is_typing = False
        self._is_loading_history = False
        self._state = ChatState.IDLE
        self._listeners: List[PersistedListener] = []
        self._log = LoggerAdapter(logger, {"session_id": uuid.uuid4().hex[:12]})

    @property
    def messages(self) -> Tuple[Message, ...]:
        return self._store.messages

    @property
    def is_typing(self) -> bool:
        return self._is_typing

    @property
    def is_loading(self) -> bool:
        """True while a stored conversation is being loaded."""
        return self._is_loading_history

    @property
    def current_conversation_id(self) -> Optional[str]:
        return self._conversation_id

    @property
    def state(self) -> ChatState:
        return self._state

    def on_persisted(self, listener: PersistedListener) -> Callable[[], None]:
        """
        Register a callback run with the stored Conversation after every
        successful create or update. Coroutine functions are awaited.

        Returns:
            A function that unregisters the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _ensure_idle(self) -> None:
        if self._state is not ChatState.IDLE or self._is_loading_history:
            raise SessionBusyError("A chat turn or history load is already in progress")

    async def send_message(self, text: str, topic: str) -> TurnResult:
        """
        Run one chat turn.

        Args:
            text: Message text; must be non-empty after trimming
            topic: Topic id for the coaching prompt

        Returns:
            TurnResult: SUCCEEDED with the coach's reply, or FAILED with the
            fallback message. Persistence failures do not fail the turn.

        Raises:
            EmptyMessageError: If ``text`` is blank (nothing is appended or sent)
            SessionBusyError: If another turn or a history load is in progress
        """
        if not text or not text.strip():
            raise EmptyMessageError("Message text is empty")
        self._ensure_idle()

        history = self._store.messages
        user_message = Message.from_user(text)
        self._store.append(user_message)
        self._state = ChatState.SENDING
        self._is_typing = True

        try:
            try:
                reply_text = await asyncio.wait_for(
                    self._coach.reply(text, topic, history, self._conversation_id),
                    timeout=self._reply_timeout,
                )
                if not reply_text or not reply_text.strip():
                    raise CoachServiceError("Empty coaching reply")
            except Exception as e:
                self._log.warning(
                    f"Coaching reply failed, using fallback: {str(e) or type(e).__name__}",
                    exc_info=not isinstance(e, (CoachServiceError, asyncio.TimeoutError)),
                    extra={"extra_fields": {"topic": topic, "conversation_id": self._conversation_id}}
                )
                self._is_typing = False
                reply = Message.from_ai(FALLBACK_MESSAGE)
                self._store.append(reply)
                self._state = ChatState.FAILED
                return TurnResult(ChatState.FAILED, user_message, reply)

            self._is_typing = False
            reply = Message.from_ai(reply_text)
            self._store.append(reply)
            self._state = ChatState.SUCCEEDED

            conversation = await self._persist(topic)
            return TurnResult(ChatState.SUCCEEDED, user_message, reply, conversation)
        finally:
            self._is_typing = False
            self._state = ChatState.IDLE

    async def _persist(self, topic: str) -> Optional[Conversation]:
        """Create the conversation on the first exchange, update it afterwards."""
        messages = self._store.messages
        try:
            if self._conversation_id is not None:
                conversation = await self._conversations.update(self._conversation_id, messages)
            elif len(messages) >= 2:
                first_user = next(m for m in messages if m.sender is Sender.USER)
                title = generate_title(first_user.text, topic)
                conversation = await self._conversations.create(topic, title, messages)
                self._conversation_id = conversation.id
                self._log.info(
                    f"Conversation created: {conversation.id}",
                    extra={"extra_fields": {"conversation_id": conversation.id, "title": title}}
                )
            else:
                return None
        except PersistenceError as e:
            # The next successful turn resends the full history
            self._log.warning(
                f"Conversation save failed: {e}",
                extra={"extra_fields": {"conversation_id": self._conversation_id, "status_code": e.status_code}}
            )
            return None

        await self._notify(conversation)
        return conversation

    async def _notify(self, conversation: Conversation) -> None:
        for listener in list(self._listeners):
            try:
                result = listener(conversation)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                self._log.exception(f"on_persisted listener failed for {conversation.id}")

    async def resume(self, conversation_id: str) -> Optional[Conversation]:
        """
        Load a stored conversation into this session.

        On failure the error is logged and the session continues as a fresh,
        unsaved conversation.

        Returns:
            The loaded Conversation, or None if it could not be fetched

        Raises:
            SessionBusyError: If a turn is in progress
        """
        self._ensure_idle()
        self._is_loading_history = True
        try:
            conversation = await self._conversations.get(conversation_id)
        except PersistenceError as e:
            self._log.error(f"Failed to load conversation {conversation_id}: {e}")
            self._store.clear()
            self._conversation_id = None
            return None
        finally:
            self._is_loading_history = False

        self._store.replace_all(conversation.messages)
        self._conversation_id = conversation.id
        self._log.info(f"Conversation resumed: {conversation.id} ({len(conversation.messages)} messages)")
        return conversation

    def clear_messages(self) -> None:
        """
        Start over: drop all messages and the conversation id. The next
        successful turn creates a new conversation.

        Raises:
            SessionBusyError: If a turn or history load is in progress
        """
        self._ensure_idle()
        self._store.clear()
        self._conversation_id = None
        self._is_typing = False


@asynccontextmanager
async def open_session(
    base_url: Optional[str] = None,
    reply_timeout: Optional[float] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator[ChatSession]:
    """
    Open a ChatSession against a LeadCoach API and close its HTTP client on exit.

    Usage:
        async with open_session("http://localhost:8000") as session:
            await session.send_message("How do I give feedback?", "oora-conversation")
    """
    http = build_http_client(base_url, transport=transport)
    try:
        yield ChatSession(
            RemoteCoachClient(http, timeout=reply_timeout),
            ConversationClient(http),
            reply_timeout=reply_timeout,
        )
    finally:
        await http.aclose()
