"""Chat session client - the conversation lifecycle as seen from a chat view."""

from .errors import (
    LeadCoachError, EmptyMessageError, SessionBusyError, CoachServiceError, PersistenceError,
)
from .message_store import MessageStore
from .title import generate_title, TITLE_MAX_LENGTH
from .coach_client import RemoteCoachClient
from .persistence import ConversationClient
from .transport import build_http_client
from .session import ChatSession, ChatState, TurnResult, FALLBACK_MESSAGE, open_session

__all__ = [
    'LeadCoachError', 'EmptyMessageError', 'SessionBusyError', 'CoachServiceError', 'PersistenceError',
    'MessageStore', 'generate_title', 'TITLE_MAX_LENGTH', 'RemoteCoachClient', 'ConversationClient',
    'build_http_client', 'ChatSession', 'ChatState', 'TurnResult', 'FALLBACK_MESSAGE', 'open_session',
]
