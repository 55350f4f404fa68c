"""Models module."""

from .conversation import (
    Sender, ConversationStatus, Message, Conversation,
    ConversationCreate, ConversationUpdate, StarRequest, utc_now, utc_now_iso,
)
from .chat import ChatRequest, ChatResponse

__all__ = [
    'Sender', 'ConversationStatus', 'Message', 'Conversation',
    'ConversationCreate', 'ConversationUpdate', 'StarRequest', 'utc_now', 'utc_now_iso',
    'ChatRequest', 'ChatResponse',
]
