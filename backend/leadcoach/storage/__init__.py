"""Storage module - provides interface and implementations for data persistence."""

from .interface import StorageInterface
from .local_storage import LocalStorage
from .conversation_storage import (
    ConversationStorage, init_conversation_storage, get_conversation_storage, export_as_text,
)

__all__ = [
    'StorageInterface', 'LocalStorage', 'ConversationStorage',
    'init_conversation_storage', 'get_conversation_storage', 'export_as_text',
]
