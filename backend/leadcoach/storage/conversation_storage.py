"""
Conversation Storage - Persistent conversation records on top of StorageInterface.
One JSON document per conversation, stored under ``conversations/``.
"""

import asyncio
import json
import logging
import uuid
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..models import Conversation, ConversationCreate, ConversationStatus, utc_now
from .interface import StorageInterface
from .local_storage import LocalStorage

logger = logging.getLogger(__name__)

NULLABLE_FIELDS = {"title", "summary", "last_message_at"}


class ConversationStorage:
    """
    Manages persistent storage of conversations.
    Writes are serialized through a lock so concurrent PATCH requests in one
    process cannot interleave their read-modify-write cycles.
    """

    def __init__(self, storage: StorageInterface):
        """
        Args:
            storage: StorageInterface implementation (typically LocalStorage)
        """
        self.storage = storage
        self.conversations_dir = "conversations"
        self._write_lock = asyncio.Lock()

    def _path(self, conversation_id: str) -> str:
        return f"{self.conversations_dir}/{conversation_id}.json"

    async def _write(self, conversation: Conversation) -> bool:
        content = conversation.model_dump_json(by_alias=True, indent=2)
        return await self.storage.save(self._path(conversation.id), content)

    async def _read(self, path: str) -> Optional[Conversation]:
        content = await self.storage.load(path)
        if content is None:
            return None
        try:
            return Conversation.model_validate_json(content)
        except ValidationError as e:
            logger.error(f"Corrupt conversation record {path}: {e}")
            return None

    async def create_conversation(self, data: ConversationCreate) -> Conversation:
        """
        Create a new conversation. The id, timestamps and message count are
        assigned here regardless of what the caller sent.

        Raises:
            RuntimeError: If the record could not be written
        """
        now = utc_now()
        conversation = Conversation(
            id=str(uuid.uuid4()),
            topic=data.topic,
            title=data.title,
            summary=data.summary,
            messages=list(data.messages),
            message_count=len(data.messages),
            last_message_at=data.last_message_at or (now if data.messages else None),
            status=data.status,
            is_starred=data.is_starred,
            created_at=now,
            updated_at=now,
        )

        async with self._write_lock:
            if not await self._write(conversation):
                raise RuntimeError(f"Failed to store conversation {conversation.id}")

        logger.info(
            "Conversation created",
            extra={"extra_fields": {
                "conversation_id": conversation.id,
                "topic": conversation.topic,
                "message_count": conversation.message_count,
            }}
        )
        return conversation

    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        """Get a conversation by id, or None if it does not exist."""
        return await self._read(self._path(conversation_id))

    async def _all(self) -> List[Conversation]:
        files = await self.storage.list(self.conversations_dir, pattern="*.json")
        conversations = []
        for file_path in files:
            conversation = await self._read(file_path)
            if conversation is not None:
                conversations.append(conversation)
        return conversations

    @staticmethod
    def _newest_first(conversations: List[Conversation]) -> List[Conversation]:
        return sorted(conversations, key=lambda c: c.updated_at, reverse=True)

    async def list_conversations(self, status: Optional[str] = None) -> List[Conversation]:
        """
        List conversations with the given status (active when omitted),
        most recently updated first.
        """
        wanted = ConversationStatus(status) if status else ConversationStatus.ACTIVE
        return self._newest_first([c for c in await self._all() if c.status == wanted])

    async def search_conversations(self, query: str) -> List[Conversation]:
        """Case-insensitive search over title, summary and topic of active conversations."""
        needle = query.lower()
        matches = [
            c for c in await self._all()
            if c.status == ConversationStatus.ACTIVE
            and any(needle in (field or "").lower() for field in (c.title, c.summary, c.topic))
        ]
        return self._newest_first(matches)

    async def get_conversations_by_topic(self, topic: str) -> List[Conversation]:
        matches = [
            c for c in await self._all()
            if c.topic == topic and c.status == ConversationStatus.ACTIVE
        ]
        return self._newest_first(matches)

    async def update_conversation(
        self,
        conversation_id: str,
        updates: Dict[str, Any]
    ) -> Optional[Conversation]:
        """
        Apply a partial update.

        Args:
            conversation_id: Conversation id
            updates: Field name (snake_case) to new value

        Returns:
            Optional[Conversation]: Updated record or None if not found
        """
        async with self._write_lock:
            conversation = await self.get_conversation(conversation_id)
            if conversation is None:
                return None

            # Explicit nulls only clear the optional text fields
            updates = {k: v for k, v in updates.items() if v is not None or k in NULLABLE_FIELDS}
            fields = {**conversation.model_dump(), **updates}
            fields["message_count"] = len(fields["messages"])
            fields["id"] = conversation.id
            fields["created_at"] = conversation.created_at
            fields["updated_at"] = utc_now()
            updated = Conversation.model_validate(fields)

            if not await self._write(updated):
                raise RuntimeError(f"Failed to store conversation {conversation_id}")

        logger.debug(
            f"Conversation updated: {conversation_id}",
            extra={"extra_fields": {
                "conversation_id": conversation_id,
                "fields": sorted(updates),
                "message_count": updated.message_count,
            }}
        )
        return updated

    async def star_conversation(self, conversation_id: str, is_starred: bool) -> Optional[Conversation]:
        return await self.update_conversation(conversation_id, {"is_starred": is_starred})

    async def archive_conversation(self, conversation_id: str) -> Optional[Conversation]:
        return await self.update_conversation(conversation_id, {"status": ConversationStatus.ARCHIVED})

    async def delete_conversation(self, conversation_id: str) -> bool:
        """Delete a conversation. Returns False if it did not exist."""
        async with self._write_lock:
            deleted = await self.storage.delete(self._path(conversation_id))
        if deleted:
            logger.info(f"Conversation deleted: {conversation_id}")
        return deleted


def export_as_text(conversation: Conversation) -> str:
    """Render a conversation as a plain-text transcript."""
    title = conversation.title or f"Conversation {conversation.topic}"
    lines = [
        title,
        "=" * len(title),
        "",
        f"Topic: {conversation.topic}",
        f"Date: {conversation.created_at.strftime('%Y-%m-%d %H:%M:%S')}",
        "",
    ]
    body = "\n\n".join(f"{m.sender.value.upper()}: {m.text}" for m in conversation.messages)
    return "\n".join(lines) + "\n" + body


# Global conversation storage instance
_conversation_storage: Optional[ConversationStorage] = None


def init_conversation_storage(storage: Optional[StorageInterface] = None) -> ConversationStorage:
    """
    Initialize the global conversation storage instance.

    Args:
        storage: Optional StorageInterface implementation. If None, creates LocalStorage.
    """
    global _conversation_storage
    if storage is None:
        storage = LocalStorage()
    _conversation_storage = ConversationStorage(storage)
    return _conversation_storage


def get_conversation_storage() -> ConversationStorage:
    """
    Get the global conversation storage instance.

    Raises:
        RuntimeError: If conversation storage has not been initialized
    """
    if _conversation_storage is None:
        raise RuntimeError("Conversation storage not initialized. Call init_conversation_storage() first.")
    return _conversation_storage
