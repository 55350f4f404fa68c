"""
Conversation Models - Chat messages and the persisted conversation record.

Python attributes are snake_case; the JSON wire format uses camelCase aliases
(``messageCount``, ``lastMessageAt`` ...) shared by the API and the chat client.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    return utc_now().isoformat()


class Sender(str, Enum):
    """Author of a chat message."""
    USER = "user"
    AI = "ai"


class ConversationStatus(str, Enum):
    """Lifecycle status of a stored conversation."""
    ACTIVE = "active"
    ARCHIVED = "archived"


class Message(BaseModel):
    """A single chat message. Immutable once created."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    sender: Sender
    text: str = Field(..., min_length=1)
    timestamp: str = Field(default_factory=utc_now_iso)  # ISO-8601

    class Config:
        frozen = True

    @classmethod
    def from_user(cls, text: str) -> "Message":
        return cls(sender=Sender.USER, text=text)

    @classmethod
    def from_ai(cls, text: str) -> "Message":
        return cls(sender=Sender.AI, text=text)


class Conversation(BaseModel):
    """Full stored conversation with messages."""
    id: str
    topic: str
    title: Optional[str] = None  # Auto-generated from the first user message
    summary: Optional[str] = None
    messages: List[Message] = Field(default_factory=list)
    message_count: int = Field(0, alias="messageCount")
    last_message_at: Optional[datetime] = Field(None, alias="lastMessageAt")
    status: ConversationStatus = ConversationStatus.ACTIVE
    is_starred: bool = Field(False, alias="isStarred")
    created_at: datetime = Field(default_factory=utc_now, alias="createdAt")
    updated_at: datetime = Field(default_factory=utc_now, alias="updatedAt")

    class Config:
        populate_by_name = True


class ConversationCreate(BaseModel):
    """Payload of ``POST /conversations``."""
    topic: str = Field(..., min_length=1)
    title: Optional[str] = None
    summary: Optional[str] = None
    messages: List[Message] = Field(default_factory=list)
    message_count: Optional[int] = Field(None, alias="messageCount")
    last_message_at: Optional[datetime] = Field(None, alias="lastMessageAt")
    status: ConversationStatus = ConversationStatus.ACTIVE
    is_starred: bool = Field(False, alias="isStarred")

    class Config:
        populate_by_name = True


class ConversationUpdate(BaseModel):
    """Payload of ``PATCH /conversations/{id}`` - all fields optional."""
    title: Optional[str] = None
    summary: Optional[str] = None
    messages: Optional[List[Message]] = None
    message_count: Optional[int] = Field(None, alias="messageCount")
    last_message_at: Optional[datetime] = Field(None, alias="lastMessageAt")
    status: Optional[ConversationStatus] = None
    is_starred: Optional[bool] = Field(None, alias="isStarred")

    class Config:
        populate_by_name = True


class StarRequest(BaseModel):
    """Payload of ``PATCH /conversations/{id}/star``."""
    is_starred: bool = Field(..., alias="isStarred")

    class Config:
        populate_by_name = True
