"""
Chat Models - Request and response bodies of the coaching endpoint.
"""

from typing import List, Optional
from pydantic import BaseModel, Field

from .conversation import Message


class ChatRequest(BaseModel):
    """Body of ``POST /chat`` and ``POST /chat/stream``."""
    message: str
    topic: str
    conversation_history: List[Message] = Field(default_factory=list, alias="conversationHistory")
    conversation_id: Optional[str] = Field(None, alias="conversationId")

    class Config:
        populate_by_name = True


class ChatResponse(BaseModel):
    """Coaching reply. ``message`` is empty and ``error`` set when no reply could be produced."""
    message: str = ""
    error: Optional[str] = None
