"""
Conversation API endpoints - CRUD over stored conversations.
"""

import json
import re
from datetime import datetime, timezone
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ..models import Conversation, ConversationCreate, ConversationUpdate, StarRequest
from ..storage import ConversationStorage, get_conversation_storage, export_as_text

router = APIRouter(prefix="/conversations", tags=["conversations"])


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Conversation not found"
    )


async def _get_or_404(storage: ConversationStorage, conversation_id: str) -> Conversation:
    conversation = await storage.get_conversation(conversation_id)
    if conversation is None:
        raise _not_found()
    return conversation


@router.post("", response_model=Conversation, status_code=status.HTTP_201_CREATED)
async def create_conversation(
    data: ConversationCreate,
    storage: ConversationStorage = Depends(get_conversation_storage),
):
    """
    Save a new conversation. The server assigns ``id`` and recomputes
    ``messageCount`` from the messages sent.
    """
    return await storage.create_conversation(data)


@router.get("", response_model=List[Conversation])
async def list_conversations(
    status_filter: Optional[str] = Query(None, alias="status", pattern="^(active|archived)$"),
    topic: Optional[str] = None,
    search: Optional[str] = None,
    storage: ConversationStorage = Depends(get_conversation_storage),
):
    """
    List conversations, newest first.

    Args:
        status_filter: "active" (default) or "archived"
        topic: Only active conversations of this topic
        search: Case-insensitive match on title, summary or topic
    """
    if search:
        return await storage.search_conversations(search)
    if topic:
        return await storage.get_conversations_by_topic(topic)
    return await storage.list_conversations(status_filter)


@router.get("/{conversation_id}", response_model=Conversation)
async def get_conversation(
    conversation_id: str,
    storage: ConversationStorage = Depends(get_conversation_storage),
):
    """Get a conversation with all its messages."""
    return await _get_or_404(storage, conversation_id)


@router.patch("/{conversation_id}", response_model=Conversation)
async def update_conversation(
    conversation_id: str,
    updates: ConversationUpdate,
    storage: ConversationStorage = Depends(get_conversation_storage),
):
    """
    Partially update a conversation. Only the fields present in the body
    change; ``messageCount`` follows the messages when they are sent.
    """
    conversation = await storage.update_conversation(
        conversation_id, updates.model_dump(exclude_unset=True)
    )
    if conversation is None:
        raise _not_found()
    return conversation


@router.delete("/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_conversation(
    conversation_id: str,
    storage: ConversationStorage = Depends(get_conversation_storage),
):
    if not await storage.delete_conversation(conversation_id):
        raise _not_found()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{conversation_id}/star", response_model=Conversation)
async def star_conversation(
    conversation_id: str,
    body: StarRequest,
    storage: ConversationStorage = Depends(get_conversation_storage),
):
    conversation = await storage.star_conversation(conversation_id, body.is_starred)
    if conversation is None:
        raise _not_found()
    return conversation


@router.patch("/{conversation_id}/archive", response_model=Conversation)
async def archive_conversation(
    conversation_id: str,
    storage: ConversationStorage = Depends(get_conversation_storage),
):
    conversation = await storage.archive_conversation(conversation_id)
    if conversation is None:
        raise _not_found()
    return conversation


@router.get("/{conversation_id}/export")
async def export_conversation(
    conversation_id: str,
    format: str = Query("json", pattern="^(json|txt)$"),
    storage: ConversationStorage = Depends(get_conversation_storage),
):
    """
    Download a conversation as a JSON document or a plain-text transcript.
    """
    conversation = await _get_or_404(storage, conversation_id)

    title = conversation.title or f"Conversation {conversation.topic}"
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    filename = f"{re.sub(r'[^a-zA-Z0-9]', '_', title)}_{stamp}.{format}"
    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}

    if format == "txt":
        return Response(content=export_as_text(conversation), media_type="text/plain", headers=headers)

    body = json.dumps(conversation.model_dump(mode="json", by_alias=True), ensure_ascii=False, indent=2)
    return Response(content=body, media_type="application/json", headers=headers)
