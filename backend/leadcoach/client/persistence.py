"""
Persistence Client - create, update and fetch conversation records over HTTP.
"""

import logging
from typing import Any, Dict, Optional, Sequence

import httpx

from ..models import Conversation, ConversationStatus, Message, utc_now_iso
from .errors import PersistenceError

logger = logging.getLogger(__name__)


def _dump_messages(messages: Sequence[Message]) -> list:
    return [m.model_dump(mode="json") for m in messages]


class ConversationClient:
    """
    Talks to the ``/conversations`` endpoint.

    ``update`` always sends the entire message sequence rather than a delta,
    so repeating a call, or following a failed one with a later call, leaves
    the stored record in the same state.
    """

    def __init__(self, http: httpx.AsyncClient, path: str = "/conversations"):
        self._http = http
        self._path = path.rstrip("/")

    async def _send(self, method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> Conversation:
        try:
            resp = await self._http.request(method, url, json=payload)
            resp.raise_for_status()
            return Conversation.model_validate(resp.json())
        except httpx.HTTPStatusError as e:
            raise PersistenceError(
                f"{method} {url} failed with {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise PersistenceError(f"{method} {url} failed: {e}") from e
        except ValueError as e:
            raise PersistenceError(f"{method} {url} returned a malformed conversation: {e}") from e

    async def create(self, topic: str, title: str, messages: Sequence[Message]) -> Conversation:
        """
        Create a conversation record.

        Returns:
            Conversation: The stored record; its ``id`` identifies the conversation from now on

        Raises:
            PersistenceError: On network or server failure (not retried)
        """
        payload = {
            "topic": topic,
            "title": title,
            "messages": _dump_messages(messages),
            "messageCount": len(messages),
            "lastMessageAt": utc_now_iso(),
            "status": ConversationStatus.ACTIVE.value,
        }
        conversation = await self._send("POST", self._path, payload)
        logger.info(f"Conversation saved: {conversation.id} ({len(messages)} messages)")
        return conversation

    async def update(self, conversation_id: str, messages: Sequence[Message]) -> Conversation:
        """
        Replace the stored messages of a conversation. Title and status are left alone.

        Raises:
            PersistenceError: On network or server failure (not retried)
        """
        payload = {
            "messages": _dump_messages(messages),
            "messageCount": len(messages),
            "lastMessageAt": utc_now_iso(),
        }
        conversation = await self._send("PATCH", f"{self._path}/{conversation_id}", payload)
        logger.debug(f"Conversation updated: {conversation_id} ({len(messages)} messages)")
        return conversation

    async def get(self, conversation_id: str) -> Conversation:
        """
        Fetch a stored conversation.

        Raises:
            PersistenceError: If it does not exist or the request fails
        """
        return await self._send("GET", f"{self._path}/{conversation_id}")
