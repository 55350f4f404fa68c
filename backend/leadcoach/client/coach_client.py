"""
Remote coaching service client - one request per chat turn.
"""

import logging
import time
from typing import Optional, Sequence

import httpx

from ..config import settings
from ..models import ChatRequest, ChatResponse, Message
from .errors import CoachServiceError

logger = logging.getLogger(__name__)


class RemoteCoachClient:
    """Calls ``POST /chat`` and returns the reply text."""

    def __init__(self, http: httpx.AsyncClient, path: str = "/chat", timeout: Optional[float] = None):
        """
        Args:
            http: Shared API client
            path: Coaching endpoint path
            timeout: HTTP timeout for the reply request (defaults to settings.chat_timeout_seconds)
        """
        self._http = http
        self._path = path
        self._timeout = timeout if timeout is not None else settings.chat_timeout_seconds

    async def reply(
        self,
        message: str,
        topic: str,
        history: Sequence[Message],
        conversation_id: Optional[str] = None,
    ) -> str:
        """
        Ask the coaching service for a reply.

        Args:
            message: The new user message
            topic: Topic id framing the conversation
            history: Messages before ``message``
            conversation_id: Stored conversation id, if the session has one

        Returns:
            str: Non-empty reply text

        Raises:
            CoachServiceError: On transport errors, non-2xx responses, malformed
                bodies, an ``error`` field or an empty reply
        """
        payload = ChatRequest(
            message=message,
            topic=topic,
            conversation_history=list(history),
            conversation_id=conversation_id,
        ).model_dump(mode="json", by_alias=True, exclude_none=True)

        start_time = time.time()
        try:
            resp = await self._http.post(self._path, json=payload, timeout=self._timeout)
            resp.raise_for_status()
            data = ChatResponse.model_validate(resp.json())
        except httpx.HTTPStatusError as e:
            raise CoachServiceError(f"Coaching service returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise CoachServiceError(f"Coaching service unreachable: {e}") from e
        except ValueError as e:
            raise CoachServiceError(f"Malformed coaching response: {e}") from e

        if data.error:
            raise CoachServiceError(data.error)
        if not data.message.strip():
            raise CoachServiceError("Coaching service returned an empty reply")

        logger.debug(
            "Coaching reply received",
            extra={"extra_fields": {
                "topic": topic,
                "history": len(history),
                "duration_ms": round((time.time() - start_time) * 1000, 2),
            }}
        )
        return data.message
