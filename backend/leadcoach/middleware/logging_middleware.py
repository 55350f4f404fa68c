"""
ASGI middleware that logs every API request and its response.

Written as a pure ASGI middleware rather than BaseHTTPMiddleware so that the
Server-Sent Events chat stream passes through untouched.
"""

import json
import logging
import time
import uuid
from typing import Optional
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from ..core.logging_config import filter_sensitive_data, truncate_large_data

logger = logging.getLogger(__name__)

MAX_BODY_LOG = 5000


def _render_body(data: bytes) -> Optional[str]:
    """Decode a captured body, mask credentials when it is JSON, and truncate."""
    if not data:
        return None
    text = data.decode("utf-8", errors="ignore")
    try:
        payload = filter_sensitive_data(json.loads(text))
        text = json.dumps(payload, ensure_ascii=False)
    except json.JSONDecodeError:
        pass
    return truncate_large_data(text, max_length=MAX_BODY_LOG)


def _error_reason(body_text: Optional[str]) -> Optional[str]:
    """Pull FastAPI's ``detail`` (or a similar key) out of an error response."""
    if not body_text:
        return None
    try:
        payload = json.loads(body_text)
    except json.JSONDecodeError:
        return truncate_large_data(body_text, max_length=500)
    if isinstance(payload, dict):
        for key in ("detail", "error", "message"):
            if payload.get(key):
                return str(payload[key])
    return truncate_large_data(json.dumps(payload, ensure_ascii=False), max_length=500)


class RequestLoggingMiddleware:
    """Pure ASGI middleware to log API requests and responses."""

    def __init__(
        self,
        app: ASGIApp,
        exclude_paths: Optional[list] = None,
        streaming_paths: Optional[list] = None,
    ):
        """
        Args:
            app: The wrapped ASGI application
            exclude_paths: Paths that are passed through without logging
            streaming_paths: Paths whose response bodies are not captured
        """
        self.app = app
        self.exclude_paths = exclude_paths or ["/health", "/"]
        self.streaming_paths = streaming_paths or ["/chat/stream"]

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope.get("path", "") in self.exclude_paths:
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        method = scope.get("method", "UNKNOWN")
        request_id = uuid.uuid4().hex[:12]
        capture_response = path not in self.streaming_paths
        start_time = time.time()

        request_body = bytearray()
        response_body = bytearray()
        status_code = 0

        async def receive_wrapper() -> Message:
            message = await receive()
            if message["type"] == "http.request":
                request_body.extend(message.get("body", b""))
            return message

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            elif message["type"] == "http.response.body" and capture_response:
                response_body.extend(message.get("body", b""))
            await send(message)

        client = scope.get("client")
        logger.info(
            f"Request started: {method} {path}",
            extra={"extra_fields": {
                "request_id": request_id,
                "method": method,
                "path": path,
                "query_string": scope.get("query_string", b"").decode("utf-8", errors="ignore") or None,
                "client": client[0] if client else None,
            }}
        )

        try:
            await self.app(scope, receive_wrapper, send_wrapper)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {method} {path} - {e}",
                exc_info=True,
                extra={"extra_fields": {
                    "request_id": request_id,
                    "duration_ms": round(duration_ms, 2),
                    "error": str(e),
                }}
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        request_text = _render_body(bytes(request_body))
        response_text = _render_body(bytes(response_body))
        reason = _error_reason(response_text) if status_code >= 400 else None

        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(f"Request body: {request_text or '-'} | response body: {response_text or '-'}")

        message = f"Request completed: {method} {path} - {status_code} ({duration_ms:.2f}ms)"
        if reason:
            message += f" | error_reason={reason}"
        logger.log(
            level,
            message,
            extra={"extra_fields": {
                "request_id": request_id,
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": round(duration_ms, 2),
                "request_body": request_text,
                "response_body": response_text,
                "error_reason": reason,
            }}
        )
