"""
Shared HTTP client for talking to the LeadCoach API.
"""

from typing import Optional

import httpx

from ..config import settings


def build_http_client(
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Create the AsyncClient shared by the coach and conversation clients.

    Args:
        base_url: API root (defaults to settings.coach_api_url)
        timeout: Per-request timeout in seconds (defaults to settings.persistence_timeout_seconds)
        transport: Optional transport, e.g. ``httpx.ASGITransport(app=...)`` or ``httpx.MockTransport``
    """
    return httpx.AsyncClient(
        base_url=base_url or settings.coach_api_url,
        timeout=timeout if timeout is not None else settings.persistence_timeout_seconds,
        transport=transport,
    )
