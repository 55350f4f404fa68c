"""
Exceptions raised by the chat session client.
"""

from typing import Optional


class LeadCoachError(Exception):
    """Base class for chat session errors."""


class EmptyMessageError(LeadCoachError, ValueError):
    """The message text is empty after trimming; nothing was sent."""


class SessionBusyError(LeadCoachError):
    """A turn or a history load is already in flight for this session."""


class CoachServiceError(LeadCoachError):
    """The coaching endpoint was unreachable or returned no usable reply."""


class PersistenceError(LeadCoachError):
    """A conversation create, update or fetch call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
