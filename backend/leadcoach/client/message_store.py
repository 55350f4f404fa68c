"""
Message Store - ordered, append-only messages of one chat session.
"""

from typing import Iterable, Iterator, Optional, Tuple

from ..models import Message


class MessageStore:
    """
    Holds the messages of the active session in insertion order.

    ``append`` does not deduplicate; callers create each message with a fresh id.
    ``replace_all`` rebinds the whole sequence in one step, so readers see
    either the old or the new list, never a mix.
    """

    def __init__(self, messages: Optional[Iterable[Message]] = None):
        self._messages = list(messages or [])

    @property
    def messages(self) -> Tuple[Message, ...]:
        """Snapshot of the current sequence."""
        return tuple(self._messages)

    def append(self, message: Message) -> None:
        self._messages.append(message)

    def replace_all(self, messages: Iterable[Message]) -> None:
        self._messages = list(messages)

    def clear(self) -> None:
        self._messages = []

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.messages)
