"""
Conversation title generation.
"""

import re
from typing import Optional

from ..coaching.topics import get_topic

TITLE_MAX_LENGTH = 50
ELLIPSIS = "..."

_NON_WORD = re.compile(r"[^\w\s]")


def generate_title(text: str, topic: Optional[str] = None) -> str:
    """
    Derive a short title from the first user message.

    Punctuation and symbols are removed; text longer than 50 characters is
    cut at 50, trailing whitespace dropped and "..." appended. A message with
    nothing left after cleaning is titled after its topic.
    """
    cleaned = _NON_WORD.sub("", text)

    if not cleaned.strip():
        if topic:
            return get_topic(topic).title
        return "Untitled conversation"

    if len(cleaned) <= TITLE_MAX_LENGTH:
        return cleaned
    return cleaned[:TITLE_MAX_LENGTH].rstrip() + ELLIPSIS
