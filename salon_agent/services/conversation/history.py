"""
Bounded rolling message history.
"""

from typing import List, Sequence

from ...core.enums import MessageRole
from ...core.models import ChatMessage


def append_message(
    history: Sequence[ChatMessage],
    role: MessageRole,
    content: str,
    cap: int,
) -> List[ChatMessage]:
    """Return a new history with the message appended, keeping the newest ``cap`` entries."""
    if cap < 1:
        raise ValueError("history cap must be positive")
    updated = list(history)
    updated.append(ChatMessage(role=role, content=content))
    return updated[-cap:]


def recent_context(history: Sequence[ChatMessage], limit: int) -> List[dict]:
    """Most recent ``limit`` messages in chat-completion format."""
    return [
        {"role": m.role.value, "content": m.content}
        for m in list(history)[-limit:]
    ]
