"""
Conversation persistence, history and turn serialization.
"""

from .history import append_message, recent_context
from .state_store import ConversationStateStore
from .locks import ConversationLocks

__all__ = [
    "append_message",
    "recent_context",
    "ConversationStateStore",
    "ConversationLocks",
]
