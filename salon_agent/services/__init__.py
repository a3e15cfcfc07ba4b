"""
Service layer for the salon booking agent.
"""

from .conversation import ConversationStateStore, ConversationLocks, append_message
from .nlu import IntentExtractor, AssistantResponder
from .external import BookingBackendClient
from .catalog import LocalCatalog, ServiceResolver
from .booking import AttemptAuditLog, BookingCommitter
from .dialog import DialogOrchestrator, build_orchestrator

__all__ = [
    "ConversationStateStore",
    "ConversationLocks",
    "append_message",
    "IntentExtractor",
    "AssistantResponder",
    "BookingBackendClient",
    "LocalCatalog",
    "ServiceResolver",
    "AttemptAuditLog",
    "BookingCommitter",
    "DialogOrchestrator",
    "build_orchestrator",
]
