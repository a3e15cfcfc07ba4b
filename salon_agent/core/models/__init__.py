"""
Core data models for the salon booking agent.
"""

from .catalog import CatalogService, Found, Ambiguous, NotFound, ResolveResult
from .conversation import ChatMessage, ContactInfo, BookingSlots, ConversationState
from .booking import AvailabilityResult, BookingResult, BookingAttempt
from .nlu import ExtractionResult

__all__ = [
    "CatalogService",
    "Found",
    "Ambiguous",
    "NotFound",
    "ResolveResult",
    "ChatMessage",
    "ContactInfo",
    "BookingSlots",
    "ConversationState",
    "AvailabilityResult",
    "BookingResult",
    "BookingAttempt",
    "ExtractionResult",
]
