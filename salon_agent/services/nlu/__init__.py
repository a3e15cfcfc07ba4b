"""
Language-model adapters: intent extraction and free-form replies.
"""

from .extractor import IntentExtractor, parse_extraction
from .responder import AssistantResponder, FALLBACK_REPLY

__all__ = [
    "IntentExtractor",
    "parse_extraction",
    "AssistantResponder",
    "FALLBACK_REPLY",
]
