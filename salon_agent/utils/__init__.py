"""
Utility modules for the salon booking agent.
"""

from .text import TextProcessor, WhatsAppTextExtractor
from .phone import PhoneNumberParser
from .date import DateParser, TimeParser, combine_date_time
from .logging import get_logger

__all__ = [
    "TextProcessor",
    "WhatsAppTextExtractor",
    "PhoneNumberParser",
    "DateParser",
    "TimeParser",
    "combine_date_time",
    "get_logger",
]
