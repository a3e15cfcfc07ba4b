"""
External API adapters.
"""

from .service import BookingBackendClient

__all__ = ["BookingBackendClient"]
