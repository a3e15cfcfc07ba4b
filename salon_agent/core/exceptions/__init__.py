"""
Custom exceptions for the salon booking agent.
"""

from .booking import BookingFlowError, CatalogError
from .external import (
    ExternalAPIError,
    BookingBackendError,
    CustomerNotFoundError,
    ExtractionError,
)

__all__ = [
    "BookingFlowError",
    "CatalogError",
    "ExternalAPIError",
    "BookingBackendError",
    "CustomerNotFoundError",
    "ExtractionError",
]
