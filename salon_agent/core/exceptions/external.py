"""
External API-related exceptions.
"""


class ExternalAPIError(Exception):
    """Base exception for external API errors."""
    pass


class BookingBackendError(ExternalAPIError):
    """Exception raised when booking backend calls fail."""
    pass


class CustomerNotFoundError(BookingBackendError):
    """Exception raised when a customer cannot be located or created."""
    pass


class ExtractionError(ExternalAPIError):
    """Exception raised when the NLU service returns an unusable answer."""
    pass
