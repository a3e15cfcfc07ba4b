"""
Booking-related exceptions.
"""


class BookingFlowError(Exception):
    """Raised when the booking state machine cannot settle on a step."""
    pass


class CatalogError(Exception):
    """Exception raised when the local catalog cannot be queried."""
    pass
