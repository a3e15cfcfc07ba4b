"""
Booking services: availability, commits and attempt auditing.
"""

from .audit import AttemptAuditLog
from .committer import BookingCommitter, build_idempotency_key, AVAILABILITY_ERROR_REASON

__all__ = [
    "AttemptAuditLog",
    "BookingCommitter",
    "build_idempotency_key",
    "AVAILABILITY_ERROR_REASON",
]
