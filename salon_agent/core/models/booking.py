"""
Availability and booking commit models.
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ConfigDict

from ..enums import AttemptStatus


class AvailabilityResult(BaseModel):
    """Answer of an availability check."""

    model_config = ConfigDict(extra="forbid")

    available: bool
    reason: Optional[str] = None


class BookingResult(BaseModel):
    """Outcome of a booking commit. Only ``confirmed`` results carry an id."""

    model_config = ConfigDict(extra="forbid")

    confirmed: bool
    booking_id: Optional[str] = None
    idempotency_key: str
    error: Optional[str] = None


class BookingAttempt(BaseModel):
    """Audit record written for every booking try."""

    model_config = ConfigDict(extra="forbid")

    tenant_id: str
    phone: str
    service_id: int
    customer_id: Optional[str] = None
    start: str
    duration_minutes: int
    price: float = 0.0
    confirmed: bool = False
    notes: Optional[str] = None
    idempotency_key: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    response: Optional[Dict[str, Any]] = None
    booking_id: Optional[str] = None
    status: AttemptStatus
