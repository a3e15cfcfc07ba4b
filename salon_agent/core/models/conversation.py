"""
Conversation state models.
"""

from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict

from ..enums import DialogStep, MessageRole
from .catalog import CatalogService


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ChatMessage(BaseModel):
    """Individual chat message model."""

    model_config = ConfigDict(extra="forbid")

    role: MessageRole
    content: str


class ContactInfo(BaseModel):
    """Snapshot of the counterpart's display data sent by the gateway."""

    model_config = ConfigDict(extra="forbid")

    display_name: Optional[str] = None

    @property
    def first_name(self) -> Optional[str]:
        if not self.display_name:
            return None
        parts = self.display_name.strip().split()
        return parts[0] if parts else None


class BookingSlots(BaseModel):
    """Typed slot values accumulated across turns."""

    model_config = ConfigDict(extra="forbid")

    service_name: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None

    # Service resolution
    service_suggestions: List[CatalogService] = Field(default_factory=list)
    selected_service: Optional[CatalogService] = None
    resolved_service: Optional[CatalogService] = None

    # Booking outcome
    availability_confirmed: bool = False
    last_booking_id: Optional[str] = None


class ConversationState(BaseModel):
    """Durable per-(tenant, phone) conversation record."""

    model_config = ConfigDict(extra="forbid")

    tenant_id: str
    phone: str
    step: DialogStep = DialogStep.INITIAL
    slots: BookingSlots = Field(default_factory=BookingSlots)
    message_history: List[ChatMessage] = Field(default_factory=list)
    contact_info: Optional[ContactInfo] = None
    last_text: Optional[str] = None
    version: int = 0
    updated_at: str = Field(default_factory=_now_iso)

    @property
    def awaiting(self) -> Optional[str]:
        """Slot currently being requested from the user, derived from ``step``."""
        return self.step.awaiting
