"""
Conversation and booking enums.
"""

from enum import Enum
from typing import Optional


class DialogStep(str, Enum):
    """States of the conversation state machine."""

    INITIAL = "initial"
    COLLECTING_SERVICE = "collecting_service"
    COLLECTING_DATE = "collecting_date"
    COLLECTING_TIME = "collecting_time"
    COLLECTING_PHONE = "collecting_phone"
    VERIFYING_AVAILABILITY = "verifying_availability"
    CONFIRMING = "confirming"
    DONE = "done"
    ERROR = "error"

    # Customer registration sub-flow
    REGISTERING_NAME = "registering_name"
    REGISTERING_PHONE = "registering_phone"

    @property
    def awaiting(self) -> Optional[str]:
        """Name of the slot the user is expected to answer in this state."""
        return _AWAITING_BY_STEP.get(self)

    @property
    def is_booking_step(self) -> bool:
        return self in _BOOKING_STEPS

    @property
    def is_terminal(self) -> bool:
        return self in (DialogStep.DONE, DialogStep.ERROR)


_AWAITING_BY_STEP = {
    DialogStep.COLLECTING_SERVICE: "serviceName",
    DialogStep.COLLECTING_DATE: "date",
    DialogStep.COLLECTING_TIME: "time",
    DialogStep.COLLECTING_PHONE: "phone",
    DialogStep.REGISTERING_NAME: "name",
    DialogStep.REGISTERING_PHONE: "phone",
}

_BOOKING_STEPS = frozenset(
    {
        DialogStep.COLLECTING_SERVICE,
        DialogStep.COLLECTING_DATE,
        DialogStep.COLLECTING_TIME,
        DialogStep.COLLECTING_PHONE,
        DialogStep.VERIFYING_AVAILABILITY,
        DialogStep.CONFIRMING,
    }
)


class Intent(str, Enum):
    """Intents produced by the NLU extractor."""

    FAQ = "faq"
    HOURS = "hours"
    CREATE_USER = "create_user"
    SCHEDULE = "schedule"
    OTHER = "other"

    @classmethod
    def from_string(cls, value: Optional[str]) -> "Intent":
        """Convert a raw intent label, falling back to OTHER."""
        if not value:
            return cls.OTHER
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.OTHER


class MessageRole(str, Enum):
    """Author of a history entry."""

    USER = "user"
    ASSISTANT = "assistant"


class AttemptStatus(str, Enum):
    """Outcome recorded for a booking attempt."""

    SUCCESS = "sucesso"
    ERROR = "erro"
