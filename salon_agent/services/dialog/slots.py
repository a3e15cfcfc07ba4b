"""
Slot controller for managing booking state transitions.
"""

from __future__ import annotations

from typing import Any, Dict, List

from ...core.enums import DialogStep
from ...core.models import BookingSlots, ConversationState
from ...utils.event_log import log_event
from ...utils.logging import get_logger

logger = get_logger("salon.slots")


class SlotController:
    """Apply slot patches and step transitions on a ConversationState."""

    _FIELD_TO_STEP: Dict[str, DialogStep] = {
        "service_name": DialogStep.COLLECTING_SERVICE,
        "selected_service": DialogStep.COLLECTING_SERVICE,
        "date": DialogStep.COLLECTING_DATE,
        "time": DialogStep.COLLECTING_TIME,
    }

    _DOWNSTREAM_FIELDS: Dict[DialogStep, List[str]] = {
        DialogStep.COLLECTING_SERVICE: ["resolved_service", "availability_confirmed"],
        DialogStep.COLLECTING_DATE: ["availability_confirmed"],
        DialogStep.COLLECTING_TIME: ["availability_confirmed"],
    }

    # Slots that belong to one booking attempt, cleared once it ends.
    _ATTEMPT_FIELDS = [
        "service_name",
        "date",
        "time",
        "service_suggestions",
        "selected_service",
        "resolved_service",
        "availability_confirmed",
    ]

    def __init__(self, state: ConversationState) -> None:
        self.state = state

    @property
    def slots(self) -> BookingSlots:
        return self.state.slots

    @staticmethod
    def _default(name: str) -> Any:
        return BookingSlots.model_fields[name].get_default(call_default_factory=True)

    def apply_patch(self, patch: Dict[str, Any]) -> List[str]:
        """Set the given slots, clearing whatever depended on changed values.

        Returns the names of the slots whose value actually changed.
        """
        changed = {
            name: value
            for name, value in patch.items()
            if getattr(self.slots, name) != value
        }
        if not changed:
            return []

        steps = {self._FIELD_TO_STEP[n] for n in changed if n in self._FIELD_TO_STEP}
        for step in steps:
            for name in self._DOWNSTREAM_FIELDS.get(step, []):
                if name not in changed:
                    setattr(self.slots, name, self._default(name))

        # A new free-text service name invalidates an earlier pick from a list.
        if "service_name" in changed and "selected_service" not in patch:
            self.slots.selected_service = None
            if "service_suggestions" not in patch:
                self.slots.service_suggestions = []

        for name, value in changed.items():
            setattr(self.slots, name, value)

        # Suggestions and a selection never coexist.
        if self.slots.selected_service is not None:
            self.slots.service_suggestions = []

        log_event("slot_patch", {"fields": sorted(changed)})
        return list(changed)

    def clear(self, *names: str) -> None:
        self.apply_patch({name: self._default(name) for name in names})

    def end_attempt(self, *, keep_service: bool) -> None:
        """Drop the slots of a finished booking attempt."""
        names = [
            n for n in self._ATTEMPT_FIELDS
            if not (keep_service and n in ("service_name", "selected_service", "resolved_service"))
        ]
        self.clear(*names)

    def transition(self, step: DialogStep) -> None:
        prev = self.state.step
        if prev == step:
            return
        self.state.step = step
        logger.debug(f"{self.state.phone}: {prev.value} -> {step.value}")
        log_event("step_transition", {"from": prev.value, "to": step.value})
