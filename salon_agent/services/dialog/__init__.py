"""
Conversational booking state machine.
"""

from .orchestrator import DialogOrchestrator, StepOutcome, build_orchestrator
from .slots import SlotController

__all__ = [
    "DialogOrchestrator",
    "StepOutcome",
    "build_orchestrator",
    "SlotController",
]
