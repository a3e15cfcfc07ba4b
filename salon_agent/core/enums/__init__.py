"""
Enums for the salon booking agent.
"""

from .dialog import DialogStep, Intent, MessageRole, AttemptStatus

__all__ = [
    "DialogStep",
    "Intent",
    "MessageRole",
    "AttemptStatus",
]
