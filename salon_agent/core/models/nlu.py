"""
NLU extraction result model.
"""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..enums import Intent


class ExtractionResult(BaseModel):
    """Normalized slot bag produced from one user message."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    intent: Intent = Intent.OTHER
    question: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    service_name: Optional[str] = Field(default=None, alias="serviceName")
    date: Optional[str] = None
    time: Optional[str] = None
    professional_name: Optional[str] = Field(default=None, alias="professionalName")

    @field_validator("intent", mode="before")
    @classmethod
    def _coerce_intent(cls, value: Any) -> Intent:
        if isinstance(value, Intent):
            return value
        return Intent.from_string(value if isinstance(value, str) else None)

    @field_validator(
        "question", "name", "phone", "email", "service_name", "date", "time",
        "professional_name", mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @classmethod
    def unknown(cls) -> "ExtractionResult":
        """Neutral result used when extraction fails."""
        return cls(intent=Intent.OTHER)
