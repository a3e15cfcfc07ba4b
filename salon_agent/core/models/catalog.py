"""
Catalog models and service resolution results.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Union
from pydantic import BaseModel, ConfigDict


class CatalogService(BaseModel):
    """A bookable service as known to the local or remote catalog."""

    model_config = ConfigDict(extra="forbid")

    id: int
    name: str
    duration_minutes: int
    price: float = 0.0
    category: Optional[str] = None

    def describe(self) -> str:
        """Short label used in numbered suggestion lists."""
        price = f"R$ {self.price:.2f}".replace(".", ",")
        return f"{self.name} ({self.duration_minutes} min, {price})"


@dataclass(frozen=True)
class Found:
    """The free-text name resolved to exactly one bookable service."""
    service: CatalogService


@dataclass(frozen=True)
class Ambiguous:
    """No unique match; the user must pick from ``suggestions``."""
    query: str
    suggestions: List[CatalogService] = field(default_factory=list)


@dataclass(frozen=True)
class NotFound:
    """Nothing bookable matched. ``is_category`` marks generic category names."""
    query: str
    is_category: bool = False


ResolveResult = Union[Found, Ambiguous, NotFound]
