"""
Service catalog access and name resolution.
"""

from .local import LocalCatalog
from .resolver import ServiceResolver, GENERIC_CATEGORIES, remote_candidate, pick_best
from .sync import sync_catalog

__all__ = [
    "LocalCatalog",
    "ServiceResolver",
    "GENERIC_CATEGORIES",
    "remote_candidate",
    "pick_best",
    "sync_catalog",
]
