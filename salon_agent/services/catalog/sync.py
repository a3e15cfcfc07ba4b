"""
Refresh the local catalog from the booking backend.
"""

from ...utils.logging import get_logger
from ..external import BookingBackendClient
from .local import LocalCatalog
from .resolver import remote_candidate

logger = get_logger("salon.catalog")


async def sync_catalog(catalog: LocalCatalog, backend: BookingBackendClient, tenant_id: str) -> int:
    """Mirror the bookable remote services locally and deactivate the rest.

    Returns the number of active services after the sync.
    """
    remote = await backend.search_services("")
    services = [s for s in (remote_candidate(r) for r in remote) if s is not None]
    if not services:
        logger.warning(f"catalog sync for {tenant_id}: backend returned no bookable services")
        return 0

    await catalog.upsert_services(tenant_id, services)
    removed = await catalog.deactivate_missing(tenant_id, {s.id for s in services})
    logger.info(f"catalog sync for {tenant_id}: {len(services)} active, {removed} deactivated")
    return len(services)
