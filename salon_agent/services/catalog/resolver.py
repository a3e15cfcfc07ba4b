"""
Free-text service name resolution.
"""

from typing import Any, Dict, List, Optional

from ...core.exceptions import ExternalAPIError
from ...core.models import Ambiguous, CatalogService, Found, NotFound, ResolveResult
from ...utils.logging import get_logger
from ...utils.text import TextProcessor
from ..external import BookingBackendClient
from .local import LocalCatalog

logger = get_logger("salon.resolver")

# Category names customers use that never map to a single bookable service.
GENERIC_CATEGORIES = frozenset(
    TextProcessor.normalize_text(term)
    for term in (
        "manicure", "pedicure", "unha", "unhas", "cabelo", "cabelos", "barba",
        "sobrancelha", "sobrancelhas", "depilação", "depilacao", "depilar", "depil",
        "cílios", "cilios", "maquiagem", "make", "estética", "estetica",
    )
)

_CHILD_KEYS = ("itens", "subitens", "subservicos")


def _first(raw: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value not in (None, ""):
            return value
    return None


def _number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def remote_candidate(raw: Dict[str, Any]) -> Optional[CatalogService]:
    """Convert a remote catalog entry, or None when it is not directly bookable."""
    if raw.get("isCategoria") is True or str(raw.get("tipo", "")).lower() == "categoria":
        return None
    if any(isinstance(raw.get(k), list) and raw.get(k) for k in _CHILD_KEYS):
        return None
    if raw.get("visivelCliente") is False:
        return None

    service_id = int(_number(_first(raw, "id", "servicoId", "codigo")))
    duration = int(_number(_first(raw, "duracaoEmMinutos", "duracao", "duracao_minutos")))
    name = _first(raw, "nome", "name")
    if service_id <= 0 or duration <= 0 or not name:
        return None

    return CatalogService(
        id=service_id,
        name=str(name),
        duration_minutes=duration,
        price=_number(_first(raw, "valor", "preco", "precoAtual")),
        category=_first(raw, "categoria"),
    )


def pick_best(candidates: List[CatalogService], query: str) -> Optional[CatalogService]:
    """Exact name first, then substring, then the first candidate."""
    if not candidates:
        return None
    needle = TextProcessor.normalize_text(query)
    for candidate in candidates:
        if TextProcessor.normalize_text(candidate.name) == needle:
            return candidate
    for candidate in candidates:
        if needle and needle in TextProcessor.normalize_text(candidate.name):
            return candidate
    return candidates[0]


class ServiceResolver:
    """Resolve a service name against the local catalog, then the remote one."""

    def __init__(
        self,
        catalog: LocalCatalog,
        backend: BookingBackendClient,
        suggestion_limit: int = 5,
    ):
        self.catalog = catalog
        self.backend = backend
        self.suggestion_limit = suggestion_limit

    async def suggestions(self, tenant_id: str, query: str) -> List[CatalogService]:
        """Bookable local candidates for a numbered disambiguation list."""
        local = await self.catalog.suggest(tenant_id, query, self.suggestion_limit)
        return [s for s in local if s.duration_minutes > 0]

    async def resolve(self, tenant_id: str, name: str) -> ResolveResult:
        query = TextProcessor.normalize_text(name)
        if not query:
            return NotFound(query=name or "")

        local = await self.suggestions(tenant_id, name)
        for service in local:
            if TextProcessor.normalize_text(service.name) == query:
                return Found(service)

        if query in GENERIC_CATEGORIES:
            logger.info(f"resolve: '{name}' is a category, asking for a specific service")
            if local:
                return Ambiguous(query=name, suggestions=local)
            return NotFound(query=name, is_category=True)

        try:
            remote = await self.backend.search_services(name)
        except ExternalAPIError as e:
            logger.warning(f"resolve: remote catalog search failed for '{name}': {e}")
            remote = []

        candidates = [c for c in (remote_candidate(r) for r in remote) if c is not None]
        best = pick_best(candidates, name)
        if best is not None:
            return Found(best)

        if local:
            return Ambiguous(query=name, suggestions=local)
        return NotFound(query=name)
