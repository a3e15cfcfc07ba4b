"""
Tests for the local catalog, remote filtering and service resolution.
"""

import pytest

from salon_agent.core.exceptions import BookingBackendError
from salon_agent.core.models import Ambiguous, CatalogService, Found, NotFound
from salon_agent.services.catalog import pick_best, remote_candidate, sync_catalog

TENANT = "default"


class TestLocalCatalog:
    @pytest.mark.asyncio
    async def test_suggest_ranks_name_before_category(self, catalog):
        assert [s.id for s in await catalog.suggest(TENANT, "Manicure")] == [101]
        assert [s.id for s in await catalog.suggest(TENANT, "unha")] == [103, 101, 102]
        assert [s.id for s in await catalog.suggest(TENANT, "CABELO")] == [202, 201]

    @pytest.mark.asyncio
    async def test_suggest_ignores_accents_and_respects_limit(self, catalog):
        assert [s.id for s in await catalog.suggest(TENANT, "esmaltacao")] == [103]
        assert len(await catalog.suggest(TENANT, "unhas", limit=2)) == 2
        assert await catalog.suggest(TENANT, "   ") == []

    @pytest.mark.asyncio
    async def test_catalog_is_tenant_scoped(self, catalog):
        assert await catalog.suggest("other-salon", "Manicure") == []
        assert await catalog.exists("other-salon", 101) is False
        assert await catalog.exists(TENANT, 101) is True

    @pytest.mark.asyncio
    async def test_deactivate_missing(self, catalog):
        removed = await catalog.deactivate_missing(TENANT, {101, 102})

        assert removed == 3
        assert await catalog.exists(TENANT, 201) is False
        assert await catalog.get(TENANT, 101) is not None
        assert [s.id for s in await catalog.suggest(TENANT, "unha")] == [101, 102]

    @pytest.mark.asyncio
    async def test_upsert_updates_existing_rows(self, catalog):
        await catalog.upsert_services(
            TENANT,
            [CatalogService(id=101, name="Manicure simples", duration_minutes=30, price=30.0)],
        )

        service = await catalog.get(TENANT, 101)
        assert service.name == "Manicure simples"
        assert service.duration_minutes == 30


class TestRemoteCandidate:
    def test_accepts_bookable_service(self):
        service = remote_candidate(
            {"id": "999", "nome": "Escova progressiva", "duracaoEmMinutos": 120, "preco": "250.5"}
        )
        assert service == CatalogService(
            id=999, name="Escova progressiva", duration_minutes=120, price=250.5
        )

    @pytest.mark.parametrize(
        "raw",
        [
            {"id": 1, "nome": "Unhas", "duracaoEmMinutos": 30, "isCategoria": True},
            {"id": 1, "nome": "Unhas", "duracaoEmMinutos": 30, "tipo": "Categoria"},
            {"id": 1, "nome": "Cabelo", "duracaoEmMinutos": 30, "itens": [{"id": 2}]},
            {"id": 1, "nome": "Interno", "duracaoEmMinutos": 30, "visivelCliente": False},
            {"id": 0, "nome": "Sem id", "duracaoEmMinutos": 30},
            {"id": 1, "nome": "Sem duração", "duracaoEmMinutos": 0},
            {"id": 1, "duracaoEmMinutos": 30},
        ],
    )
    def test_rejects_non_bookable_entries(self, raw):
        assert remote_candidate(raw) is None

    def test_pick_best_prefers_exact_then_substring(self):
        a = CatalogService(id=1, name="Escova modelada", duration_minutes=60)
        b = CatalogService(id=2, name="Escova", duration_minutes=45)
        c = CatalogService(id=3, name="Hidratação", duration_minutes=40)

        assert pick_best([a, b, c], "escova") == b
        assert pick_best([c, a], "escova") == a
        assert pick_best([c], "escova") == c
        assert pick_best([], "escova") is None


class TestServiceResolver:
    @pytest.mark.asyncio
    async def test_local_exact_match(self, resolver, mock_backend):
        result = await resolver.resolve(TENANT, "Esmaltação em Gel")

        assert isinstance(result, Found)
        assert result.service.id == 103
        mock_backend.search_services.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_category_never_goes_remote(self, resolver, mock_backend):
        mock_backend.search_services.return_value = [
            {"id": 5, "nome": "Cabelo", "duracaoEmMinutos": 30}
        ]

        result = await resolver.resolve(TENANT, "cabelo")

        assert isinstance(result, Ambiguous)
        assert [s.name for s in result.suggestions] == ["Corte feminino", "Escova"]
        mock_backend.search_services.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_category_without_local_services(self, resolver, mock_backend):
        result = await resolver.resolve(TENANT, "Depilação")

        assert result == NotFound(query="Depilação", is_category=True)
        mock_backend.search_services.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_remote_match_skips_categories(self, resolver, mock_backend):
        mock_backend.search_services.return_value = [
            {"id": 900, "nome": "Progressiva", "duracaoEmMinutos": 0, "isCategoria": True},
            {"id": 901, "nome": "Progressiva sem formol", "duracaoEmMinutos": 150, "valor": 300},
            {"id": 902, "nome": "Progressiva", "duracaoEmMinutos": 120, "valor": 250},
        ]

        result = await resolver.resolve(TENANT, "progressiva")

        assert isinstance(result, Found)
        assert result.service.id == 902
        mock_backend.search_services.assert_awaited_once_with("progressiva")

    @pytest.mark.asyncio
    async def test_remote_failure_falls_back_to_local_suggestions(self, resolver, mock_backend):
        mock_backend.search_services.side_effect = BookingBackendError("HTTP error 503")

        result = await resolver.resolve(TENANT, "gel")

        assert isinstance(result, Ambiguous)
        assert [s.id for s in result.suggestions] == [103]

    @pytest.mark.asyncio
    async def test_not_found(self, resolver):
        assert await resolver.resolve(TENANT, "massagem") == NotFound(query="massagem")
        assert await resolver.resolve(TENANT, "  ") == NotFound(query="  ")

    @pytest.mark.asyncio
    async def test_suggestions_skip_zero_duration(self, resolver, catalog):
        await catalog.upsert_services(
            TENANT, [CatalogService(id=104, name="Unhas avulsas", duration_minutes=0, category="Unhas")]
        )

        suggestions = await resolver.suggestions(TENANT, "unhas")

        assert 104 not in [s.id for s in suggestions]


class TestCatalogSync:
    @pytest.mark.asyncio
    async def test_sync_mirrors_remote_catalog(self, catalog, mock_backend):
        mock_backend.search_services.return_value = [
            {"id": 101, "nome": "Manicure", "duracaoEmMinutos": 45, "valor": 38, "categoria": "Unhas"},
            {"id": 301, "nome": "Design de sobrancelha", "duracaoEmMinutos": 30, "categoria": "Sobrancelhas"},
            {"id": 400, "nome": "Cabelo", "isCategoria": True},
        ]

        active = await sync_catalog(catalog, mock_backend, TENANT)

        assert active == 2
        assert (await catalog.get(TENANT, 101)).duration_minutes == 45
        assert await catalog.exists(TENANT, 301) is True
        assert await catalog.exists(TENANT, 201) is False
        assert await catalog.exists(TENANT, 400) is False

    @pytest.mark.asyncio
    async def test_empty_remote_keeps_local_catalog(self, catalog, mock_backend):
        mock_backend.search_services.return_value = []

        assert await sync_catalog(catalog, mock_backend, TENANT) == 0
        assert await catalog.exists(TENANT, 201) is True
