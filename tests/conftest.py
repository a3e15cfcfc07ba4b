"""
Pytest configuration and fixtures.
"""

from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

from salon_agent.config import Settings
from salon_agent.core.models import AvailabilityResult, CatalogService, ExtractionResult
from salon_agent.services.booking import AttemptAuditLog, BookingCommitter
from salon_agent.services.catalog import LocalCatalog, ServiceResolver
from salon_agent.services.conversation import ConversationStateStore
from salon_agent.services.dialog import DialogOrchestrator
from salon_agent.services.external import BookingBackendClient
from salon_agent.services.nlu import FALLBACK_REPLY, AssistantResponder, IntentExtractor
from salon_agent.utils.event_log import set_log_path, set_turn_id

CATALOG = [
    CatalogService(id=101, name="Manicure", duration_minutes=40, price=35.0, category="Unhas"),
    CatalogService(id=102, name="Pedicure", duration_minutes=50, price=40.0, category="Unhas"),
    CatalogService(id=103, name="Esmaltação em gel", duration_minutes=60, price=80.0, category="Unhas"),
    CatalogService(id=201, name="Escova", duration_minutes=45, price=60.0, category="Cabelo"),
    CatalogService(id=202, name="Corte feminino", duration_minutes=60, price=90.0, category="Cabelo"),
]


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point every store and the event log at a temporary directory."""
    db_path = tmp_path / "state.db"
    monkeypatch.setenv("STATE_DB_PATH", str(db_path))
    monkeypatch.setenv("EVENT_LOG_PATH", str(tmp_path / "events.jsonl"))
    monkeypatch.setenv("BOOKING_MAX_RETRIES", "1")
    monkeypatch.setenv("BOOKING_API_BASE", "https://booking.test")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    set_log_path(tmp_path / "events.jsonl")
    set_turn_id(None)
    return db_path


@pytest.fixture
def settings(isolated_env):
    return Settings()


@pytest.fixture
def mock_backend():
    """Mock booking backend client."""
    backend = Mock(spec=BookingBackendClient)
    backend.search_services = AsyncMock(return_value=[])
    backend.find_or_create_customer = AsyncMock(return_value={"id": 77, "nome": "Ana Souza"})
    backend.check_availability = AsyncMock(return_value=AvailabilityResult(available=True))
    backend.create_booking = AsyncMock(return_value={"id": "bk-123"})
    return backend


@pytest.fixture
def mock_extractor():
    """Mock NLU extractor returning a neutral result unless told otherwise."""
    extractor = Mock(spec=IntentExtractor)
    extractor.extract = AsyncMock(return_value=ExtractionResult.unknown())
    return extractor


@pytest.fixture
def mock_responder():
    responder = Mock(spec=AssistantResponder)
    responder.reply = AsyncMock(return_value=FALLBACK_REPLY)
    return responder


@pytest_asyncio.fixture
async def catalog(settings):
    """Local catalog seeded with a few salon services."""
    local = LocalCatalog(settings.state_db_path)
    await local.upsert_services(settings.tenant_id, CATALOG)
    return local


@pytest.fixture
def store(settings):
    return ConversationStateStore(settings.state_db_path)


@pytest.fixture
def audit_log(settings):
    return AttemptAuditLog(settings.state_db_path)


@pytest.fixture
def committer(mock_backend, audit_log, settings):
    return BookingCommitter(mock_backend, audit_log, settings.tenant_id)


@pytest.fixture
def resolver(catalog, mock_backend):
    return ServiceResolver(catalog, mock_backend, suggestion_limit=5)


@pytest.fixture
def orchestrator(settings, store, mock_extractor, mock_responder, resolver, catalog, committer):
    return DialogOrchestrator(
        store=store,
        extractor=mock_extractor,
        responder=mock_responder,
        resolver=resolver,
        catalog=catalog,
        committer=committer,
        settings=settings,
    )
