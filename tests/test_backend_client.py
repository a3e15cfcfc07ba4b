"""
Tests for the booking backend HTTP client.
"""

import json
from datetime import datetime
from unittest.mock import AsyncMock

import httpx
import pytest
import pytz

import salon_agent.services.external.service as service_module
from salon_agent.core.exceptions import BookingBackendError, CustomerNotFoundError
from salon_agent.services.external import BookingBackendClient

TZ = pytz.timezone("America/Bahia")


class FixedDateTime(datetime):
    """Wednesday, 2025-03-12 10:00 local time."""

    @classmethod
    def now(cls, tz=None):
        base = datetime(2025, 3, 12, 10, 0)
        return tz.localize(base) if tz is not None else base


class Recorder:
    """MockTransport handler that replays canned responses in order."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        return response


def _client(recorder) -> BookingBackendClient:
    return BookingBackendClient(transport=httpx.MockTransport(recorder))


@pytest.fixture
def fixed_now(monkeypatch):
    monkeypatch.setattr(service_module, "datetime", FixedDateTime)


@pytest.fixture
def no_sleep(monkeypatch):
    sleep = AsyncMock()
    monkeypatch.setattr(service_module.asyncio, "sleep", sleep)
    return sleep


class TestRequests:
    @pytest.mark.asyncio
    async def test_sends_auth_headers(self, monkeypatch):
        monkeypatch.setenv("BOOKING_API_KEY", "secret")
        monkeypatch.setenv("BOOKING_ESTABLISHMENT_ID", "42")
        recorder = Recorder(httpx.Response(200, json={"data": [{"id": 5, "nome": "Ana"}]}))

        customers = await _client(recorder).find_customers("5571988887777")

        assert customers == [{"id": 5, "nome": "Ana"}]
        request = recorder.requests[0]
        assert request.url.path == "/v1/clientes"
        assert request.url.params["telefone"] == "5571988887777"
        assert request.headers["X-Api-Key"] == "secret"
        assert request.headers["estabelecimentoId"] == "42"

    @pytest.mark.asyncio
    async def test_retries_server_errors(self, monkeypatch, no_sleep):
        monkeypatch.setenv("BOOKING_MAX_RETRIES", "3")
        recorder = Recorder(
            httpx.Response(503),
            httpx.Response(502),
            httpx.Response(200, json=[{"id": 1, "nome": "Escova"}]),
        )

        services = await _client(recorder).search_services("escova")

        assert services == [{"id": 1, "nome": "Escova"}]
        assert len(recorder.requests) == 3
        assert no_sleep.await_count == 2
        assert recorder.requests[0].url.params["somenteVisiveisCliente"] == "true"

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, monkeypatch, no_sleep):
        monkeypatch.setenv("BOOKING_MAX_RETRIES", "2")
        recorder = Recorder(httpx.Response(500))

        with pytest.raises(BookingBackendError, match="HTTP error 500"):
            await _client(recorder).search_services("escova")

        assert len(recorder.requests) == 2

    @pytest.mark.asyncio
    async def test_client_errors_are_not_retried(self, monkeypatch, no_sleep):
        monkeypatch.setenv("BOOKING_MAX_RETRIES", "3")
        recorder = Recorder(httpx.Response(404))

        with pytest.raises(BookingBackendError, match="HTTP error 404"):
            await _client(recorder).search_services("escova")

        assert len(recorder.requests) == 1
        no_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        recorder = Recorder(httpx.Response(200, content=b"<html>"))

        with pytest.raises(BookingBackendError, match="Invalid JSON"):
            await _client(recorder).search_services("escova")

    @pytest.mark.asyncio
    async def test_timeout_maps_to_backend_error(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        client = BookingBackendClient(transport=httpx.MockTransport(handler))

        with pytest.raises(BookingBackendError, match="timed out"):
            await client.search_services("escova")


class TestCustomers:
    @pytest.mark.asyncio
    async def test_find_or_create_returns_existing(self):
        recorder = Recorder(httpx.Response(200, json=[{"id": 5, "nome": "Ana"}]))

        customer = await _client(recorder).find_or_create_customer("5571988887777", "Ana")

        assert customer["id"] == 5
        assert len(recorder.requests) == 1

    @pytest.mark.asyncio
    async def test_find_or_create_creates_with_fallback_name(self):
        recorder = Recorder(
            httpx.Response(200, json=[]),
            httpx.Response(201, json={"id": 9}),
        )

        customer = await _client(recorder).find_or_create_customer("5571988887777")

        assert customer == {"id": 9}
        create = recorder.requests[1]
        assert create.method == "POST"
        assert json.loads(create.content) == {
            "nome": "Cliente 5571988887777",
            "telefone": "5571988887777",
        }

    @pytest.mark.asyncio
    async def test_find_or_create_raises_when_creation_fails(self):
        recorder = Recorder(
            httpx.Response(200, json=[]),
            httpx.Response(422, json={"erro": "telefone inválido"}),
        )

        with pytest.raises(CustomerNotFoundError):
            await _client(recorder).find_or_create_customer("123", "Ana")


class TestAvailability:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "date,time,reason",
        [
            ("amanhã", "14:00", "Data/horário inválidos"),
            ("2025-03-11", "14:00", "Horário já passou, tente um horário futuro"),
            ("2025-03-16", "14:00", "Atendemos de terça a sábado"),
            ("2025-03-17", "14:00", "Atendemos de terça a sábado"),
            ("2025-03-14", "09:30", "Horário fora do funcionamento (10h às 19h)"),
            ("2025-03-14", "19:00", "Horário fora do funcionamento (10h às 19h)"),
        ],
    )
    async def test_business_rules(self, fixed_now, date, time, reason):
        recorder = Recorder(httpx.Response(200, json={"agendamentos": []}))

        result = await _client(recorder).check_availability(date, time, 101, 40)

        assert result.available is False
        assert result.reason == reason
        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_conflict_with_existing_booking(self, fixed_now):
        recorder = Recorder(
            httpx.Response(
                200,
                json={"agendamentos": [{"dataHoraInicio": "2025-03-14T13:30:00", "duracaoEmMinutos": 60}]},
            )
        )

        result = await _client(recorder).check_availability("2025-03-14", "14:00", 101, 40)

        assert result.available is False
        assert result.reason == "Conflito com agendamento existente às 13:30"
        request = recorder.requests[0]
        assert request.url.path == "/v1/agendamentos/profissionais/2025-03-14"
        assert request.url.params["servicoId"] == "101"
        assert request.url.params["servicoDuracao"] == "40"

    @pytest.mark.asyncio
    async def test_adjacent_booking_is_not_a_conflict(self, fixed_now):
        recorder = Recorder(
            httpx.Response(
                200,
                json=[
                    {"dataHoraInicio": "2025-03-14T13:00:00-03:00", "duracaoEmMinutos": 60},
                    {"dataHoraInicio": "2025-03-14T14:40:00", "duracaoEmMinutos": 30},
                    {"inicio": None, "duracao": 30},
                ],
            )
        )

        result = await _client(recorder).check_availability("2025-03-14", "14:00", 101, 40)

        assert result.available is True


class TestCreateBooking:
    @pytest.mark.asyncio
    async def test_sends_idempotency_key(self):
        recorder = Recorder(httpx.Response(201, json={"id": "bk-1"}))
        start = TZ.localize(datetime(2025, 3, 14, 14, 0))

        response = await _client(recorder).create_booking(
            service_id=101,
            customer_id="77",
            start=start,
            duration_minutes=40,
            price=35.0,
            idempotency_key="ag:5571988887777:101:2025-03-14T14:00:00-03:00",
            notes="Agendado via WhatsApp",
        )

        assert response == {"id": "bk-1"}
        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/v1/agendamentos"
        assert request.headers["Idempotency-Key"] == "ag:5571988887777:101:2025-03-14T14:00:00-03:00"
        body = json.loads(request.content)
        assert body["servicoId"] == 101
        assert body["clienteId"] == "77"
        assert body["dataHoraInicio"] == "2025-03-14T14:00:00-03:00"
        assert body["observacoes"] == "Agendado via WhatsApp"

    @pytest.mark.asyncio
    async def test_empty_body_is_returned_as_empty_dict(self):
        recorder = Recorder(httpx.Response(204))
        start = TZ.localize(datetime(2025, 3, 14, 14, 0))

        response = await _client(recorder).create_booking(
            service_id=101,
            customer_id="77",
            start=start,
            duration_minutes=40,
            price=35.0,
            idempotency_key="k",
        )

        assert response == {}
