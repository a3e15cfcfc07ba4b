"""
HTTP client for the booking backend (Trinks-style REST API).
"""

import asyncio
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

import httpx
import pytz

from ...config import get_settings
from ...core.exceptions import BookingBackendError, CustomerNotFoundError
from ...core.models import AvailabilityResult
from ...utils.date import combine_date_time
from ...utils.logging import get_logger

logger = get_logger("salon.backend")

_RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class BookingBackendClient:
    """Service for handling booking backend calls."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = get_settings()
        self.base_url = self.settings.booking_api_base.rstrip("/")
        self.timeout = self.settings.booking_timeout
        self.max_retries = self.settings.booking_max_retries
        self.tz = pytz.timezone(self.settings.timezone)
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.settings.booking_api_key:
            headers["X-Api-Key"] = self.settings.booking_api_key
        if self.settings.booking_establishment_id:
            headers["estabelecimentoId"] = str(self.settings.booking_establishment_id)
        return headers

    async def _make_request(
        self,
        method: str,
        path: str,
        json: Optional[Dict] = None,
        params: Optional[Dict] = None,
        headers: Optional[Dict] = None,
    ) -> Any:
        """Make HTTP request with retry and error mapping."""
        url = f"{self.base_url}{path}"
        merged = {**self._headers(), **(headers or {})}
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                async with httpx.AsyncClient(
                    timeout=self.timeout, transport=self._transport
                ) as client:
                    response = await client.request(
                        method=method,
                        url=url,
                        json=json,
                        params=params,
                        headers=merged,
                    )
                    response.raise_for_status()
                    if not response.content:
                        return {}
                    return response.json()
            except httpx.TimeoutException as e:
                last_error = BookingBackendError("Request timed out")
                last_error.__cause__ = e
            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                if status_code not in _RETRYABLE_STATUS:
                    raise BookingBackendError(f"HTTP error {status_code}") from e
                last_error = BookingBackendError(f"HTTP error {status_code}")
                last_error.__cause__ = e
            except httpx.HTTPError as e:
                last_error = BookingBackendError(f"Request failed: {e}")
                last_error.__cause__ = e
            except ValueError as e:
                raise BookingBackendError(f"Invalid JSON from backend: {e}") from e

            if attempt < self.max_retries:
                delay = min(0.5 * 2 ** (attempt - 1), 4.0)
                logger.warning(
                    f"backend {method} {path} failed (attempt {attempt}/{self.max_retries}): "
                    f"{last_error}; retrying in {delay:.1f}s"
                )
                await asyncio.sleep(delay)

        raise last_error or BookingBackendError("Request failed")

    # Customers

    async def find_customers(self, phone: str) -> List[Dict[str, Any]]:
        """Look up customers by phone number."""
        result = await self._make_request("GET", "/v1/clientes", params={"telefone": phone})
        return _items(result)

    async def create_customer(self, name: str, phone: str) -> Dict[str, Any]:
        """Create a minimal customer record."""
        return await self._make_request(
            "POST", "/v1/clientes", json={"nome": name, "telefone": phone}
        )

    async def find_or_create_customer(
        self, phone: str, name_hint: Optional[str] = None
    ) -> Dict[str, Any]:
        """Return the first customer with ``phone``, creating one if none exists."""
        try:
            found = await self.find_customers(phone)
        except BookingBackendError as e:
            logger.warning(f"customer lookup failed for {phone}: {e}")
            found = []

        for customer in found:
            if isinstance(customer, dict) and customer.get("id"):
                return customer

        try:
            created = await self.create_customer(name_hint or f"Cliente {phone}", phone)
        except BookingBackendError as e:
            raise CustomerNotFoundError(
                f"Could not find or create customer for {phone}"
            ) from e
        if not isinstance(created, dict) or not created.get("id"):
            raise CustomerNotFoundError(f"Customer creation returned no id for {phone}")
        return created

    # Catalog

    async def search_services(self, name: str) -> List[Dict[str, Any]]:
        """Search the remote catalog for customer-visible services."""
        result = await self._make_request(
            "GET",
            "/v1/servicos",
            params={"nome": name, "somenteVisiveisCliente": "true"},
        )
        return _items(result)

    # Agenda

    async def get_agenda(
        self, date: str, service_id: int, duration_minutes: int
    ) -> Dict[str, Any]:
        """Fetch appointments already booked on ``date``."""
        result = await self._make_request(
            "GET",
            f"/v1/agendamentos/profissionais/{date}",
            params={"servicoId": service_id, "servicoDuracao": duration_minutes},
        )
        return result if isinstance(result, dict) else {"agendamentos": result or []}

    async def check_availability(
        self, date: str, time: str, service_id: int, duration_minutes: int
    ) -> AvailabilityResult:
        """Apply opening hours and look for overlapping appointments."""
        start = combine_date_time(date, time, self.tz)
        if start is None:
            return AvailabilityResult(available=False, reason="Data/horário inválidos")

        if start <= datetime.now(self.tz):
            return AvailabilityResult(
                available=False, reason="Horário já passou, tente um horário futuro"
            )
        if start.weekday() not in self.settings.business_weekdays:
            return AvailabilityResult(available=False, reason="Atendemos de terça a sábado")

        open_hour = self.settings.business_open_hour
        close_hour = self.settings.business_close_hour
        if start.hour < open_hour or start.hour >= close_hour:
            return AvailabilityResult(
                available=False,
                reason=f"Horário fora do funcionamento ({open_hour}h às {close_hour}h)",
            )

        agenda = await self.get_agenda(date, service_id, duration_minutes)
        end = start + timedelta(minutes=duration_minutes)
        for booked in agenda.get("agendamentos") or []:
            booked_start = self._parse_instant(
                booked.get("dataHoraInicio") or booked.get("inicio") or booked.get("start")
            )
            booked_minutes = _positive_int(
                booked.get("duracaoEmMinutos") or booked.get("duracao") or booked.get("duration")
            )
            if booked_start is None or not booked_minutes:
                continue
            booked_end = booked_start + timedelta(minutes=booked_minutes)
            if start < booked_end and end > booked_start:
                return AvailabilityResult(
                    available=False,
                    reason=f"Conflito com agendamento existente às {booked_start.strftime('%H:%M')}",
                )

        return AvailabilityResult(available=True)

    # Bookings

    async def create_booking(
        self,
        *,
        service_id: int,
        customer_id: str,
        start: datetime,
        duration_minutes: int,
        price: float,
        idempotency_key: str,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create an appointment. The caller decides whether the answer confirms it."""
        payload = {
            "servicoId": service_id,
            "clienteId": customer_id,
            "dataHoraInicio": start.isoformat(),
            "duracaoEmMinutos": duration_minutes,
            "valor": price,
            "confirmado": True,
        }
        if notes:
            payload["observacoes"] = notes
        result = await self._make_request(
            "POST",
            "/v1/agendamentos",
            json=payload,
            headers={"Idempotency-Key": idempotency_key},
        )
        return result if isinstance(result, dict) else {}

    def _parse_instant(self, value: Any) -> Optional[datetime]:
        if not value:
            return None
        try:
            parsed = datetime.fromisoformat(str(value))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            return self.tz.localize(parsed)
        return parsed.astimezone(self.tz)


def _items(result: Any) -> List[Dict[str, Any]]:
    """Unwrap list payloads that may come bare or under ``data``/``items``."""
    if isinstance(result, list):
        return [r for r in result if isinstance(r, dict)]
    if isinstance(result, dict):
        for key in ("data", "items"):
            value = result.get(key)
            if isinstance(value, list):
                return [r for r in value if isinstance(r, dict)]
    return []


def _positive_int(value: Any) -> int:
    try:
        number = int(float(value))
    except (TypeError, ValueError):
        return 0
    return number if number > 0 else 0
