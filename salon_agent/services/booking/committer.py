"""
Availability checks and exactly-once style booking commits.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from ...core.enums import AttemptStatus
from ...core.models import AvailabilityResult, BookingAttempt, BookingResult, CatalogService
from ...utils.event_log import log_event
from ...utils.logging import get_logger
from ..external import BookingBackendClient
from .audit import AttemptAuditLog

logger = get_logger("salon.booking")

AVAILABILITY_ERROR_REASON = "Não consegui consultar a agenda agora"
NO_BOOKING_ID = "backend returned no booking id"


def build_idempotency_key(phone: str, service_id: int, start: datetime) -> str:
    """Stable key for one logical booking: same phone, service and instant."""
    return f"ag:{phone}:{service_id}:{start.isoformat()}"


class BookingCommitter:
    """Wraps the booking backend so failures never escape as exceptions."""

    def __init__(
        self,
        backend: BookingBackendClient,
        audit_log: AttemptAuditLog,
        tenant_id: str,
    ):
        self.backend = backend
        self.audit_log = audit_log
        self.tenant_id = tenant_id

    async def check_availability(
        self, date: str, time: str, service_id: int, duration_minutes: int
    ) -> AvailabilityResult:
        try:
            return await self.backend.check_availability(date, time, service_id, duration_minutes)
        except Exception as e:
            logger.error(f"availability check failed for service {service_id} at {date} {time}: {e}")
            return AvailabilityResult(available=False, reason=AVAILABILITY_ERROR_REASON)

    async def ensure_customer(self, phone: str, name_hint: Optional[str] = None) -> str:
        """Return the backend customer id for ``phone``; raises ExternalAPIError."""
        customer = await self.backend.find_or_create_customer(phone, name_hint)
        return str(customer["id"])

    async def commit_booking(
        self,
        *,
        phone: str,
        service: CatalogService,
        customer_id: Optional[str],
        start: datetime,
    ) -> BookingResult:
        """Create the booking and record the attempt before returning.

        Only a response carrying a non-empty ``id`` counts as confirmed.
        """
        key = build_idempotency_key(phone, service.id, start)
        payload: Dict[str, Any] = {
            "servicoId": service.id,
            "clienteId": customer_id,
            "dataHoraInicio": start.isoformat(),
            "duracaoEmMinutos": service.duration_minutes,
            "valor": service.price,
        }

        if customer_id is None:
            error = "customer could not be resolved"
            await self._record(phone, service, None, start, key, payload, None, None, error)
            return BookingResult(confirmed=False, idempotency_key=key, error=error)

        try:
            response = await self.backend.create_booking(
                service_id=service.id,
                customer_id=customer_id,
                start=start,
                duration_minutes=service.duration_minutes,
                price=service.price,
                idempotency_key=key,
                notes=f"Agendado via WhatsApp ({phone})",
            )
        except Exception as e:
            logger.error(f"create booking failed for {phone} ({key}): {e}")
            await self._record(phone, service, customer_id, start, key, payload, None, None, str(e))
            return BookingResult(confirmed=False, idempotency_key=key, error=str(e))

        raw_id = response.get("id")
        booking_id = str(raw_id).strip() if raw_id not in (None, "") else ""
        if not booking_id:
            error = NO_BOOKING_ID
            logger.error(f"create booking for {phone} ({key}): {error}")
            await self._record(phone, service, customer_id, start, key, payload, response, None, error)
            return BookingResult(confirmed=False, idempotency_key=key, error=error)

        await self._record(phone, service, customer_id, start, key, payload, response, booking_id, None)
        logger.info(f"booking {booking_id} confirmed for {phone} ({key})")
        return BookingResult(confirmed=True, booking_id=booking_id, idempotency_key=key)

    async def _record(
        self,
        phone: str,
        service: CatalogService,
        customer_id: Optional[str],
        start: datetime,
        key: str,
        payload: Dict[str, Any],
        response: Optional[Dict[str, Any]],
        booking_id: Optional[str],
        error: Optional[str],
    ) -> None:
        attempt = BookingAttempt(
            tenant_id=self.tenant_id,
            phone=phone,
            service_id=service.id,
            customer_id=customer_id,
            start=start.isoformat(),
            duration_minutes=service.duration_minutes,
            price=service.price,
            confirmed=booking_id is not None,
            notes=error,
            idempotency_key=key,
            payload=payload,
            response=response,
            booking_id=booking_id,
            status=AttemptStatus.SUCCESS if booking_id else AttemptStatus.ERROR,
        )
        log_event(
            "booking_attempt",
            {"idempotency_key": key, "status": attempt.status.value, "booking_id": booking_id},
        )
        try:
            await self.audit_log.record(attempt)
        except Exception:
            logger.exception(f"audit log write failed for {key}")
