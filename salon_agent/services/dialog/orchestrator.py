"""
Turn handler and booking state machine.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional
from uuid import uuid4

import pytz

from ...config import Settings, get_settings
from ...core.enums import DialogStep, Intent, MessageRole
from ...core.exceptions import BookingFlowError
from ...core.models import (
    Ambiguous,
    ContactInfo,
    ConversationState,
    ExtractionResult,
    Found,
)
from ...utils.date import DateParser, TimeParser, combine_date_time
from ...utils.event_log import log_event, set_turn_id
from ...utils.logging import get_logger
from ...utils.phone import PhoneNumberParser
from ...utils.text import TextProcessor
from ..booking import BookingCommitter
from ..booking.committer import NO_BOOKING_ID
from ..catalog import LocalCatalog, ServiceResolver
from ..conversation import ConversationLocks, ConversationStateStore, append_message
from ..nlu import AssistantResponder, IntentExtractor
from . import replies
from .slots import SlotController

logger = get_logger("salon.dialog")

# Awaited slot name -> BookingSlots field
_AWAITING_FIELD = {
    "serviceName": "service_name",
    "date": "date",
    "time": "time",
    "name": "name",
    "phone": "phone",
}

_EXTRACTED_FIELDS = ("service_name", "date", "time", "name", "phone")

_REGISTRATION_STEPS = (DialogStep.REGISTERING_NAME, DialogStep.REGISTERING_PHONE)

# States that operate on an already resolved service.
_NEEDS_SERVICE = frozenset(
    {
        DialogStep.COLLECTING_DATE,
        DialogStep.COLLECTING_TIME,
        DialogStep.COLLECTING_PHONE,
        DialogStep.VERIFYING_AVAILABILITY,
        DialogStep.CONFIRMING,
    }
)


@dataclass
class StepOutcome:
    """Next state, plus the reply when the turn stops there."""
    step: DialogStep
    reply: Optional[str] = None


@dataclass
class _Turn:
    state: ConversationState
    controller: SlotController
    raw_text: str

    @property
    def first_name(self) -> Optional[str]:
        info = self.state.contact_info
        return info.first_name if info else None


class DialogOrchestrator:
    """Runs one inbound message through extraction, slot filling and booking."""

    def __init__(
        self,
        *,
        store: ConversationStateStore,
        extractor: IntentExtractor,
        responder: AssistantResponder,
        resolver: ServiceResolver,
        catalog: LocalCatalog,
        committer: BookingCommitter,
        locks: Optional[ConversationLocks] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.extractor = extractor
        self.responder = responder
        self.resolver = resolver
        self.catalog = catalog
        self.committer = committer
        self.locks = locks or ConversationLocks()
        self.tenant_id = self.settings.tenant_id
        self.tz = pytz.timezone(self.settings.timezone)
        self.date_parser = DateParser(self.settings.timezone)
        self.time_parser = TimeParser()

        self._handlers: Dict[DialogStep, Callable[[_Turn], Awaitable[StepOutcome]]] = {
            DialogStep.INITIAL: self._on_initial,
            DialogStep.COLLECTING_SERVICE: self._on_collecting_service,
            DialogStep.COLLECTING_DATE: self._on_collecting_date,
            DialogStep.COLLECTING_TIME: self._on_collecting_time,
            DialogStep.COLLECTING_PHONE: self._on_collecting_phone,
            DialogStep.VERIFYING_AVAILABILITY: self._on_verifying_availability,
            DialogStep.CONFIRMING: self._on_confirming,
        }

    async def handle_turn(
        self,
        raw_text: str,
        phone: Optional[str] = None,
        contact_info: Optional[ContactInfo] = None,
    ) -> str:
        """Process one inbound message and return the reply text.

        Turns for the same (tenant, phone) are serialized; the state is
        written once, after the outcome of the turn is known.
        """
        key = PhoneNumberParser.state_key(phone)
        async with self.locks.hold(self.tenant_id, key):
            set_turn_id(uuid4().hex)
            return await self._run_turn(key, raw_text or "", contact_info)

    async def _run_turn(
        self, key: str, raw_text: str, contact_info: Optional[ContactInfo]
    ) -> str:
        state = await self.store.get(self.tenant_id, key)
        if state is None:
            state = ConversationState(tenant_id=self.tenant_id, phone=key)
            logger.info(f"new conversation {self.tenant_id}:{key}")

        if contact_info is not None:
            state.contact_info = contact_info
        if key != PhoneNumberParser.UNKNOWN and not state.slots.phone:
            state.slots.phone = key
        state.last_text = raw_text
        state.message_history = append_message(
            state.message_history, MessageRole.USER, raw_text, self.settings.history_max_messages
        )
        log_event("turn_started", {"phone": key, "step": state.step.value})

        turn = _Turn(state=state, controller=SlotController(state), raw_text=raw_text)
        extraction = await self.extractor.extract(raw_text)
        reply = await self._dispatch(turn, extraction)

        state.message_history = append_message(
            state.message_history, MessageRole.ASSISTANT, reply, self.settings.history_max_messages
        )
        await self.store.replace(state)
        return reply

    async def _dispatch(self, turn: _Turn, extraction: ExtractionResult) -> str:
        state = turn.state
        intent = extraction.intent
        patch = {
            name: getattr(extraction, name)
            for name in _EXTRACTED_FIELDS
            if getattr(extraction, name) is not None
        }
        if "phone" in patch:
            patch["phone"] = PhoneNumberParser.parse_customer_phone(patch["phone"])
            if patch["phone"] is None:
                del patch["phone"]

        awaiting = state.awaiting
        if awaiting is not None:
            field = _AWAITING_FIELD[awaiting]
            patch.pop(field, None)
            intent = Intent.CREATE_USER if state.step in _REGISTRATION_STEPS else Intent.SCHEDULE

            if field == "service_name" and state.slots.service_suggestions:
                choice = TextProcessor.parse_choice(turn.raw_text)
                if choice is not None:
                    suggestions = state.slots.service_suggestions
                    if not 1 <= choice <= len(suggestions):
                        return replies.invalid_choice(suggestions)
                    selected = suggestions[choice - 1]
                    patch = {
                        "selected_service": selected,
                        "service_name": selected.name,
                        "service_suggestions": [],
                    }
                else:
                    patch[field] = turn.raw_text.strip()
            elif field == "phone":
                phone = PhoneNumberParser.parse_customer_phone(turn.raw_text)
                if phone is None:
                    return (
                        replies.ask_registration_phone()
                        if intent == Intent.CREATE_USER
                        else replies.ask_phone()
                    )
                patch[field] = phone
            else:
                patch[field] = turn.raw_text.strip()

        turn.controller.apply_patch(patch)

        if intent == Intent.SCHEDULE:
            return await self._run_booking(turn)
        if intent == Intent.CREATE_USER:
            return await self._run_registration(turn)
        if intent == Intent.HOURS:
            return replies.business_hours(
                turn.first_name,
                self.settings.business_weekdays,
                self.settings.business_open_hour,
                self.settings.business_close_hour,
            )
        return await self.responder.reply(state.message_history)

    # Booking flow

    async def _run_booking(self, turn: _Turn) -> str:
        state = turn.state
        if not state.step.is_booking_step:
            turn.controller.transition(DialogStep.INITIAL)

        for _ in range(2 * len(self._handlers)):
            if state.step in _NEEDS_SERVICE and state.slots.resolved_service is None:
                turn.controller.transition(DialogStep.COLLECTING_SERVICE)
            handler = self._handlers.get(state.step)
            if handler is None:
                raise BookingFlowError(f"no handler for step {state.step.value}")
            outcome = await handler(turn)
            turn.controller.transition(outcome.step)
            if outcome.reply is not None:
                return outcome.reply

        raise BookingFlowError(f"booking flow did not settle at {state.step.value}")

    async def _on_initial(self, turn: _Turn) -> StepOutcome:
        return StepOutcome(DialogStep.COLLECTING_SERVICE)

    async def _on_collecting_service(self, turn: _Turn) -> StepOutcome:
        slots = turn.state.slots
        if slots.resolved_service is not None:
            return StepOutcome(DialogStep.COLLECTING_DATE)
        if slots.selected_service is not None:
            turn.controller.apply_patch({"resolved_service": slots.selected_service})
            return StepOutcome(DialogStep.COLLECTING_DATE)
        if not slots.service_name:
            return StepOutcome(DialogStep.COLLECTING_SERVICE, replies.ask_service(turn.first_name))

        try:
            result = await self.resolver.resolve(self.tenant_id, slots.service_name)
        except Exception:
            logger.exception(f"service resolution failed for '{slots.service_name}'")
            return StepOutcome(DialogStep.COLLECTING_SERVICE, replies.catalog_unavailable())

        if isinstance(result, Found):
            turn.controller.apply_patch(
                {"resolved_service": result.service, "service_suggestions": []}
            )
            return StepOutcome(DialogStep.COLLECTING_DATE)

        if isinstance(result, Ambiguous):
            turn.controller.apply_patch({"service_suggestions": result.suggestions})
            return StepOutcome(
                DialogStep.COLLECTING_SERVICE,
                replies.suggestion_list(result.query, result.suggestions),
            )

        turn.controller.apply_patch({"service_suggestions": []})
        if result.is_category:
            reply = replies.category_not_bookable(turn.first_name, result.query)
        else:
            reply = replies.service_not_found(result.query)
        return StepOutcome(DialogStep.COLLECTING_SERVICE, reply)

    async def _on_collecting_date(self, turn: _Turn) -> StepOutcome:
        slots = turn.state.slots
        if slots.date:
            return StepOutcome(DialogStep.COLLECTING_TIME)
        return StepOutcome(DialogStep.COLLECTING_DATE, replies.ask_date(slots.resolved_service.name))

    async def _on_collecting_time(self, turn: _Turn) -> StepOutcome:
        if turn.state.slots.time:
            return StepOutcome(DialogStep.VERIFYING_AVAILABILITY)
        return StepOutcome(DialogStep.COLLECTING_TIME, replies.ask_time())

    async def _on_collecting_phone(self, turn: _Turn) -> StepOutcome:
        if turn.state.slots.phone:
            return StepOutcome(DialogStep.VERIFYING_AVAILABILITY)
        return StepOutcome(DialogStep.COLLECTING_PHONE, replies.ask_phone())

    async def _on_verifying_availability(self, turn: _Turn) -> StepOutcome:
        slots = turn.state.slots
        date_iso = self.date_parser.parse_natural_date(slots.date)
        if date_iso is None:
            turn.controller.clear("date")
            return StepOutcome(DialogStep.COLLECTING_DATE, replies.unparsed_date())

        time_hhmm = self.time_parser.parse_natural_time(slots.time)
        start = combine_date_time(date_iso, time_hhmm, self.tz) if time_hhmm else None
        if start is None:
            turn.controller.clear("time")
            return StepOutcome(DialogStep.COLLECTING_TIME, replies.unparsed_time())

        turn.controller.apply_patch({"date": date_iso, "time": time_hhmm})

        if not slots.phone:
            return StepOutcome(DialogStep.COLLECTING_PHONE, replies.ask_phone())

        service = slots.resolved_service
        availability = await self.committer.check_availability(
            date_iso, time_hhmm, service.id, service.duration_minutes
        )
        if not availability.available:
            turn.controller.clear("time")
            return StepOutcome(DialogStep.COLLECTING_TIME, replies.unavailable(availability.reason))

        turn.controller.apply_patch({"availability_confirmed": True})
        return StepOutcome(DialogStep.CONFIRMING)

    async def _on_confirming(self, turn: _Turn) -> StepOutcome:
        slots = turn.state.slots
        service = slots.resolved_service

        try:
            known = await self.catalog.exists(self.tenant_id, service.id)
        except Exception:
            logger.exception(f"catalog check failed for service {service.id}")
            turn.controller.end_attempt(keep_service=True)
            return StepOutcome(DialogStep.ERROR, replies.booking_failed())

        if not known:
            logger.warning(f"service {service.id} missing from local catalog; asking again")
            return await self._regress_stale_service(turn)

        start = combine_date_time(slots.date, slots.time, self.tz)
        name_hint = slots.name or (
            turn.state.contact_info.display_name if turn.state.contact_info else None
        )
        try:
            customer_id: Optional[str] = await self.committer.ensure_customer(slots.phone, name_hint)
        except Exception as e:
            logger.error(f"customer lookup failed for {slots.phone}: {e}")
            customer_id = None

        result = await self.committer.commit_booking(
            phone=slots.phone, service=service, customer_id=customer_id, start=start
        )
        if not result.confirmed:
            turn.controller.end_attempt(keep_service=True)
            if result.error == NO_BOOKING_ID:
                return StepOutcome(DialogStep.ERROR, replies.booking_not_confirmed())
            return StepOutcome(DialogStep.ERROR, replies.booking_failed())

        reply = replies.booking_confirmed(service.name, slots.date, slots.time, result.booking_id)
        turn.controller.apply_patch({"last_booking_id": result.booking_id})
        turn.controller.end_attempt(keep_service=False)
        return StepOutcome(DialogStep.DONE, reply)

    async def _regress_stale_service(self, turn: _Turn) -> StepOutcome:
        slots = turn.state.slots
        service_name = slots.service_name or slots.resolved_service.name
        try:
            suggestions = await self.resolver.suggestions(self.tenant_id, service_name)
        except Exception:
            logger.exception(f"suggestion lookup failed for '{service_name}'")
            suggestions = []

        turn.controller.apply_patch(
            {
                "resolved_service": None,
                "selected_service": None,
                "availability_confirmed": False,
                "service_suggestions": suggestions,
            }
        )
        return StepOutcome(
            DialogStep.COLLECTING_SERVICE, replies.stale_service(service_name, suggestions)
        )

    # Registration flow

    async def _run_registration(self, turn: _Turn) -> str:
        slots = turn.state.slots
        if not slots.name:
            turn.controller.transition(DialogStep.REGISTERING_NAME)
            return replies.ask_full_name(turn.first_name)
        if not slots.phone:
            turn.controller.transition(DialogStep.REGISTERING_PHONE)
            return replies.ask_registration_phone()

        turn.controller.transition(DialogStep.INITIAL)
        try:
            await self.committer.ensure_customer(slots.phone, slots.name)
        except Exception as e:
            logger.error(f"registration failed for {slots.phone}: {e}")
            return replies.registration_failed()
        return replies.registration_done(turn.first_name, slots.phone)


def build_orchestrator(settings: Optional[Settings] = None, **overrides: Any) -> DialogOrchestrator:
    """Wire the default SQLite, OpenAI and HTTP collaborators."""
    from ..booking import AttemptAuditLog
    from ..external import BookingBackendClient

    settings = settings or get_settings()
    backend = overrides.pop("backend", None) or BookingBackendClient()
    catalog = overrides.pop("catalog", None) or LocalCatalog(settings.state_db_path)
    components = {
        "store": ConversationStateStore(settings.state_db_path),
        "extractor": IntentExtractor(),
        "responder": AssistantResponder(),
        "resolver": ServiceResolver(catalog, backend, settings.suggestion_limit),
        "catalog": catalog,
        "committer": BookingCommitter(
            backend, AttemptAuditLog(settings.state_db_path), settings.tenant_id
        ),
    }
    components.update(overrides)
    return DialogOrchestrator(settings=settings, **components)
