"""
Applications and bookings.

CONCURRENCY STRATEGY: single atomic confirm, no retry
=====================================================

Problem:
  Two admins confirm two different applications for the same slot at the
  same moment. Both read "slot OPEN, no booking", both write a booking.
  Result: the slot is double-booked.

Solution:
  The whole confirmation (booking insert, slot OPEN -> CLOSED, winning
  application -> CONFIRMED, competing applications -> REJECTED) is one call
  to ProgrammingStore.confirm_booking, which the store executes atomically
  behind a per-slot uniqueness guarantee (partial unique index in SQL,
  insert-if-absent under a lock in memory).

  Exactly one caller wins. Every other caller gets AlreadyBooked, which is
  surfaced as-is: retrying cannot succeed because the slot is now closed.

  Notifications are published only after the store call returned, so a
  broker outage can never roll back or fail a confirmation.
"""

import time
from typing import Any, Optional

from stagebook.core.config import get_settings
from stagebook.core.exceptions import (
    AlreadyBooked,
    ApplicationNotFound,
    BookingNotFound,
    DuplicateApplication,
    InvalidOption,
    NotPending,
    SchedulingError,
    SlotNotOpen,
    StorageFailure,
)
from stagebook.core.logging import get_logger
from stagebook.core.metrics import confirm_latency, record_application, record_confirm_attempt
from stagebook.domain import (
    Application,
    ApplicationStatus,
    Booking,
    EffectiveConditions,
    FeeOption,
    Program,
    ProgramType,
    Slot,
)
from stagebook.services import events as facts
from stagebook.services.conditions_service import resolve_for_slot
from stagebook.services.interfaces import EventPublisher, NullPublisher, ProgrammingStore
from stagebook.services.slot_service import get_program_or_404, get_slot_or_404

logger = get_logger(__name__)


def offers_artist_choice(program: Program) -> bool:
    remuneration = program.conditions.remuneration
    return program.program_type is ProgramType.MULTI_DATES and remuneration.artist_choice


def _match_option(program: Program, option: Optional[FeeOption]) -> Optional[FeeOption]:
    """
    The program's own option matching the requested label.

    Artist-choice programs require one of their options; other programs
    accept none.
    """
    if not offers_artist_choice(program):
        if option is not None:
            raise InvalidOption(details={"option": option.label})
        return None

    if option is None:
        raise InvalidOption(
            "Merci de choisir une option de rémunération.",
            details={"options": [o.label for o in program.conditions.remuneration.options]},
        )
    wanted = option.label.strip().casefold()
    for candidate in program.conditions.remuneration.options:
        if candidate.label.strip().casefold() == wanted:
            return candidate
    raise InvalidOption(details={"option": option.label})


def build_snapshot(program: Program, slot: Slot, effective: EffectiveConditions) -> dict[str, Any]:
    """Conditions frozen on the booking; enough to rebuild its roadmap later."""
    return {
        "effective": effective.to_json(),
        "program": program.conditions.to_json(),
        "override": slot.override.to_json() if slot.override else {},
    }


async def get_application_or_404(store: ProgrammingStore, application_id: int) -> Application:
    application = await store.get_application(application_id)
    if application is None:
        raise ApplicationNotFound(application_id)
    return application


async def get_booking_or_404(store: ProgrammingStore, booking_id: int) -> Booking:
    booking = await store.get_booking(booking_id)
    if booking is None:
        raise BookingNotFound(booking_id)
    return booking


async def apply(
    store: ProgrammingStore,
    slot_id: int,
    artist_id: str,
    option: Optional[FeeOption] = None,
    *,
    events: Optional[EventPublisher] = None,
) -> Application:
    """
    Record an artist's application to an open slot.

    Raises SlotNotOpen, DuplicateApplication or InvalidOption.
    """
    events = events or NullPublisher()
    slot = await get_slot_or_404(store, slot_id)
    if not slot.is_open:
        record_application("slot_closed")
        raise SlotNotOpen(details={"slot_id": slot_id, "status": slot.status.value})

    program = await get_program_or_404(store, slot.program_id)
    chosen = _match_option(program, option)

    try:
        application = await store.insert_application(slot_id, artist_id, chosen)
    except DuplicateApplication:
        record_application("duplicate")
        logger.info("application_duplicate", slot_id=slot_id, artist_id=artist_id)
        raise

    record_application("created")
    logger.info(
        "application_created",
        application_id=application.id,
        slot_id=slot_id,
        artist_id=artist_id,
        option=chosen.label if chosen else None,
    )
    await events.publish(facts.application_received(slot, application))
    return application


async def withdraw_application(
    store: ProgrammingStore,
    application_id: int,
    artist_id: Optional[str] = None,
    *,
    events: Optional[EventPublisher] = None,
) -> Application:
    """
    Withdraw a pending application.

    When artist_id is given the application must belong to that artist.
    Raises NotPending once the application was decided.
    """
    events = events or NullPublisher()
    application = await get_application_or_404(store, application_id)
    if artist_id is not None and application.artist_id != artist_id:
        raise ApplicationNotFound(application_id)
    if application.status is not ApplicationStatus.PENDING:
        raise NotPending(details={"application_id": application_id, "status": application.status.value})

    if not await store.transition_application(
        application_id, ApplicationStatus.PENDING, ApplicationStatus.CANCELLED
    ):
        raise NotPending(details={"application_id": application_id})

    record_application("withdrawn")
    logger.info("application_withdrawn", application_id=application_id, slot_id=application.slot_id)
    withdrawn = await get_application_or_404(store, application_id)
    await events.publish(facts.application_withdrawn(withdrawn))
    return withdrawn


async def confirm(
    store: ProgrammingStore,
    slot_id: int,
    application_id: int,
    *,
    events: Optional[EventPublisher] = None,
) -> Booking:
    """
    Confirm one application for a slot.

    Losers of a concurrent confirmation get AlreadyBooked. The booking
    carries a snapshot of the effective conditions at this moment.
    """
    events = events or NullPublisher()
    start_time = time.perf_counter()
    try:
        slot = await get_slot_or_404(store, slot_id)
        program = await get_program_or_404(store, slot.program_id)
        effective = resolve_for_slot(program, slot, get_settings().DEFAULT_CURRENCY)
        snapshot = build_snapshot(program, slot, effective)

        booking, rejected = await store.confirm_booking(slot_id, application_id, snapshot)
    except AlreadyBooked:
        record_confirm_attempt("conflict")
        logger.info("confirm_lost_race", slot_id=slot_id, application_id=application_id)
        raise
    except StorageFailure:
        record_confirm_attempt("error")
        logger.error("confirm_failed", slot_id=slot_id, application_id=application_id)
        raise
    except SchedulingError as e:
        record_confirm_attempt("rejected")
        logger.info("confirm_rejected", slot_id=slot_id, application_id=application_id, code=e.code)
        raise
    finally:
        confirm_latency.observe(time.perf_counter() - start_time)

    record_confirm_attempt("success")
    logger.info(
        "booking_confirmed",
        booking_id=booking.id,
        slot_id=slot_id,
        application_id=application_id,
        artist_id=booking.artist_id,
        rejected=len(rejected),
    )

    await facts.publish_all(
        events,
        [facts.booking_confirmed(slot, booking)]
        + [facts.application_rejected(slot, application) for application in rejected],
    )
    return booking


async def cancel_booking(
    store: ProgrammingStore,
    booking_id: int,
    *,
    events: Optional[EventPublisher] = None,
) -> Booking:
    """Administrative cancellation; the slot re-opens for new applications."""
    events = events or NullPublisher()
    booking = await store.cancel_booking(booking_id)
    slot = await get_slot_or_404(store, booking.slot_id)
    logger.info("booking_cancelled", booking_id=booking_id, slot_id=booking.slot_id)
    await events.publish(facts.booking_cancelled(slot, booking))
    return booking


async def list_applications(store: ProgrammingStore, slot_id: int) -> list[Application]:
    await get_slot_or_404(store, slot_id)
    return await store.list_applications(slot_id)


async def list_artist_bookings(store: ProgrammingStore, artist_id: str) -> list[Booking]:
    """Newest first."""
    return await store.list_bookings_for_artist(artist_id)
