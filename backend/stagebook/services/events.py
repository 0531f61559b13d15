"""
Builders for the facts handed to the EventPublisher.

Payloads carry identifiers and dates only; anything an email needs beyond
that is looked up by the notification collaborator.
"""

from typing import Sequence

from stagebook.domain import Application, Booking, Slot
from stagebook.services.interfaces.events import (
    APPLICATION_RECEIVED,
    APPLICATION_REJECTED,
    APPLICATION_WITHDRAWN,
    BOOKING_CANCELLED,
    BOOKING_CONFIRMED,
    SLOT_CANCELLED,
    WEEKS_GENERATED,
    DomainEvent,
    EventPublisher,
)


def _slot_fields(slot: Slot) -> dict:
    return {
        "slot_id": slot.id,
        "program_id": slot.program_id,
        "start_date": slot.start_date.isoformat(),
        "end_date": slot.end_date.isoformat(),
    }


def application_received(slot: Slot, application: Application) -> DomainEvent:
    return DomainEvent(APPLICATION_RECEIVED, {
        **_slot_fields(slot),
        "application_id": application.id,
        "artist_id": application.artist_id,
    })


def application_withdrawn(application: Application) -> DomainEvent:
    return DomainEvent(APPLICATION_WITHDRAWN, {
        "slot_id": application.slot_id,
        "application_id": application.id,
        "artist_id": application.artist_id,
    })


def booking_confirmed(slot: Slot, booking: Booking) -> DomainEvent:
    return DomainEvent(BOOKING_CONFIRMED, {
        **_slot_fields(slot),
        "booking_id": booking.id,
        "application_id": booking.application_id,
        "artist_id": booking.artist_id,
    })


def application_rejected(slot: Slot, application: Application) -> DomainEvent:
    return DomainEvent(APPLICATION_REJECTED, {
        **_slot_fields(slot),
        "application_id": application.id,
        "artist_id": application.artist_id,
    })


def booking_cancelled(slot: Slot, booking: Booking) -> DomainEvent:
    return DomainEvent(BOOKING_CANCELLED, {
        **_slot_fields(slot),
        "booking_id": booking.id,
        "artist_id": booking.artist_id,
    })


def slot_cancelled(slot: Slot, pending_artist_ids: Sequence[str]) -> DomainEvent:
    return DomainEvent(SLOT_CANCELLED, {
        **_slot_fields(slot),
        "pending_artist_ids": list(pending_artist_ids),
    })


def weeks_generated(program_id: int, slots: Sequence[Slot]) -> DomainEvent:
    return DomainEvent(WEEKS_GENERATED, {
        "program_id": program_id,
        "count": len(slots),
        "first_week": slots[0].start_date.isoformat(),
        "last_week": slots[-1].start_date.isoformat(),
    })


async def publish_all(events: EventPublisher, batch: Sequence[DomainEvent]) -> None:
    """Publish in order; used after a commit that produced several facts."""
    for event in batch:
        await events.publish(event)
