"""
Slot endpoints: effective conditions, overrides, cancellation, applications
and the concurrency-safe confirmation.
"""

from fastapi import APIRouter, Depends, status

from stagebook.api.deps import get_events, get_store
from stagebook.domain import ConditionsOverride
from stagebook.schemas.booking import ApplicationCreate, ApplicationResponse, BookingResponse, ConfirmRequest
from stagebook.schemas.slot import EffectiveConditionsResponse, OverridePayload, SlotResponse
from stagebook.services import booking_service, slot_service
from stagebook.services.interfaces import EventPublisher, ProgrammingStore

router = APIRouter(prefix="/slots", tags=["Slots"])


@router.get("/{slot_id}", response_model=SlotResponse)
async def get_slot(slot_id: int, store: ProgrammingStore = Depends(get_store)):
    slot = await slot_service.get_slot_or_404(store, slot_id)
    return SlotResponse.from_domain(slot)


@router.get("/{slot_id}/conditions", response_model=EffectiveConditionsResponse)
async def get_conditions(slot_id: int, store: ProgrammingStore = Depends(get_store)):
    """Conditions as they apply to this slot, resolved on every read."""
    effective = await slot_service.get_effective_conditions(store, slot_id)
    return EffectiveConditionsResponse.from_domain(slot_id, effective)


@router.put("/{slot_id}/override", response_model=SlotResponse)
async def set_override(
    slot_id: int,
    data: OverridePayload,
    store: ProgrammingStore = Depends(get_store),
):
    override = ConditionsOverride.from_json(data.conditions_override) if data.conditions_override else None
    slot = await slot_service.set_slot_override(store, slot_id, override)
    return SlotResponse.from_domain(slot)


@router.post("/{slot_id}/cancel", response_model=SlotResponse)
async def cancel_slot(
    slot_id: int,
    store: ProgrammingStore = Depends(get_store),
    events: EventPublisher = Depends(get_events),
):
    slot = await slot_service.cancel_slot(store, slot_id, events=events)
    return SlotResponse.from_domain(slot)


@router.get("/{slot_id}/applications", response_model=list[ApplicationResponse])
async def list_applications(slot_id: int, store: ProgrammingStore = Depends(get_store)):
    applications = await booking_service.list_applications(store, slot_id)
    return [ApplicationResponse.from_domain(a) for a in applications]


@router.post(
    "/{slot_id}/applications",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def apply(
    slot_id: int,
    data: ApplicationCreate,
    store: ProgrammingStore = Depends(get_store),
    events: EventPublisher = Depends(get_events),
):
    application = await booking_service.apply(
        store,
        slot_id,
        data.artist_id,
        data.option.to_domain() if data.option else None,
        events=events,
    )
    return ApplicationResponse.from_domain(application)


@router.post("/{slot_id}/confirm", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def confirm(
    slot_id: int,
    data: ConfirmRequest,
    store: ProgrammingStore = Depends(get_store),
    events: EventPublisher = Depends(get_events),
):
    """
    Confirm one application for the slot.

    Under concurrent confirmations exactly one request gets 201; the others
    get 409 AlreadyBooked and should not be retried.
    """
    booking = await booking_service.confirm(store, slot_id, data.application_id, events=events)
    return BookingResponse.from_domain(booking)
