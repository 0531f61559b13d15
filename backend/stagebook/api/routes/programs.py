"""
Program endpoints: records, lifecycle, baseline conditions and slot generation.
"""

from fastapi import APIRouter, Depends, Query, status

from stagebook.api.deps import get_events, get_store
from stagebook.domain import ConditionsOverride
from stagebook.schemas.program import ConditionsPayload, ProgramCreate, ProgramResponse, ProgramStatusUpdate
from stagebook.schemas.slot import DateSlotCreate, GenerateWeeksRequest, SlotResponse
from stagebook.services import program_service, slot_service
from stagebook.services.interfaces import EventPublisher, ProgrammingStore

router = APIRouter(prefix="/programs", tags=["Programs"])


@router.post("", response_model=ProgramResponse, status_code=status.HTTP_201_CREATED)
async def create_program(
    data: ProgramCreate,
    store: ProgrammingStore = Depends(get_store),
):
    program = await program_service.create_program(
        store,
        data.title,
        data.program_type,
        data.conditions,
        data.status,
    )
    return ProgramResponse.from_domain(program)


@router.get("/{program_id}", response_model=ProgramResponse)
async def get_program(program_id: int, store: ProgrammingStore = Depends(get_store)):
    program = await program_service.get_program(store, program_id)
    return ProgramResponse.from_domain(program)


@router.patch("/{program_id}/status", response_model=ProgramResponse)
async def set_program_status(
    program_id: int,
    data: ProgramStatusUpdate,
    store: ProgrammingStore = Depends(get_store),
):
    """Toggle the lifecycle status. Programs are archived, never deleted."""
    program = await program_service.set_program_status(store, program_id, data.status)
    return ProgramResponse.from_domain(program)


@router.put("/{program_id}/conditions", response_model=ProgramResponse)
async def update_program_conditions(
    program_id: int,
    data: ConditionsPayload,
    store: ProgrammingStore = Depends(get_store),
):
    program = await program_service.update_program_conditions(store, program_id, data.conditions)
    return ProgramResponse.from_domain(program)


@router.post(
    "/{program_id}/generate-weeks",
    response_model=list[SlotResponse],
    status_code=status.HTTP_201_CREATED,
)
async def generate_weeks(
    program_id: int,
    data: GenerateWeeksRequest,
    store: ProgrammingStore = Depends(get_store),
    events: EventPublisher = Depends(get_events),
):
    """
    Generate Sunday-to-Sunday weeks for a weekly residency.

    The whole batch is rejected with 409 if any week overlaps an existing slot.
    """
    slots = await slot_service.generate_program_weeks(
        store, program_id, data.start_date, data.end_date, events=events
    )
    return [SlotResponse.from_domain(slot) for slot in slots]


@router.post("/{program_id}/dates", response_model=SlotResponse, status_code=status.HTTP_201_CREATED)
async def add_date(
    program_id: int,
    data: DateSlotCreate,
    store: ProgrammingStore = Depends(get_store),
):
    override = ConditionsOverride.from_json(data.conditions_override) if data.conditions_override else None
    slot = await slot_service.add_date_slot(store, program_id, data.date, override)
    return SlotResponse.from_domain(slot)


@router.get("/{program_id}/slots", response_model=list[SlotResponse])
async def list_slots(
    program_id: int,
    include_cancelled: bool = Query(True),
    store: ProgrammingStore = Depends(get_store),
):
    await program_service.get_program(store, program_id)
    slots = await store.list_slots(program_id, include_cancelled=include_cancelled)
    return [SlotResponse.from_domain(slot) for slot in slots]
