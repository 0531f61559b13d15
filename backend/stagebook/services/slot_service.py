"""
Slot lifecycle: generation, single dates, cancellation and per-slot overrides.

Overlap prevention is checked twice: candidates of one batch against each
other here, and candidates against stored slots inside the store's
insert_slots, which is all-or-nothing.
"""

from dataclasses import replace
from datetime import date
from typing import Optional, Sequence, Union

from stagebook.core.config import get_settings
from stagebook.core.exceptions import (
    InvalidProgramType,
    OverlapConflict,
    ProgramNotFound,
    SlotAlreadyBooked,
    SlotNotFound,
)
from stagebook.core.logging import get_logger
from stagebook.core.metrics import overlap_conflicts, record_slots_created
from stagebook.domain import (
    ApplicationStatus,
    ConditionsOverride,
    EffectiveConditions,
    Program,
    ProgramType,
    Slot,
    SlotDraft,
    SlotStatus,
    SlotType,
    TierRemuneration,
    WeekTier,
)
from stagebook.scheduling.calendar import format_iso, parse_date, ranges_overlap
from stagebook.scheduling.weeks import TierCalendar, WeekSeed, generate_weeks
from stagebook.services import events as facts
from stagebook.services.conditions_service import resolve_for_slot
from stagebook.services.interfaces import EventPublisher, NullPublisher, ProgrammingStore

logger = get_logger(__name__)


async def get_program_or_404(store: ProgrammingStore, program_id: int) -> Program:
    program = await store.get_program(program_id)
    if program is None:
        raise ProgramNotFound(program_id)
    return program


async def get_slot_or_404(store: ProgrammingStore, slot_id: int) -> Slot:
    slot = await store.get_slot(slot_id)
    if slot is None:
        raise SlotNotFound(slot_id)
    return slot


def _as_draft(candidate: Union[SlotDraft, WeekSeed]) -> SlotDraft:
    if isinstance(candidate, WeekSeed):
        return SlotDraft(
            slot_type=SlotType.WEEK,
            start_date=candidate.start,
            end_date=candidate.end,
            tier=candidate.tier,
        )
    return candidate


def _batch_clashes(drafts: Sequence[SlotDraft]) -> list[int]:
    """Indexes of candidates overlapping an earlier candidate of the same batch."""
    clashes = []
    for index, draft in enumerate(drafts):
        if any(ranges_overlap(*draft.span(), *earlier.span()) for earlier in drafts[:index]):
            clashes.append(index)
    return clashes


async def create_slots(
    store: ProgrammingStore,
    program_id: int,
    candidates: Sequence[Union[SlotDraft, WeekSeed]],
) -> list[Slot]:
    """
    Insert a batch of slots for one program.

    Raises OverlapConflict if any candidate intersects a non-cancelled slot
    of the program, or another candidate; nothing is inserted then.
    """
    await get_program_or_404(store, program_id)
    drafts = [_as_draft(candidate) for candidate in candidates]
    if not drafts:
        return []

    clashes = _batch_clashes(drafts)
    if clashes:
        overlap_conflicts.inc()
        logger.warning("overlap_conflict", program_id=program_id, source="batch", candidates=clashes)
        raise OverlapConflict(details={"candidates": [format_iso(drafts[i].start_date) for i in clashes]})

    try:
        slots = await store.insert_slots(program_id, drafts)
    except OverlapConflict as e:
        overlap_conflicts.inc()
        logger.warning("overlap_conflict", program_id=program_id, source="existing", **e.details)
        raise

    for slot_type in {slot.slot_type for slot in slots}:
        record_slots_created(slot_type.value, sum(1 for slot in slots if slot.slot_type is slot_type))
    logger.info("slots_created", program_id=program_id, count=len(slots))
    return slots


def _seed_tier_table(program: Program, seeds: Sequence[WeekSeed]):
    """Baseline with per-tier entries filled from the generator defaults where missing."""
    remuneration = program.conditions.remuneration
    changes = {}
    for seed in seeds:
        field_name = "high_demand" if seed.tier is WeekTier.HIGH_DEMAND else "standard"
        if getattr(remuneration, field_name) is None and field_name not in changes:
            changes[field_name] = TierRemuneration(
                fee_cents=seed.fee_cents,
                performance_count=seed.performance_count,
            )
    if not changes:
        return None
    return replace(program.conditions, remuneration=replace(remuneration, **changes))


async def generate_program_weeks(
    store: ProgrammingStore,
    program_id: int,
    start_date: Union[str, date],
    end_date: Union[str, date],
    *,
    calendar: Optional[TierCalendar] = None,
    events: Optional[EventPublisher] = None,
) -> list[Slot]:
    """Generate Sunday-to-Sunday week slots for a weekly residency."""
    events = events or NullPublisher()
    program = await get_program_or_404(store, program_id)
    if program.program_type is not ProgramType.WEEKLY_RESIDENCY:
        raise InvalidProgramType(details={"program_type": program.program_type.value})

    seeds = generate_weeks(start_date, end_date, calendar or get_settings().tier_calendar())
    slots = await create_slots(store, program_id, seeds)

    # Fresh read so a conditions edit made meanwhile is kept
    current = await get_program_or_404(store, program_id)
    seeded = _seed_tier_table(current, seeds)
    if seeded is not None:
        await store.update_program_conditions(program_id, seeded)
        logger.info("tier_defaults_seeded", program_id=program_id)

    if slots:
        await events.publish(facts.weeks_generated(program_id, slots))
    return slots


async def add_date_slot(
    store: ProgrammingStore,
    program_id: int,
    day: Union[str, date],
    override: Optional[ConditionsOverride] = None,
) -> Slot:
    """Add one single-day slot to a multi-date program."""
    program = await get_program_or_404(store, program_id)
    if program.program_type is not ProgramType.MULTI_DATES:
        raise InvalidProgramType(details={"program_type": program.program_type.value})

    day = parse_date(day)
    draft = SlotDraft(slot_type=SlotType.DATE, start_date=day, end_date=day, override=override)
    slots = await create_slots(store, program_id, [draft])
    return slots[0]


async def cancel_slot(
    store: ProgrammingStore,
    slot_id: int,
    *,
    events: Optional[EventPublisher] = None,
) -> Slot:
    """
    Cancel an open slot. Cancelling twice is a no-op.

    Raises SlotAlreadyBooked when the slot carries a confirmed booking.
    """
    events = events or NullPublisher()
    slot = await get_slot_or_404(store, slot_id)
    if slot.status is SlotStatus.CANCELLED:
        return slot
    if slot.status is SlotStatus.CLOSED or await store.get_active_booking(slot_id) is not None:
        raise SlotAlreadyBooked(details={"slot_id": slot_id})

    if not await store.transition_slot(slot_id, SlotStatus.OPEN, SlotStatus.CANCELLED):
        # Confirmed (or cancelled) between the read and the update
        current = await get_slot_or_404(store, slot_id)
        if current.status is SlotStatus.CANCELLED:
            return current
        raise SlotAlreadyBooked(details={"slot_id": slot_id})

    applications = await store.list_applications(slot_id)
    pending = [a.artist_id for a in applications if a.status is ApplicationStatus.PENDING]
    logger.info("slot_cancelled", slot_id=slot_id, program_id=slot.program_id, pending=len(pending))
    await events.publish(facts.slot_cancelled(slot, pending))
    return replace(slot, status=SlotStatus.CANCELLED)


async def set_slot_override(
    store: ProgrammingStore,
    slot_id: int,
    override: Optional[ConditionsOverride],
) -> Slot:
    """Replace the slot's override block; an empty override clears it."""
    await get_slot_or_404(store, slot_id)
    if override is not None and override.is_empty():
        override = None
    slot = await store.set_slot_override(slot_id, override)
    if slot is None:
        raise SlotNotFound(slot_id)
    logger.info("slot_override_updated", slot_id=slot_id, cleared=override is None)
    return slot


async def get_effective_conditions(store: ProgrammingStore, slot_id: int) -> EffectiveConditions:
    slot = await get_slot_or_404(store, slot_id)
    program = await get_program_or_404(store, slot.program_id)
    return resolve_for_slot(program, slot, get_settings().DEFAULT_CURRENCY)
