"""
Tests for the SQLAlchemy store, run on a throwaway SQLite file.

The partial unique indexes exist on SQLite too, so the same per-slot mutex
decides confirmations here as on PostgreSQL.
"""

from datetime import date
from typing import AsyncGenerator

import pytest
import pytest_asyncio

from stagebook.core.exceptions import (
    AlreadyBooked,
    BookingNotActive,
    DuplicateApplication,
    NotPending,
    OverlapConflict,
    ProgramNotFound,
    SlotAlreadyBooked,
)
from stagebook.db.base import Base
from stagebook.db.session import build_engine, build_session_factory
from stagebook.domain import (
    ApplicationStatus,
    BookingStatus,
    ConditionsOverride,
    FeeOption,
    Program,
    ProgramConditions,
    ProgramStatus,
    ProgramType,
    SlotDraft,
    SlotStatus,
    SlotType,
    WeekTier,
)
from stagebook.infrastructure.sql_store import SqlProgrammingStore
from stagebook.services import booking_service, slot_service
from stagebook.services.roadmap_service import build_booking_roadmap


@pytest_asyncio.fixture
async def sql_store(tmp_path) -> AsyncGenerator[SqlProgrammingStore, None]:
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'stagebook.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield SqlProgrammingStore(build_session_factory(engine))

    await engine.dispose()


@pytest_asyncio.fixture
async def sql_multi_dates(sql_store: SqlProgrammingStore, multi_dates_conditions: dict) -> Program:
    return await sql_store.add_program(
        "Jeudis acoustiques",
        ProgramType.MULTI_DATES,
        ProgramStatus.ACTIVE,
        ProgramConditions.from_json(multi_dates_conditions),
    )


@pytest_asyncio.fixture
async def sql_residency(sql_store: SqlProgrammingStore, residency_conditions: dict) -> Program:
    return await sql_store.add_program(
        "Résidence d'hiver",
        ProgramType.WEEKLY_RESIDENCY,
        ProgramStatus.ACTIVE,
        ProgramConditions.from_json(residency_conditions),
    )


async def _open_slot_with_applicants(store: SqlProgrammingStore, program: Program, count: int = 3):
    slot = await slot_service.add_date_slot(store, program.id, "2025-03-14")
    applications = [
        await booking_service.apply(store, slot.id, f"artist-{i}", FeeOption("Cachet fixe"))
        for i in range(count)
    ]
    return slot, applications


@pytest.mark.asyncio
async def test_program_round_trip(sql_store: SqlProgrammingStore, sql_residency: Program):
    loaded = await sql_store.get_program(sql_residency.id)

    assert loaded.title == "Résidence d'hiver"
    assert loaded.status is ProgramStatus.ACTIVE
    assert loaded.conditions.remuneration.high_demand.fee_cents == 30000
    assert loaded.conditions.lodging.details == "Studio au-dessus du bar"
    assert await sql_store.get_program(999) is None


@pytest.mark.asyncio
async def test_insert_slots_requires_program(sql_store: SqlProgrammingStore):
    draft = SlotDraft(slot_type=SlotType.DATE, start_date=date(2025, 3, 14), end_date=date(2025, 3, 14))

    with pytest.raises(ProgramNotFound):
        await sql_store.insert_slots(42, [draft])


@pytest.mark.asyncio
async def test_generated_weeks_are_stored_once(sql_store: SqlProgrammingStore, sql_residency: Program):
    program = sql_residency

    weeks = await slot_service.generate_program_weeks(sql_store, program.id, "2025-01-03", "2025-01-20")

    assert [w.start_date for w in weeks] == [
        date(2024, 12, 29), date(2025, 1, 5), date(2025, 1, 12), date(2025, 1, 19),
    ]
    assert weeks[0].tier is WeekTier.HIGH_DEMAND
    assert all(w.tier is WeekTier.STANDARD for w in weeks[1:])

    with pytest.raises(OverlapConflict) as exc_info:
        await slot_service.generate_program_weeks(sql_store, program.id, "2025-01-12", "2025-02-10")

    assert exc_info.value.details["slot_ids"] == [weeks[2].id, weeks[3].id]
    assert len(await sql_store.list_slots(program.id)) == 4


@pytest.mark.asyncio
async def test_date_slots_overlap_only_on_the_same_day(sql_store: SqlProgrammingStore, sql_multi_dates: Program):
    program = sql_multi_dates

    first = await slot_service.add_date_slot(sql_store, program.id, "2025-03-14")
    await slot_service.add_date_slot(sql_store, program.id, "15/03/2025")

    with pytest.raises(OverlapConflict):
        await slot_service.add_date_slot(sql_store, program.id, "2025-03-14")

    # A cancelled slot frees its day
    await slot_service.cancel_slot(sql_store, first.id)
    again = await slot_service.add_date_slot(sql_store, program.id, "2025-03-14")

    assert again.status is SlotStatus.OPEN
    assert again.end_date == again.start_date
    open_slots = await sql_store.list_slots(program.id, include_cancelled=False)
    assert [s.start_date for s in open_slots] == [date(2025, 3, 14), date(2025, 3, 15)]


@pytest.mark.asyncio
async def test_slot_override_set_and_cleared(sql_store: SqlProgrammingStore, sql_multi_dates: Program):
    program = sql_multi_dates
    slot = await slot_service.add_date_slot(sql_store, program.id, "2025-03-14")

    updated = await slot_service.set_slot_override(
        sql_store, slot.id, ConditionsOverride.from_json({"fee_cents": 25000})
    )
    assert updated.override.fee_cents == 25000

    cleared = await slot_service.set_slot_override(sql_store, slot.id, ConditionsOverride())
    assert cleared.override is None


@pytest.mark.asyncio
async def test_duplicate_application_is_rejected(sql_store: SqlProgrammingStore, sql_multi_dates: Program):
    slot, applications = await _open_slot_with_applicants(sql_store, sql_multi_dates, count=1)

    with pytest.raises(DuplicateApplication):
        await booking_service.apply(sql_store, slot.id, "artist-0", FeeOption("Cachet fixe"))

    # Withdrawing frees the artist to apply again
    await booking_service.withdraw_application(sql_store, applications[0].id, "artist-0")
    again = await booking_service.apply(sql_store, slot.id, "artist-0", FeeOption("cachet FIXE "))

    assert again.status is ApplicationStatus.PENDING
    assert again.option == FeeOption("Cachet fixe", 20000)


@pytest.mark.asyncio
async def test_confirm_closes_slot_and_rejects_the_others(sql_store: SqlProgrammingStore, sql_multi_dates: Program):
    slot, applications = await _open_slot_with_applicants(sql_store, sql_multi_dates)

    booking = await booking_service.confirm(sql_store, slot.id, applications[1].id)

    assert booking.status is BookingStatus.CONFIRMED
    assert booking.artist_id == "artist-1"
    assert booking.option == FeeOption("Cachet fixe", 20000)
    assert set(booking.conditions_snapshot) == {"effective", "program", "override"}

    assert (await sql_store.get_slot(slot.id)).status is SlotStatus.CLOSED
    statuses = {a.artist_id: a.status for a in await sql_store.list_applications(slot.id)}
    assert statuses == {
        "artist-0": ApplicationStatus.REJECTED,
        "artist-1": ApplicationStatus.CONFIRMED,
        "artist-2": ApplicationStatus.REJECTED,
    }


@pytest.mark.asyncio
async def test_second_confirm_loses(sql_store: SqlProgrammingStore, sql_multi_dates: Program):
    slot, applications = await _open_slot_with_applicants(sql_store, sql_multi_dates)
    await booking_service.confirm(sql_store, slot.id, applications[0].id)

    with pytest.raises(AlreadyBooked):
        await booking_service.confirm(sql_store, slot.id, applications[2].id)

    active = await sql_store.get_active_booking(slot.id)
    assert active.artist_id == "artist-0"
    assert [b.artist_id for b in await sql_store.list_bookings_for_artist("artist-2")] == []


@pytest.mark.asyncio
async def test_withdrawn_application_cannot_be_confirmed(sql_store: SqlProgrammingStore, sql_multi_dates: Program):
    slot, applications = await _open_slot_with_applicants(sql_store, sql_multi_dates, count=1)
    await booking_service.withdraw_application(sql_store, applications[0].id)

    with pytest.raises(NotPending) as exc_info:
        await booking_service.confirm(sql_store, slot.id, applications[0].id)

    assert exc_info.value.message == NotPending.confirm_message
    # The whole confirmation rolled back
    assert (await sql_store.get_slot(slot.id)).status is SlotStatus.OPEN
    assert await sql_store.get_active_booking(slot.id) is None


@pytest.mark.asyncio
async def test_cannot_cancel_a_booked_slot(sql_store: SqlProgrammingStore, sql_multi_dates: Program):
    slot, applications = await _open_slot_with_applicants(sql_store, sql_multi_dates, count=1)
    await booking_service.confirm(sql_store, slot.id, applications[0].id)

    with pytest.raises(SlotAlreadyBooked):
        await slot_service.cancel_slot(sql_store, slot.id)


@pytest.mark.asyncio
async def test_cancel_booking_reopens_slot(sql_store: SqlProgrammingStore, sql_multi_dates: Program):
    slot, applications = await _open_slot_with_applicants(sql_store, sql_multi_dates, count=1)
    booking = await booking_service.confirm(sql_store, slot.id, applications[0].id)

    cancelled = await booking_service.cancel_booking(sql_store, booking.id)

    assert cancelled.status is BookingStatus.CANCELLED
    assert (await sql_store.get_slot(slot.id)).status is SlotStatus.OPEN
    assert (await sql_store.get_application(applications[0].id)).status is ApplicationStatus.CANCELLED

    with pytest.raises(BookingNotActive):
        await booking_service.cancel_booking(sql_store, booking.id)

    # The slot can be booked again; the cancelled booking stays for history
    newcomer = await booking_service.apply(sql_store, slot.id, "artist-new", FeeOption("Cachet fixe"))
    rebooked = await booking_service.confirm(sql_store, slot.id, newcomer.id)
    assert rebooked.id != booking.id
    assert (await sql_store.get_booking(booking.id)).status is BookingStatus.CANCELLED


@pytest.mark.asyncio
async def test_transitions_are_conditional(sql_store: SqlProgrammingStore, sql_multi_dates: Program):
    slot, applications = await _open_slot_with_applicants(sql_store, sql_multi_dates, count=1)

    assert await sql_store.transition_slot(slot.id, SlotStatus.OPEN, SlotStatus.CANCELLED) is True
    assert await sql_store.transition_slot(slot.id, SlotStatus.OPEN, SlotStatus.CANCELLED) is False

    application_id = applications[0].id
    assert await sql_store.transition_application(
        application_id, ApplicationStatus.PENDING, ApplicationStatus.CANCELLED
    ) is True
    assert await sql_store.transition_application(
        application_id, ApplicationStatus.PENDING, ApplicationStatus.CANCELLED
    ) is False


@pytest.mark.asyncio
async def test_roadmap_from_stored_snapshot(sql_store: SqlProgrammingStore, sql_multi_dates: Program):
    slot, applications = await _open_slot_with_applicants(sql_store, sql_multi_dates, count=1)
    booking = await booking_service.confirm(sql_store, slot.id, applications[0].id)

    roadmap = await build_booking_roadmap(sql_store, booking.id)

    assert roadmap.artist_id == "artist-0"
    assert roadmap.section("remuneration").items[0].value == "Cachet fixe • 200 € (net)"
