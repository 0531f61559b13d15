"""
In-memory ProgrammingStore.

Used by the test-suite and local previews. Every mutation runs under the
store's own lock with no await inside it, which plays the role of the
database's row-level constraints: confirm_booking is an insert-if-absent
keyed by slot id, so concurrent confirmations for one slot cannot both win.
Each call yields to the event loop first, the way a network round trip
would, so concurrent callers really interleave.
"""

import asyncio
import itertools
import threading
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Any, Optional, Sequence

from stagebook.core.exceptions import (
    AlreadyBooked,
    ApplicationNotFound,
    BookingNotActive,
    BookingNotFound,
    DuplicateApplication,
    NotPending,
    OverlapConflict,
    SlotNotFound,
    SlotNotOpen,
)
from stagebook.domain import (
    Application,
    ApplicationStatus,
    Booking,
    BookingStatus,
    ConditionsOverride,
    FeeOption,
    Program,
    ProgramConditions,
    ProgramStatus,
    ProgramType,
    Slot,
    SlotDraft,
    SlotStatus,
)
from stagebook.scheduling.calendar import ranges_overlap
from stagebook.services.interfaces.store import ProgrammingStore


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryProgrammingStore(ProgrammingStore):

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self.programs: dict[int, Program] = {}
        self.slots: dict[int, Slot] = {}
        self.applications: dict[int, Application] = {}
        self.bookings: dict[int, Booking] = {}
        # slot_id -> booking_id of the CONFIRMED booking
        self._active_booking_by_slot: dict[int, int] = {}

    async def _io(self) -> None:
        await asyncio.sleep(0)

    # Programs

    async def add_program(
        self,
        title: str,
        program_type: ProgramType,
        status: ProgramStatus = ProgramStatus.DRAFT,
        conditions: Optional[ProgramConditions] = None,
    ) -> Program:
        await self._io()
        with self._lock:
            program = Program(
                id=next(self._ids),
                title=title,
                program_type=program_type,
                status=status,
                conditions=conditions or ProgramConditions(),
                created_at=_now(),
            )
            self.programs[program.id] = program
        return program

    async def get_program(self, program_id: int) -> Optional[Program]:
        await self._io()
        return self.programs.get(program_id)

    async def update_program_conditions(
        self, program_id: int, conditions: ProgramConditions
    ) -> Optional[Program]:
        await self._io()
        with self._lock:
            program = self.programs.get(program_id)
            if program is None:
                return None
            program = replace(program, conditions=conditions)
            self.programs[program_id] = program
        return program

    async def set_program_status(self, program_id: int, status: ProgramStatus) -> Optional[Program]:
        await self._io()
        with self._lock:
            program = self.programs.get(program_id)
            if program is None:
                return None
            program = replace(program, status=status)
            self.programs[program_id] = program
        return program

    # Slots

    async def get_slot(self, slot_id: int) -> Optional[Slot]:
        await self._io()
        return self.slots.get(slot_id)

    async def list_slots(self, program_id: int, include_cancelled: bool = True) -> list[Slot]:
        await self._io()
        slots = [
            slot
            for slot in self.slots.values()
            if slot.program_id == program_id
            and (include_cancelled or slot.status is not SlotStatus.CANCELLED)
        ]
        return sorted(slots, key=lambda s: (s.start_date, s.id))

    def _overlapping(self, program_id: int, start: date, end: date) -> list[Slot]:
        return [
            slot
            for slot in self.slots.values()
            if slot.program_id == program_id
            and slot.status is not SlotStatus.CANCELLED
            and ranges_overlap(start, end, *slot.span())
        ]

    async def find_overlapping_slots(self, program_id: int, start: date, end: date) -> list[Slot]:
        await self._io()
        return sorted(self._overlapping(program_id, start, end), key=lambda s: s.start_date)

    async def insert_slots(self, program_id: int, drafts: Sequence[SlotDraft]) -> list[Slot]:
        await self._io()
        with self._lock:
            for draft in drafts:
                clashes = self._overlapping(program_id, *draft.span())
                if clashes:
                    raise OverlapConflict(details={"slot_ids": [s.id for s in clashes]})
            created = []
            for draft in drafts:
                slot = Slot(
                    id=next(self._ids),
                    program_id=program_id,
                    slot_type=draft.slot_type,
                    start_date=draft.start_date,
                    end_date=draft.end_date,
                    status=SlotStatus.OPEN,
                    tier=draft.tier,
                    override=draft.override,
                    created_at=_now(),
                )
                self.slots[slot.id] = slot
                created.append(slot)
        return created

    async def set_slot_override(
        self, slot_id: int, override: Optional[ConditionsOverride]
    ) -> Optional[Slot]:
        await self._io()
        with self._lock:
            slot = self.slots.get(slot_id)
            if slot is None:
                return None
            slot = replace(slot, override=override)
            self.slots[slot_id] = slot
        return slot

    async def transition_slot(self, slot_id: int, expected: SlotStatus, new: SlotStatus) -> bool:
        await self._io()
        with self._lock:
            slot = self.slots.get(slot_id)
            if slot is None or slot.status is not expected:
                return False
            self.slots[slot_id] = replace(slot, status=new)
        return True

    # Applications

    async def get_application(self, application_id: int) -> Optional[Application]:
        await self._io()
        return self.applications.get(application_id)

    async def list_applications(self, slot_id: int) -> list[Application]:
        await self._io()
        found = [a for a in self.applications.values() if a.slot_id == slot_id]
        return sorted(found, key=lambda a: (a.created_at, a.id))

    def _active_application(self, slot_id: int, artist_id: str) -> Optional[Application]:
        for application in self.applications.values():
            if application.slot_id == slot_id and application.artist_id == artist_id and application.is_active:
                return application
        return None

    async def find_active_application(self, slot_id: int, artist_id: str) -> Optional[Application]:
        await self._io()
        return self._active_application(slot_id, artist_id)

    async def insert_application(
        self, slot_id: int, artist_id: str, option: Optional[FeeOption] = None
    ) -> Application:
        await self._io()
        with self._lock:
            if self._active_application(slot_id, artist_id) is not None:
                raise DuplicateApplication(details={"slot_id": slot_id})
            application = Application(
                id=next(self._ids),
                slot_id=slot_id,
                artist_id=artist_id,
                status=ApplicationStatus.PENDING,
                option=option,
                created_at=_now(),
            )
            self.applications[application.id] = application
        return application

    async def transition_application(
        self, application_id: int, expected: ApplicationStatus, new: ApplicationStatus
    ) -> bool:
        await self._io()
        with self._lock:
            application = self.applications.get(application_id)
            if application is None or application.status is not expected:
                return False
            self.applications[application_id] = replace(application, status=new)
        return True

    # Bookings

    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        await self._io()
        return self.bookings.get(booking_id)

    async def get_active_booking(self, slot_id: int) -> Optional[Booking]:
        await self._io()
        booking_id = self._active_booking_by_slot.get(slot_id)
        return self.bookings.get(booking_id) if booking_id is not None else None

    async def list_bookings_for_artist(self, artist_id: str) -> list[Booking]:
        await self._io()
        found = [b for b in self.bookings.values() if b.artist_id == artist_id]
        return sorted(found, key=lambda b: (b.created_at, b.id), reverse=True)

    async def confirm_booking(
        self,
        slot_id: int,
        application_id: int,
        snapshot: dict[str, Any],
    ) -> tuple[Booking, list[Application]]:
        await self._io()
        with self._lock:
            if slot_id in self._active_booking_by_slot:
                raise AlreadyBooked(details={"slot_id": slot_id})
            slot = self.slots.get(slot_id)
            if slot is None:
                raise SlotNotFound(slot_id)
            if slot.status is not SlotStatus.OPEN:
                raise SlotNotOpen(details={"slot_id": slot_id, "status": slot.status.value})
            application = self.applications.get(application_id)
            if application is None or application.slot_id != slot_id:
                raise ApplicationNotFound(application_id)
            if application.status is not ApplicationStatus.PENDING:
                raise NotPending(NotPending.confirm_message, details={"application_id": application_id})

            booking = Booking(
                id=next(self._ids),
                slot_id=slot_id,
                artist_id=application.artist_id,
                application_id=application_id,
                status=BookingStatus.CONFIRMED,
                conditions_snapshot=snapshot,
                option=application.option,
                created_at=_now(),
            )
            self.bookings[booking.id] = booking
            self._active_booking_by_slot[slot_id] = booking.id
            self.slots[slot_id] = replace(slot, status=SlotStatus.CLOSED)
            self.applications[application_id] = replace(application, status=ApplicationStatus.CONFIRMED)

            rejected = []
            for other in list(self.applications.values()):
                if other.slot_id == slot_id and other.status is ApplicationStatus.PENDING:
                    other = replace(other, status=ApplicationStatus.REJECTED)
                    self.applications[other.id] = other
                    rejected.append(other)
        return booking, sorted(rejected, key=lambda a: (a.created_at, a.id))

    async def cancel_booking(self, booking_id: int) -> Booking:
        await self._io()
        with self._lock:
            booking = self.bookings.get(booking_id)
            if booking is None:
                raise BookingNotFound(booking_id)
            if booking.status is not BookingStatus.CONFIRMED:
                raise BookingNotActive(details={"booking_id": booking_id})
            booking = replace(booking, status=BookingStatus.CANCELLED)
            self.bookings[booking_id] = booking
            self._active_booking_by_slot.pop(booking.slot_id, None)
            slot = self.slots[booking.slot_id]
            self.slots[slot.id] = replace(slot, status=SlotStatus.OPEN)
            if booking.application_id in self.applications:
                application = self.applications[booking.application_id]
                self.applications[application.id] = replace(application, status=ApplicationStatus.CANCELLED)
        return booking
