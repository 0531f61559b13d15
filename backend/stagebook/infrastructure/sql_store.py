"""
SQLAlchemy implementation of the ProgrammingStore.

CONCURRENCY STRATEGY: Unique index as the per-slot mutex
========================================================

Problem:
  Two admins (or two request handlers in different processes) confirm two
  different applications for the same slot at the same moment. A
  "SELECT booking ... then INSERT booking" from application code lets both
  see "no booking yet" and both insert.

Solution:
  The bookings table carries a partial unique index on slot_id for
  CONFIRMED rows. confirm_booking inserts first and lets the database
  arbitrate:

  1. INSERT booking            -> unique violation means another confirmation won
  2. UPDATE slots SET CLOSED WHERE id = :slot AND status = 'OPEN'
                               -> rowcount 0 means the slot was cancelled/closed
  3. UPDATE application SET CONFIRMED WHERE status = 'PENDING'
  4. UPDATE other PENDING applications of the slot SET REJECTED

  All four statements share one transaction, so a loser leaves no trace.

Each public method opens its own session and transaction; nothing is held
between calls.
"""

from contextlib import asynccontextmanager
from datetime import date
from typing import Any, AsyncIterator, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stagebook.core.exceptions import (
    AlreadyBooked,
    ApplicationNotFound,
    BookingNotActive,
    BookingNotFound,
    DuplicateApplication,
    NotPending,
    OverlapConflict,
    ProgramNotFound,
    SchedulingError,
    SlotNotFound,
    SlotNotOpen,
    StorageFailure,
)
from stagebook.core.logging import get_logger
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
    SlotType,
    WeekTier,
)
from stagebook.models import ApplicationRow, BookingRow, ProgramRow, SlotRow
from stagebook.scheduling.calendar import ranges_overlap
from stagebook.services.interfaces.store import ProgrammingStore

logger = get_logger(__name__)


class ConstraintViolation(StorageFailure):
    """IntegrityError not (yet) mapped to a domain error."""


def _to_program(row: ProgramRow) -> Program:
    return Program(
        id=row.id,
        title=row.title,
        program_type=ProgramType(row.program_type),
        status=ProgramStatus.normalize(row.status),
        conditions=ProgramConditions.from_json(row.conditions),
        created_at=row.created_at,
    )


def _to_slot(row: SlotRow) -> Slot:
    return Slot(
        id=row.id,
        program_id=row.program_id,
        slot_type=SlotType(row.slot_type),
        start_date=row.start_date,
        end_date=row.end_date,
        status=SlotStatus(row.status),
        tier=WeekTier.normalize(row.tier),
        override=ConditionsOverride.from_json(row.conditions_override) if row.conditions_override else None,
        created_at=row.created_at,
    )


def _to_application(row: ApplicationRow) -> Application:
    return Application(
        id=row.id,
        slot_id=row.slot_id,
        artist_id=row.artist_id,
        status=ApplicationStatus.normalize(row.status),
        option=FeeOption.from_json(row.option) if row.option else None,
        created_at=row.created_at,
    )


def _to_booking(row: BookingRow) -> Booking:
    return Booking(
        id=row.id,
        slot_id=row.slot_id,
        artist_id=row.artist_id,
        application_id=row.application_id,
        status=BookingStatus(row.status),
        conditions_snapshot=dict(row.conditions_snapshot or {}),
        option=FeeOption.from_json(row.option) if row.option else None,
        created_at=row.created_at,
    )


class SqlProgrammingStore(ProgrammingStore):
    """PostgreSQL-backed store (SQLite in tests) using async SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._sessions = session_factory

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._sessions() as session:
                async with session.begin():
                    yield session
        except SchedulingError:
            raise
        except IntegrityError as exc:
            raise ConstraintViolation(details={"reason": "integrity_error"}) from exc
        except SQLAlchemyError as exc:
            logger.error("storage_failure", error=str(exc), error_type=exc.__class__.__name__)
            raise StorageFailure(details={"reason": exc.__class__.__name__}) from exc

    # Programs

    async def add_program(
        self,
        title: str,
        program_type: ProgramType,
        status: ProgramStatus = ProgramStatus.DRAFT,
        conditions: Optional[ProgramConditions] = None,
    ) -> Program:
        async with self._transaction() as session:
            row = ProgramRow(
                title=title,
                program_type=program_type.value,
                status=status.value,
                conditions=(conditions or ProgramConditions()).to_json(),
            )
            session.add(row)
            await session.flush()
            return _to_program(row)

    async def get_program(self, program_id: int) -> Optional[Program]:
        async with self._transaction() as session:
            row = await session.get(ProgramRow, program_id)
            return _to_program(row) if row else None

    async def update_program_conditions(
        self, program_id: int, conditions: ProgramConditions
    ) -> Optional[Program]:
        async with self._transaction() as session:
            row = await session.get(ProgramRow, program_id)
            if row is None:
                return None
            row.conditions = conditions.to_json()
            await session.flush()
            return _to_program(row)

    async def set_program_status(self, program_id: int, status: ProgramStatus) -> Optional[Program]:
        async with self._transaction() as session:
            row = await session.get(ProgramRow, program_id)
            if row is None:
                return None
            row.status = status.value
            await session.flush()
            return _to_program(row)

    # Slots

    async def get_slot(self, slot_id: int) -> Optional[Slot]:
        async with self._transaction() as session:
            row = await session.get(SlotRow, slot_id)
            return _to_slot(row) if row else None

    async def list_slots(self, program_id: int, include_cancelled: bool = True) -> list[Slot]:
        query = select(SlotRow).where(SlotRow.program_id == program_id)
        if not include_cancelled:
            query = query.where(SlotRow.status != SlotStatus.CANCELLED.value)
        async with self._transaction() as session:
            result = await session.execute(query.order_by(SlotRow.start_date, SlotRow.id))
            return [_to_slot(row) for row in result.scalars().all()]

    async def _overlapping(
        self, session: AsyncSession, program_id: int, start: date, end: date
    ) -> list[Slot]:
        # Coarse filter in SQL (DATE rows store end_date == start_date), exact
        # half-open test on the mapped spans.
        result = await session.execute(
            select(SlotRow).where(
                SlotRow.program_id == program_id,
                SlotRow.status != SlotStatus.CANCELLED.value,
                SlotRow.start_date < end,
                SlotRow.end_date >= start,
            )
        )
        slots = [_to_slot(row) for row in result.scalars().all()]
        return sorted(
            (slot for slot in slots if ranges_overlap(start, end, *slot.span())),
            key=lambda s: s.start_date,
        )

    async def find_overlapping_slots(self, program_id: int, start: date, end: date) -> list[Slot]:
        async with self._transaction() as session:
            return await self._overlapping(session, program_id, start, end)

    async def insert_slots(self, program_id: int, drafts: Sequence[SlotDraft]) -> list[Slot]:
        if not drafts:
            return []
        async with self._transaction() as session:
            # Row lock on the program serialises concurrent generations for it
            program = await session.scalar(
                select(ProgramRow).where(ProgramRow.id == program_id).with_for_update()
            )
            if program is None:
                raise ProgramNotFound(program_id)

            spans = [draft.span() for draft in drafts]
            window_start = min(span[0] for span in spans)
            window_end = max(span[1] for span in spans)
            existing = await self._overlapping(session, program_id, window_start, window_end)
            clashes = [
                slot
                for slot in existing
                if any(ranges_overlap(start, end, *slot.span()) for start, end in spans)
            ]
            if clashes:
                raise OverlapConflict(details={"slot_ids": [slot.id for slot in clashes]})

            rows = [
                SlotRow(
                    program_id=program_id,
                    slot_type=draft.slot_type.value,
                    start_date=draft.start_date,
                    end_date=draft.end_date,
                    status=SlotStatus.OPEN.value,
                    tier=draft.tier.value if draft.tier else None,
                    conditions_override=draft.override.to_json() if draft.override else None,
                )
                for draft in drafts
            ]
            session.add_all(rows)
            await session.flush()
            return [_to_slot(row) for row in rows]

    async def set_slot_override(
        self, slot_id: int, override: Optional[ConditionsOverride]
    ) -> Optional[Slot]:
        async with self._transaction() as session:
            row = await session.get(SlotRow, slot_id)
            if row is None:
                return None
            row.conditions_override = override.to_json() if override else None
            await session.flush()
            return _to_slot(row)

    async def transition_slot(self, slot_id: int, expected: SlotStatus, new: SlotStatus) -> bool:
        async with self._transaction() as session:
            result = await session.execute(
                update(SlotRow)
                .where(SlotRow.id == slot_id, SlotRow.status == expected.value)
                .values(status=new.value)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    # Applications

    async def get_application(self, application_id: int) -> Optional[Application]:
        async with self._transaction() as session:
            row = await session.get(ApplicationRow, application_id)
            return _to_application(row) if row else None

    async def list_applications(self, slot_id: int) -> list[Application]:
        async with self._transaction() as session:
            result = await session.execute(
                select(ApplicationRow)
                .where(ApplicationRow.slot_id == slot_id)
                .order_by(ApplicationRow.created_at, ApplicationRow.id)
            )
            return [_to_application(row) for row in result.scalars().all()]

    async def find_active_application(self, slot_id: int, artist_id: str) -> Optional[Application]:
        async with self._transaction() as session:
            row = await session.scalar(
                select(ApplicationRow).where(
                    ApplicationRow.slot_id == slot_id,
                    ApplicationRow.artist_id == artist_id,
                    ApplicationRow.status != ApplicationStatus.CANCELLED.value,
                )
            )
            return _to_application(row) if row else None

    async def insert_application(
        self, slot_id: int, artist_id: str, option: Optional[FeeOption] = None
    ) -> Application:
        try:
            async with self._transaction() as session:
                row = ApplicationRow(
                    slot_id=slot_id,
                    artist_id=artist_id,
                    status=ApplicationStatus.PENDING.value,
                    option=option.to_json() if option else None,
                )
                session.add(row)
                await session.flush()
                return _to_application(row)
        except ConstraintViolation:
            if await self.find_active_application(slot_id, artist_id) is not None:
                raise DuplicateApplication(details={"slot_id": slot_id}) from None
            raise

    async def transition_application(
        self, application_id: int, expected: ApplicationStatus, new: ApplicationStatus
    ) -> bool:
        async with self._transaction() as session:
            result = await session.execute(
                update(ApplicationRow)
                .where(ApplicationRow.id == application_id, ApplicationRow.status == expected.value)
                .values(status=new.value)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    # Bookings

    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        async with self._transaction() as session:
            row = await session.get(BookingRow, booking_id)
            return _to_booking(row) if row else None

    async def get_active_booking(self, slot_id: int) -> Optional[Booking]:
        async with self._transaction() as session:
            row = await session.scalar(
                select(BookingRow).where(
                    BookingRow.slot_id == slot_id,
                    BookingRow.status == BookingStatus.CONFIRMED.value,
                )
            )
            return _to_booking(row) if row else None

    async def list_bookings_for_artist(self, artist_id: str) -> list[Booking]:
        async with self._transaction() as session:
            result = await session.execute(
                select(BookingRow)
                .where(BookingRow.artist_id == artist_id)
                .order_by(BookingRow.created_at.desc(), BookingRow.id.desc())
            )
            return [_to_booking(row) for row in result.scalars().all()]

    async def confirm_booking(
        self,
        slot_id: int,
        application_id: int,
        snapshot: dict[str, Any],
    ) -> tuple[Booking, list[Application]]:
        try:
            return await self._confirm(slot_id, application_id, snapshot)
        except ConstraintViolation:
            if await self.get_active_booking(slot_id) is not None:
                raise AlreadyBooked(details={"slot_id": slot_id}) from None
            raise

    async def _confirm(
        self,
        slot_id: int,
        application_id: int,
        snapshot: dict[str, Any],
    ) -> tuple[Booking, list[Application]]:
        async with self._transaction() as session:
            application = await session.get(ApplicationRow, application_id)
            if application is None or application.slot_id != slot_id:
                raise ApplicationNotFound(application_id)

            # Step 1: the unique index decides who wins
            booking = BookingRow(
                slot_id=slot_id,
                artist_id=application.artist_id,
                application_id=application_id,
                status=BookingStatus.CONFIRMED.value,
                conditions_snapshot=snapshot,
                option=application.option,
            )
            session.add(booking)
            await session.flush()

            # Step 2: close the slot only if it is still open
            closed = await session.execute(
                update(SlotRow)
                .where(SlotRow.id == slot_id, SlotRow.status == SlotStatus.OPEN.value)
                .values(status=SlotStatus.CLOSED.value)
                .execution_options(synchronize_session=False)
            )
            if closed.rowcount != 1:
                current = await session.scalar(select(SlotRow.status).where(SlotRow.id == slot_id))
                if current is None:
                    raise SlotNotFound(slot_id)
                if current == SlotStatus.CLOSED.value:
                    raise AlreadyBooked(details={"slot_id": slot_id})
                raise SlotNotOpen(details={"slot_id": slot_id, "status": current})

            # Step 3: the winning application
            confirmed = await session.execute(
                update(ApplicationRow)
                .where(
                    ApplicationRow.id == application_id,
                    ApplicationRow.status == ApplicationStatus.PENDING.value,
                )
                .values(status=ApplicationStatus.CONFIRMED.value)
                .execution_options(synchronize_session=False)
            )
            if confirmed.rowcount != 1:
                raise NotPending(NotPending.confirm_message, details={"application_id": application_id})

            # Step 4: everyone else still waiting on this slot
            competing = await session.execute(
                select(ApplicationRow)
                .where(
                    ApplicationRow.slot_id == slot_id,
                    ApplicationRow.id != application_id,
                    ApplicationRow.status == ApplicationStatus.PENDING.value,
                )
                .order_by(ApplicationRow.created_at, ApplicationRow.id)
            )
            rejected_rows = list(competing.scalars().all())
            for row in rejected_rows:
                row.status = ApplicationStatus.REJECTED.value
            await session.flush()

            return _to_booking(booking), [_to_application(row) for row in rejected_rows]

    async def cancel_booking(self, booking_id: int) -> Booking:
        async with self._transaction() as session:
            row = await session.get(BookingRow, booking_id)
            if row is None:
                raise BookingNotFound(booking_id)
            cancelled = await session.execute(
                update(BookingRow)
                .where(BookingRow.id == booking_id, BookingRow.status == BookingStatus.CONFIRMED.value)
                .values(status=BookingStatus.CANCELLED.value)
                .execution_options(synchronize_session=False)
            )
            if cancelled.rowcount != 1:
                raise BookingNotActive(details={"booking_id": booking_id})

            await session.execute(
                update(SlotRow)
                .where(SlotRow.id == row.slot_id, SlotRow.status == SlotStatus.CLOSED.value)
                .values(status=SlotStatus.OPEN.value)
                .execution_options(synchronize_session=False)
            )
            if row.application_id is not None:
                await session.execute(
                    update(ApplicationRow)
                    .where(ApplicationRow.id == row.application_id)
                    .values(status=ApplicationStatus.CANCELLED.value)
                    .execution_options(synchronize_session=False)
                )
            await session.refresh(row)
            return _to_booking(row)
