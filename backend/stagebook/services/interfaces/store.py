"""
Persistence port for the programming engine.

Services only talk to this interface so the engine runs unchanged against
PostgreSQL (SqlProgrammingStore) or the in-memory fake used by tests
(MemoryProgrammingStore).
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Any, Optional, Sequence

from stagebook.domain import (
    Application,
    ApplicationStatus,
    Booking,
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


class ProgrammingStore(ABC):
    """
    Interface for program, slot, application and booking persistence.

    Implementations:
    - SqlProgrammingStore: SQLAlchemy, unique index on active bookings per slot
    - MemoryProgrammingStore: dicts guarded by the store's own lock

    Contract for the state-changing methods:
    - insert_slots is all-or-nothing and raises OverlapConflict
    - insert_application raises DuplicateApplication on a second active row
    - confirm_booking is a single atomic unit and raises AlreadyBooked
      for every caller but the first
    - transition_* are compare-and-set and return False when the current
      status is not the expected one
    - any other backend failure surfaces as StorageFailure
    """

    # Programs

    @abstractmethod
    async def add_program(
        self,
        title: str,
        program_type: ProgramType,
        status: ProgramStatus = ProgramStatus.DRAFT,
        conditions: Optional[ProgramConditions] = None,
    ) -> Program:
        ...

    @abstractmethod
    async def get_program(self, program_id: int) -> Optional[Program]:
        ...

    @abstractmethod
    async def update_program_conditions(
        self, program_id: int, conditions: ProgramConditions
    ) -> Optional[Program]:
        ...

    @abstractmethod
    async def set_program_status(self, program_id: int, status: ProgramStatus) -> Optional[Program]:
        ...

    # Slots

    @abstractmethod
    async def get_slot(self, slot_id: int) -> Optional[Slot]:
        ...

    @abstractmethod
    async def list_slots(self, program_id: int, include_cancelled: bool = True) -> list[Slot]:
        """Slots of a program ordered by start date."""
        ...

    @abstractmethod
    async def find_overlapping_slots(self, program_id: int, start: date, end: date) -> list[Slot]:
        """Non-cancelled slots whose span intersects ``[start, end)``."""
        ...

    @abstractmethod
    async def insert_slots(self, program_id: int, drafts: Sequence[SlotDraft]) -> list[Slot]:
        ...

    @abstractmethod
    async def set_slot_override(
        self, slot_id: int, override: Optional[ConditionsOverride]
    ) -> Optional[Slot]:
        ...

    @abstractmethod
    async def transition_slot(self, slot_id: int, expected: SlotStatus, new: SlotStatus) -> bool:
        ...

    # Applications

    @abstractmethod
    async def get_application(self, application_id: int) -> Optional[Application]:
        ...

    @abstractmethod
    async def list_applications(self, slot_id: int) -> list[Application]:
        """Applications of a slot, oldest first."""
        ...

    @abstractmethod
    async def find_active_application(self, slot_id: int, artist_id: str) -> Optional[Application]:
        ...

    @abstractmethod
    async def insert_application(
        self, slot_id: int, artist_id: str, option: Optional[FeeOption] = None
    ) -> Application:
        ...

    @abstractmethod
    async def transition_application(
        self, application_id: int, expected: ApplicationStatus, new: ApplicationStatus
    ) -> bool:
        ...

    # Bookings

    @abstractmethod
    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        ...

    @abstractmethod
    async def get_active_booking(self, slot_id: int) -> Optional[Booking]:
        ...

    @abstractmethod
    async def list_bookings_for_artist(self, artist_id: str) -> list[Booking]:
        ...

    @abstractmethod
    async def confirm_booking(
        self,
        slot_id: int,
        application_id: int,
        snapshot: dict[str, Any],
    ) -> tuple[Booking, list[Application]]:
        """
        Atomically book the slot for the application's artist.

        Returns the booking and the applications that were rejected as a
        consequence.
        """
        ...

    @abstractmethod
    async def cancel_booking(self, booking_id: int) -> Booking:
        """Cancel a confirmed booking and re-open its slot."""
        ...
