"""
Domain models representing persisted state.

These are plain frozen dataclasses handed out by the stores; the SQLAlchemy
rows in stagebook/models are the persistence layer.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Optional

from stagebook.domain.conditions import ConditionsOverride, FeeOption, ProgramConditions


def _normalize_key(value: Any) -> str:
    return str(value or "").strip().replace("-", "_").replace(" ", "_").upper()


class ProgramType(str, Enum):
    MULTI_DATES = "MULTI_DATES"
    WEEKLY_RESIDENCY = "WEEKLY_RESIDENCY"


class ProgramStatus(str, Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    ENDED = "ENDED"
    ARCHIVED = "ARCHIVED"

    @classmethod
    def from_label(cls, value: Any) -> Optional["ProgramStatus"]:
        """Strict lookup, legacy labels included. None when the label is unknown."""
        key = _normalize_key(value)
        if key == "DRAFT":
            return cls.DRAFT
        if key in ("ACTIVE", "PUBLISHED"):
            return cls.ACTIVE
        if key in ("ENDED", "TERMINATED", "FINISHED", "COMPLETED"):
            return cls.ENDED
        if key in ("ARCHIVED", "ARCHIVE", "CANCELLED"):
            return cls.ARCHIVED
        return None

    @classmethod
    def normalize(cls, value: Any) -> "ProgramStatus":
        """Lenient reading of stored rows: anything unknown is a draft."""
        return cls.from_label(value) or cls.DRAFT


class SlotType(str, Enum):
    DATE = "DATE"
    WEEK = "WEEK"


class SlotStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    CANCELLED = "CANCELLED"


class ApplicationStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"

    @classmethod
    def normalize(cls, value: Any) -> "ApplicationStatus":
        key = _normalize_key(value)
        if key in ("CONFIRMED", "ACCEPTED"):
            return cls.CONFIRMED
        if key == "REJECTED":
            return cls.REJECTED
        if key == "CANCELLED":
            return cls.CANCELLED
        # APPLIED, NEW, NEGOTIATING and unknown values are still awaiting a decision
        return cls.PENDING


class BookingStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class WeekTier(str, Enum):
    STANDARD = "STANDARD"
    HIGH_DEMAND = "HIGH_DEMAND"

    @classmethod
    def normalize(cls, value: Any) -> Optional["WeekTier"]:
        key = _normalize_key(value)
        if key in ("STANDARD", "CALM"):
            return cls.STANDARD
        if key in ("HIGH_DEMAND", "PEAK", "BUSY"):
            return cls.HIGH_DEMAND
        return None


@dataclass(frozen=True)
class Program:
    """A client's booking campaign."""

    id: int
    title: str
    program_type: ProgramType
    status: ProgramStatus = ProgramStatus.DRAFT
    conditions: ProgramConditions = field(default_factory=ProgramConditions)
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Slot:
    """Atomic bookable unit: a single date or a Sunday-to-Sunday week."""

    id: int
    program_id: int
    slot_type: SlotType
    start_date: date
    end_date: date
    status: SlotStatus = SlotStatus.OPEN
    tier: Optional[WeekTier] = None
    override: Optional[ConditionsOverride] = None
    created_at: Optional[datetime] = None

    def span(self) -> tuple[date, date]:
        """Half-open occupied range. DATE slots store end_date == start_date."""
        if self.slot_type is SlotType.DATE:
            return self.start_date, self.start_date + timedelta(days=1)
        return self.start_date, self.end_date

    @property
    def is_open(self) -> bool:
        return self.status is SlotStatus.OPEN


@dataclass(frozen=True)
class SlotDraft:
    """A slot about to be inserted."""

    slot_type: SlotType
    start_date: date
    end_date: date
    tier: Optional[WeekTier] = None
    override: Optional[ConditionsOverride] = None

    def span(self) -> tuple[date, date]:
        if self.slot_type is SlotType.DATE:
            return self.start_date, self.start_date + timedelta(days=1)
        return self.start_date, self.end_date


@dataclass(frozen=True)
class Application:
    """An artist's request to fill a slot."""

    id: int
    slot_id: int
    artist_id: str
    status: ApplicationStatus = ApplicationStatus.PENDING
    option: Optional[FeeOption] = None
    created_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status is not ApplicationStatus.CANCELLED


@dataclass(frozen=True)
class Booking:
    """The confirmed assignment of one artist to one slot."""

    id: int
    slot_id: int
    artist_id: str
    application_id: Optional[int]
    status: BookingStatus = BookingStatus.CONFIRMED
    conditions_snapshot: dict[str, Any] = field(default_factory=dict)
    option: Optional[FeeOption] = None
    created_at: Optional[datetime] = None
