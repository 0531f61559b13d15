from stagebook.domain.conditions import (
    ConditionsOverride,
    EffectiveConditions,
    Entry,
    FeeOption,
    Inclusion,
    ProgramConditions,
    Remuneration,
    ScheduleEntry,
    TierRemuneration,
)
from stagebook.domain.models import (
    Application,
    ApplicationStatus,
    Booking,
    BookingStatus,
    Program,
    ProgramStatus,
    ProgramType,
    Slot,
    SlotDraft,
    SlotStatus,
    SlotType,
    WeekTier,
)
from stagebook.domain.value_objects import Money

__all__ = [
    "Application",
    "ApplicationStatus",
    "Booking",
    "BookingStatus",
    "ConditionsOverride",
    "EffectiveConditions",
    "Entry",
    "FeeOption",
    "Inclusion",
    "Money",
    "Program",
    "ProgramConditions",
    "ProgramStatus",
    "ProgramType",
    "Remuneration",
    "ScheduleEntry",
    "Slot",
    "SlotDraft",
    "SlotStatus",
    "SlotType",
    "TierRemuneration",
    "WeekTier",
]
