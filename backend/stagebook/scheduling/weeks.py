"""
Weekly residency generator.

Turns a (start, end) pair into Sunday-aligned 7-day WeekSeeds and tags each
one as a standard or high-demand week. Slot overlap prevention relies on
every generated week being calendar-aligned, so the alignment rules here are
fixed; fees and performance counts per tier come from a TierCalendar that
callers may configure.
"""

from calendar import isleap
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from stagebook.core.exceptions import InvalidRange
from stagebook.domain.models import WeekTier
from stagebook.scheduling.calendar import (
    add_days,
    parse_date,
    ranges_overlap,
    to_next_sunday,
    to_sunday,
)

WEEK_LENGTH_DAYS = 7


def _on(year: int, month: int, day: int) -> date:
    # Feb 29 falls back to Feb 28 outside leap years
    if (month, day) == (2, 29) and not isleap(year):
        day = 28
    return date(year, month, day)


@dataclass(frozen=True)
class VacationWindow:
    """Yearly recurring window ``[start, end)`` given as (month, day) pairs."""

    start_month: int
    start_day: int
    end_month: int
    end_day: int

    @classmethod
    def parse(cls, raw: str) -> "VacationWindow":
        """Parse ``"MM-DD:MM-DD"``."""
        try:
            start, end = raw.split(":")
            sm, sd = (int(part) for part in start.split("-"))
            em, ed = (int(part) for part in end.split("-"))
        except ValueError:
            raise ValueError(f"Invalid vacation window {raw!r}, expected MM-DD:MM-DD") from None
        for month, day in ((sm, sd), (em, ed)):
            try:
                # 2000 is a leap year, so 02-29 passes
                date(2000, month, day)
            except ValueError:
                raise ValueError(f"Invalid vacation window {raw!r}: no such day {month:02d}-{day:02d}") from None
        return cls(sm, sd, em, ed)

    @property
    def crosses_year(self) -> bool:
        return (self.start_month, self.start_day) > (self.end_month, self.end_day)

    def for_year(self, year: int) -> tuple[date, date]:
        """Concrete range of the window that starts in ``year``."""
        start = _on(year, self.start_month, self.start_day)
        end_year = year + 1 if self.crosses_year else year
        return start, _on(end_year, self.end_month, self.end_day)


@dataclass(frozen=True)
class TierDefaults:
    performance_count: int
    fee_cents: int


@dataclass(frozen=True)
class TierCalendar:
    windows: tuple[VacationWindow, ...]
    standard: TierDefaults
    high_demand: TierDefaults

    def is_high_demand(self, start: date, end: date) -> bool:
        # The year before covers the December half of a cross-year window.
        years = {start.year - 1, start.year, end.year}
        for year in sorted(years):
            for window in self.windows:
                win_start, win_end = window.for_year(year)
                if ranges_overlap(start, end, win_start, win_end):
                    return True
        return False

    def classify(self, start: date, end: date) -> WeekTier:
        return WeekTier.HIGH_DEMAND if self.is_high_demand(start, end) else WeekTier.STANDARD

    def defaults_for(self, tier: WeekTier) -> TierDefaults:
        return self.high_demand if tier is WeekTier.HIGH_DEMAND else self.standard


DEFAULT_CALENDAR = TierCalendar(
    windows=(VacationWindow(7, 1, 9, 1), VacationWindow(12, 20, 1, 5)),
    standard=TierDefaults(performance_count=2, fee_cents=15000),
    high_demand=TierDefaults(performance_count=4, fee_cents=30000),
)


@dataclass(frozen=True)
class WeekSeed:
    """Candidate week prior to persistence."""

    start: date
    end: date
    tier: WeekTier
    performance_count: int
    fee_cents: int


def align_range(start_date: Union[str, date], end_date: Union[str, date]) -> tuple[date, date]:
    """Snap a range out to Sunday boundaries; InvalidRange if it ends before it starts."""
    start = to_sunday(parse_date(start_date))
    end = to_next_sunday(parse_date(end_date))
    if end < start:
        raise InvalidRange(
            details={"start": start.isoformat(), "end": end.isoformat()},
        )
    return start, end


def generate_weeks(
    start_date: Union[str, date],
    end_date: Union[str, date],
    calendar: Optional[TierCalendar] = None,
) -> list[WeekSeed]:
    """
    Produce contiguous, non-overlapping Sunday-to-Sunday weeks covering the range.

    Pure: no I/O, same inputs always give the same seeds.
    """
    calendar = calendar or DEFAULT_CALENDAR
    start, end = align_range(start_date, end_date)

    weeks: list[WeekSeed] = []
    cursor = start
    while cursor < end:
        week_end = add_days(cursor, WEEK_LENGTH_DAYS)
        tier = calendar.classify(cursor, week_end)
        defaults = calendar.defaults_for(tier)
        weeks.append(
            WeekSeed(
                start=cursor,
                end=week_end,
                tier=tier,
                performance_count=defaults.performance_count,
                fee_cents=defaults.fee_cents,
            )
        )
        cursor = week_end
    return weeks
