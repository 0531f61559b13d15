"""
Tests for date parsing, Sunday alignment and labels.
"""

from datetime import date

import pytest

from stagebook.core.exceptions import InvalidRange
from stagebook.scheduling.calendar import (
    format_localized,
    format_range,
    parse_date,
    ranges_overlap,
    to_next_sunday,
    to_sunday,
)


def test_parse_iso_and_french_forms():
    assert parse_date("2025-01-05") == date(2025, 1, 5)
    assert parse_date(" 05/01/2025 ") == date(2025, 1, 5)
    assert parse_date(date(2025, 3, 1)) == date(2025, 3, 1)


@pytest.mark.parametrize("raw", ["", "2025-1-5", "tomorrow", "2025-02-30", "31/02/2025"])
def test_parse_rejects_invalid_input(raw):
    with pytest.raises(InvalidRange) as exc_info:
        parse_date(raw)
    assert exc_info.value.details["value"] == raw


def test_sunday_alignment():
    friday = date(2025, 1, 3)
    sunday = date(2025, 1, 5)
    assert to_sunday(friday) == date(2024, 12, 29)
    assert to_next_sunday(friday) == sunday
    # A Sunday is its own boundary both ways
    assert to_sunday(sunday) == sunday
    assert to_next_sunday(sunday) == sunday


def test_ranges_overlap_is_half_open():
    a = (date(2025, 1, 5), date(2025, 1, 12))
    assert ranges_overlap(*a, date(2025, 1, 11), date(2025, 1, 12))
    assert not ranges_overlap(*a, date(2025, 1, 12), date(2025, 1, 19))
    assert not ranges_overlap(*a, date(2024, 12, 29), date(2025, 1, 5))


def test_french_labels():
    assert format_localized(date(2025, 1, 5)) == "05 janvier 2025"
    assert format_localized(date(2025, 8, 14)) == "14 août 2025"
    assert format_localized(None) == "—"
    assert format_range(date(2025, 1, 5), date(2025, 1, 12)) == "2025-01-05 → 2025-01-12"
