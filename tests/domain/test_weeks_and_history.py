"""Tests for ISO week helpers and effective-dated history lookup."""

from dataclasses import dataclass
from datetime import date

import pytest

from timebank_kernel.domain.history import effective_as_of
from timebank_kernel.domain.weeks import (
    days_in_year,
    is_sunday,
    iter_year,
    parse_week_id,
    week_dates,
    week_id_for,
    week_start,
)
from timebank_kernel.exceptions import InvalidWeekIdError


class TestWeeks:

    @pytest.mark.parametrize(
        "day, week_id",
        [
            (date(2025, 1, 6), "2025-W02"),
            (date(2024, 12, 30), "2025-W01"),
            (date(2021, 1, 3), "2020-W53"),
            (date(2025, 1, 12), "2025-W02"),
        ],
    )
    def test_week_id_for(self, day, week_id):
        assert week_id_for(day) == week_id

    def test_parse_and_start(self):
        assert parse_week_id("2025-W02") == (2025, 2)
        assert week_start("2025-W02") == date(2025, 1, 6)

    def test_week_dates_monday_to_sunday(self):
        dates = week_dates("2025-W02")

        assert len(dates) == 7
        assert dates[0] == date(2025, 1, 6)
        assert is_sunday(dates[-1])

    @pytest.mark.parametrize("bad", ["2025-2", "2025W02", "2025-W54", "2025-W00", "", "W02-2025"])
    def test_invalid_week_ids(self, bad):
        with pytest.raises(InvalidWeekIdError) as exc_info:
            parse_week_id(bad)

        assert exc_info.value.code == "INVALID_WEEK_ID"

    def test_week_53_only_in_long_years(self):
        assert parse_week_id("2020-W53") == (2020, 53)
        with pytest.raises(InvalidWeekIdError):
            parse_week_id("2025-W53")

    def test_week_ids_sort_chronologically(self):
        ids = ["2025-W10", "2024-W52", "2025-W02"]

        assert sorted(ids) == ["2024-W52", "2025-W02", "2025-W10"]

    def test_year_lengths(self):
        assert days_in_year(2024) == 366
        assert days_in_year(2025) == 365
        assert len(list(iter_year(2024))) == 366


@dataclass(frozen=True)
class _Entry:
    effective_date: date
    value: int


class TestEffectiveAsOf:

    entries = (
        _Entry(date(2025, 1, 1), 1),
        _Entry(date(2025, 3, 1), 2),
        _Entry(date(2025, 6, 1), 3),
    )

    @pytest.mark.parametrize(
        "as_of, expected",
        [
            (date(2024, 12, 31), None),
            (date(2025, 1, 1), 1),
            (date(2025, 2, 28), 1),
            (date(2025, 3, 1), 2),
            (date(2026, 1, 1), 3),
        ],
    )
    def test_latest_entry_not_after_date(self, as_of, expected):
        found = effective_as_of(self.entries, as_of)

        assert (found.value if found else None) == expected

    def test_empty_history(self):
        assert effective_as_of((), date(2025, 1, 1)) is None
