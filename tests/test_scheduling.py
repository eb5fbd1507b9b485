from __future__ import annotations

from datetime import date

import pytest

from utils.scheduling import available_dates, parse_month


def test_parse_month_is_case_insensitive():
    assert parse_month("March") == 3
    assert parse_month(" december ") == 12


def test_parse_month_rejects_unknown_names():
    with pytest.raises(ValueError):
        parse_month("marzo")


def test_offered_days_of_a_future_month():
    dates = available_dates(2025, 3, today=date(2025, 2, 1))
    assert dates == [date(2025, 3, d) for d in (10, 15, 20, 24, 28)]


def test_past_days_are_excluded_and_tomorrow_added():
    dates = available_dates(2025, 3, today=date(2025, 3, 16))
    assert dates == [date(2025, 3, 17), date(2025, 3, 20), date(2025, 3, 24), date(2025, 3, 28)]


def test_today_itself_is_still_offered():
    dates = available_dates(2025, 3, today=date(2025, 3, 20))
    assert dates[0] == date(2025, 3, 20)
    assert date(2025, 3, 21) in dates


def test_tomorrow_in_next_month_only_counts_for_that_month():
    today = date(2025, 3, 31)
    assert available_dates(2025, 3, today=today) == []
    assert available_dates(2025, 4, today=today)[0] == date(2025, 4, 1)


def test_tomorrow_on_offered_day_is_not_duplicated():
    dates = available_dates(2025, 3, today=date(2025, 3, 9))
    assert dates.count(date(2025, 3, 10)) == 1


def test_past_month_is_empty():
    assert available_dates(2024, 1, today=date(2025, 3, 1)) == []


def test_invalid_month_number():
    with pytest.raises(ValueError):
        available_dates(2025, 13, today=date(2025, 3, 1))
