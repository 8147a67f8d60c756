"""Tests for draw date parsing. ``now`` is Saturday 10 January 2026, noon."""
from datetime import datetime, timedelta

from src.parse.dates import (
    UK_TZ,
    from_countdown,
    parse_day_month,
    parse_ends_in_days,
    parse_long_date,
    parse_numeric_date,
    parse_relative_day,
    parse_today_time,
)


def uk(year, month, day, hour=21, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=UK_TZ)


def test_long_date_with_year_and_time():
    assert parse_long_date("Wednesday 11th February 2026 at 9pm") == uk(2026, 2, 11, 21)


def test_long_date_at_sign_and_minutes(now):
    assert parse_long_date("Friday 30th January @ 10:00pm", now=now) == uk(2026, 1, 30, 22)


def test_long_date_default_hour():
    assert parse_long_date("27 December 2025") == uk(2025, 12, 27, 21)
    assert parse_long_date("27 December 2025", default_hour=23) == uk(2025, 12, 27, 23)


def test_long_date_rolls_into_next_year(now):
    """A yearless date already in the past means next year."""
    assert parse_long_date("5th January", now=now) == uk(2027, 1, 5)


def test_long_date_rejects_garbage():
    assert parse_long_date("soon") is None
    assert parse_long_date(None) is None


def test_numeric_date():
    assert parse_numeric_date("14/02/2026", hour=22) == uk(2026, 2, 14, 22)
    assert parse_numeric_date("31/02/2026") is None


def test_day_month(now):
    assert parse_day_month("Mon 29th Dec", now=now) == uk(2026, 12, 29)
    assert parse_day_month("ENDS 14 FEB", hour=23, minute=59, now=now) == uk(2026, 2, 14, 23, 59)
    assert parse_day_month("FEB 14", now=now) == uk(2026, 2, 14)


def test_relative_day(now):
    assert parse_relative_day("Draw Tonight", now=now) == uk(2026, 1, 10)
    assert parse_relative_day("Draw Tomorrow", now=now) == uk(2026, 1, 11)
    assert parse_relative_day("ENDS SUNDAY", now=now) == uk(2026, 1, 11)


def test_relative_weekday_is_never_today(now):
    assert parse_relative_day("ends saturday", now=now) == uk(2026, 1, 17)


def test_relative_day_without_weekdays(now):
    assert parse_relative_day("Draw Monday", now=now, weekdays=False) is None


def test_ends_in_days(now):
    assert parse_ends_in_days("Ends in 3 days", now=now) == uk(2026, 1, 13)
    assert parse_ends_in_days("Just launched", now=now) is None


def test_today_time(now):
    assert parse_today_time("ENDS TODAY 23:00", now=now) == uk(2026, 1, 10, 23)
    assert parse_today_time("ENDS TODAY 25:00", now=now) is None


def test_from_countdown(now):
    assert from_countdown(2, 5, now) == now + timedelta(days=2, hours=5)


def test_long_date_inside_sentence():
    text = "The draw date and time: Wednesday 11th February 2026 at 9:30pm on our Facebook page"
    assert parse_long_date(text) == uk(2026, 2, 11, 21, 30)


def test_day_month_full_month_name(now):
    assert parse_day_month("Ends Tue 10th February", now=now) == uk(2026, 2, 10)
