from datetime import date, timedelta

import pytest

from helpdesk_sla.core.exceptions import InvalidTimeRangeException
from helpdesk_sla.sla.domain import BusinessHoursConfig, BusinessTimeCalculator

from conftest import utc

intersect = BusinessTimeCalculator.intersect_business_time

HOUR_MS = 3_600_000


def test_inside_one_business_day(nine_to_six):
    assert intersect(utc(2024, 1, 8, 10), utc(2024, 1, 8, 14), nine_to_six) == 4 * HOUR_MS


def test_weekend_contributes_nothing(nine_to_six):
    # Friday 17:00 -> Monday 10:00
    assert intersect(utc(2024, 1, 5, 17), utc(2024, 1, 8, 10), nine_to_six) == 2 * HOUR_MS


def test_outside_hours_is_clipped(nine_to_six):
    assert intersect(utc(2024, 1, 8, 6), utc(2024, 1, 8, 20), nine_to_six) == 9 * HOUR_MS
    assert intersect(utc(2024, 1, 8, 19), utc(2024, 1, 9, 8), nine_to_six) == 0


def test_full_week(nine_to_six):
    assert intersect(utc(2024, 1, 8, 9), utc(2024, 1, 15, 9), nine_to_six) == 45 * HOUR_MS


def test_empty_interval(nine_to_six):
    instant = utc(2024, 1, 8, 10)
    assert intersect(instant, instant, nine_to_six) == 0


def test_end_before_start_is_rejected(nine_to_six):
    with pytest.raises(InvalidTimeRangeException):
        intersect(utc(2024, 1, 8, 10), utc(2024, 1, 8, 9), nine_to_six)


def test_sub_second_precision(nine_to_six):
    start = utc(2024, 1, 8, 10)
    assert intersect(start, start + timedelta(milliseconds=1500), nine_to_six) == 1500


def test_holidays_are_closed():
    calendar = BusinessHoursConfig(start_hour=9, end_hour=18, holidays=[date(2024, 1, 8)])

    assert intersect(utc(2024, 1, 8, 9), utc(2024, 1, 9, 18), calendar) == 9 * HOUR_MS


def test_days_are_cut_in_the_calendar_time_zone():
    # 09:00-17:00 in Sao Paulo (UTC-3) is 12:00-20:00 UTC
    calendar = BusinessHoursConfig(start_hour=9, end_hour=17, time_zone="America/Sao_Paulo")

    assert intersect(utc(2024, 1, 8, 10), utc(2024, 1, 8, 13), calendar) == 1 * HOUR_MS
    assert intersect(utc(2024, 1, 8, 19), utc(2024, 1, 9, 0), calendar) == 1 * HOUR_MS


def test_non_utc_inputs_are_normalized(nine_to_six):
    from zoneinfo import ZoneInfo

    tokyo = ZoneInfo("Asia/Tokyo")
    start = utc(2024, 1, 8, 10).astimezone(tokyo)
    end = utc(2024, 1, 8, 14).astimezone(tokyo)

    assert intersect(start, end, nine_to_six) == 4 * HOUR_MS


def test_seven_day_calendar_counts_weekends(round_the_clock):
    assert intersect(utc(2024, 1, 6), utc(2024, 1, 8), round_the_clock) == 46 * HOUR_MS


def test_additive_over_split_points(nine_to_six):
    a, c = utc(2024, 1, 4, 7), utc(2024, 1, 10, 12)
    for b in (utc(2024, 1, 5, 12), utc(2024, 1, 6, 3), utc(2024, 1, 8, 18)):
        assert intersect(a, c, nine_to_six) == intersect(a, b, nine_to_six) + intersect(b, c, nine_to_six)


def test_monotonic_in_end(nine_to_six):
    start = utc(2024, 1, 5, 15)
    previous = 0
    for hours in range(0, 96, 5):
        current = intersect(start, start + timedelta(hours=hours), nine_to_six)
        assert current >= previous
        previous = current


def test_default_calendar_is_eight_to_six():
    assert intersect(utc(2024, 1, 8), utc(2024, 1, 9)) == 10 * HOUR_MS


def test_dst_day_keeps_its_real_length():
    # New York springs forward on 2024-03-10: that local day has 23 hours
    calendar = BusinessHoursConfig(
        working_weekdays=range(7), start_hour=0, end_hour=23, time_zone="America/New_York"
    )

    assert intersect(utc(2024, 3, 10), utc(2024, 3, 11, 12), calendar) == 34 * HOUR_MS
