from datetime import date

import pytest

from helpdesk_sla.config import SLAState, TicketStatus
from helpdesk_sla.core.exceptions import ValidationException
from helpdesk_sla.sla.domain import (
    BusinessHoursConfig,
    BusinessTimeCalculator,
    SLAThresholds,
    StatusChangeEvent,
)

from conftest import utc

HOUR_MS = 3_600_000
CREATED = utc(2024, 1, 8, 8)  # Monday, desk opens 08:00

status = BusinessTimeCalculator.calculate_sla_status


# ========== Due dates ==========

def test_next_business_moment():
    calendar = BusinessHoursConfig()

    assert BusinessTimeCalculator.next_business_moment(utc(2024, 1, 8, 7), calendar) == utc(2024, 1, 8, 8)
    assert BusinessTimeCalculator.next_business_moment(utc(2024, 1, 8, 12), calendar) == utc(2024, 1, 8, 12)
    assert BusinessTimeCalculator.next_business_moment(utc(2024, 1, 8, 18), calendar) == utc(2024, 1, 9, 8)
    assert BusinessTimeCalculator.next_business_moment(utc(2024, 1, 6, 12), calendar) == utc(2024, 1, 8, 8)


def test_add_business_time_crosses_weekend():
    due = BusinessTimeCalculator.add_business_time(utc(2024, 1, 5, 16), 4)
    assert due == utc(2024, 1, 8, 10)


def test_add_business_time_skips_holidays():
    calendar = BusinessHoursConfig(holidays=[date(2024, 1, 8)])
    due = BusinessTimeCalculator.add_business_time(utc(2024, 1, 5, 16), 4, calendar)
    assert due == utc(2024, 1, 9, 10)


def test_add_business_time_spans_several_days():
    due = BusinessTimeCalculator.add_business_time(CREATED, 24)
    assert due == utc(2024, 1, 10, 12)


def test_add_zero_hours_lands_on_next_opening():
    assert BusinessTimeCalculator.add_business_time(utc(2024, 1, 8, 20), 0) == utc(2024, 1, 9, 8)


# ========== SLA states ==========

@pytest.mark.parametrize("now, state, percent", [
    (utc(2024, 1, 8, 9), SLAState.OK, 25),
    (utc(2024, 1, 8, 11), SLAState.WARNING, 75),
    (utc(2024, 1, 8, 11, 36), SLAState.CRITICAL, 90),
    (utc(2024, 1, 8, 12), SLAState.CRITICAL, 100),
    (utc(2024, 1, 8, 12, 30), SLAState.BREACHED, 100),
])
def test_state_thresholds(now, state, percent):
    result = status(CREATED, 4, now)

    assert result.state is state
    assert result.percent_consumed == percent
    assert result.due_date == utc(2024, 1, 8, 12)


def test_breached_clock():
    result = status(CREATED, 4, utc(2024, 1, 9, 9))

    assert result.is_breached
    assert result.time_elapsed_ms == 11 * HOUR_MS
    assert result.time_remaining_ms == 0


def test_percent_rounds_half_up():
    result = status(CREATED, 8, utc(2024, 1, 8, 9))
    assert result.percent_consumed == 13


def test_custom_thresholds():
    thresholds = SLAThresholds(warning=50, critical=60)
    result = status(CREATED, 4, utc(2024, 1, 8, 10), thresholds=thresholds)
    assert result.state is SLAState.WARNING


def test_thresholds_must_be_ordered():
    with pytest.raises(ValueError):
        SLAThresholds(warning=90, critical=75)


def test_resolved_clock_stops_at_resolution():
    result = status(
        CREATED, 4, utc(2024, 1, 10, 12),
        resolved_at=utc(2024, 1, 8, 10),
        current_status=TicketStatus.RESOLVED
    )

    assert result.time_elapsed_ms == 2 * HOUR_MS
    assert result.state is SLAState.OK
    assert not result.is_paused


def test_finished_status_without_resolved_at_stops_at_last_period():
    periods = BusinessTimeCalculator.build_periods(
        CREATED,
        TicketStatus.NEW,
        [StatusChangeEvent("new", "closed", utc(2024, 1, 8, 10))],
        utc(2024, 1, 8, 10)
    )

    result = status(
        CREATED, 4, utc(2024, 1, 10, 12),
        periods=periods,
        current_status=TicketStatus.CLOSED
    )

    assert result.time_elapsed_ms == 2 * HOUR_MS


def test_paused_time_is_not_consumed():
    now = utc(2024, 1, 8, 16)
    periods = BusinessTimeCalculator.build_periods(
        CREATED,
        TicketStatus.NEW,
        [StatusChangeEvent("new", "waiting_customer", utc(2024, 1, 8, 9))],
        now
    )

    result = status(
        CREATED, 4, now,
        periods=periods,
        current_status=TicketStatus.WAITING_CUSTOMER
    )

    assert result.time_elapsed_ms == 1 * HOUR_MS
    assert result.is_paused
    assert result.state is SLAState.OK


def test_non_positive_target_is_rejected():
    with pytest.raises(ValidationException):
        status(CREATED, 0, utc(2024, 1, 8, 9))


def test_result_to_dict():
    data = status(CREATED, 4, utc(2024, 1, 8, 11)).to_dict()

    assert data["state"] == "warning"
    assert data["due_date"] == "2024-01-08T12:00:00+00:00"
    assert data["time_remaining_ms"] == HOUR_MS


# ========== Formatting ==========

@pytest.mark.parametrize("ms, breached, label", [
    (51 * HOUR_MS, False, "2d 3h"),
    (3 * HOUR_MS + 5 * 60_000, False, "3h 5m"),
    (12 * 60_000, False, "12m"),
    (0, True, "SLA breached"),
    (0, False, "Overdue"),
])
def test_format_time_remaining(ms, breached, label):
    assert BusinessTimeCalculator.format_time_remaining(ms, breached) == label


def test_elapsed_within_calendar():
    calendar = BusinessHoursConfig(start_hour=9, end_hour=18)
    result = status(utc(2024, 1, 5, 17), 8, utc(2024, 1, 8, 10), calendar=calendar)

    assert result.time_elapsed_ms == 2 * HOUR_MS
    assert result.due_date == utc(2024, 1, 8, 16)


def test_finished_status_ignores_trailing_closed_period():
    now = utc(2024, 1, 19, 12)
    periods = BusinessTimeCalculator.build_periods(
        CREATED,
        TicketStatus.NEW,
        [StatusChangeEvent("new", "closed", utc(2024, 1, 8, 10))],
        now
    )

    result = status(CREATED, 4, now, periods=periods, current_status=TicketStatus.CLOSED)

    assert result.time_elapsed_ms == 2 * HOUR_MS
    assert not result.is_breached


def test_to_hours_rounds_half_up():
    from helpdesk_sla.sla.domain import to_hours

    assert to_hours(450_000) == 0.13
    assert to_hours(HOUR_MS) == 1.0
