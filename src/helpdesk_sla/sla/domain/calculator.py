"""
Business-Time Calculator
========================

Pure functions turning a ticket's status history into effective SLA time.

Pipeline:
    status history --build_periods--> periods
    periods --effective_business_time--> milliseconds
        (running periods only, each clipped to business windows by
        intersect_business_time)

Nothing here reads the clock or performs I/O; ``now`` and
``observation_end`` are always passed in, so every value can be
recomputed from the history alone.
"""

import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Optional, Sequence, Tuple

from helpdesk_sla.config import SLAState, TicketStatus
from helpdesk_sla.core.exceptions import InvalidTimeRangeException, ValidationException
from helpdesk_sla.shared.infrastructure.logging import get_logger
from helpdesk_sla.sla.domain.entities import StatusChangeEvent, StatusPeriod, as_utc, round_half_up
from helpdesk_sla.sla.domain.policy import is_finished, is_paused
from helpdesk_sla.sla.domain.value_objects import (
    BusinessHoursConfig,
    SLAResult,
    SLAThresholds,
)

logger = get_logger(__name__)

MS_PER_HOUR = 3_600_000
_ONE_MS = timedelta(milliseconds=1)

DEFAULT_BUSINESS_HOURS = BusinessHoursConfig()


def _business_window(day: date, calendar: BusinessHoursConfig) -> Tuple[datetime, datetime]:
    """Opening and closing instants (UTC) of ``day`` in the calendar's zone."""
    zone = calendar.zone
    open_at = datetime.combine(day, time(calendar.start_hour), tzinfo=zone)
    close_at = datetime.combine(day, time(calendar.end_hour), tzinfo=zone)
    return open_at.astimezone(timezone.utc), close_at.astimezone(timezone.utc)


def _local_date(instant: datetime, calendar: BusinessHoursConfig) -> date:
    return instant.astimezone(calendar.zone).date()


class BusinessTimeCalculator:
    """
    Pure functions for SLA business-time calculations.

    Stateless utility class: safe to call concurrently from any number
    of threads without synchronization.
    """

    @staticmethod
    def build_periods(
        created_at: datetime,
        initial_status: TicketStatus,
        events: Iterable[StatusChangeEvent],
        observation_end: datetime
    ) -> List[StatusPeriod]:
        """
        Convert a status history into contiguous status periods.

        The periods exactly cover ``[created_at, observation_end)``.
        Events after ``observation_end`` are ignored. Events earlier than
        the running cursor are out of order and skipped; an event at the
        cursor instant replaces the current status without opening a
        period, so duplicate timestamps collapse to the latest status.
        Callers going through ``Ticket`` or the HTTP API pass events
        already sorted, so there the skip only drops events recorded
        before ``created_at``.

        Args:
            created_at: Ticket creation instant
            initial_status: Status held from creation until the first event
            events: Status changes ordered by ``occurred_at``
            observation_end: End of the measured window

        Returns:
            Periods with strictly positive duration

        Raises:
            InvalidTimeRangeException: ``observation_end`` precedes ``created_at``
        """
        created_at = as_utc(created_at)
        observation_end = as_utc(observation_end)
        if observation_end < created_at:
            raise InvalidTimeRangeException(created_at, observation_end)

        periods: List[StatusPeriod] = []
        cursor = created_at
        current_status = TicketStatus(initial_status)

        for event in events:
            occurred_at = event.occurred_at
            if occurred_at > observation_end:
                continue
            if occurred_at < cursor:
                logger.debug(
                    "Skipping out-of-order status change",
                    extra={
                        "occurred_at": occurred_at.isoformat(),
                        "cursor": cursor.isoformat(),
                        "new_status": event.new_status.value,
                    }
                )
                continue
            if occurred_at > cursor:
                periods.append(StatusPeriod(cursor, occurred_at, current_status))
                cursor = occurred_at
            current_status = TicketStatus(event.new_status)

        if cursor < observation_end:
            periods.append(StatusPeriod(cursor, observation_end, current_status))

        return periods

    @staticmethod
    def intersect_business_time(
        start: datetime,
        end: datetime,
        calendar: BusinessHoursConfig = DEFAULT_BUSINESS_HOURS
    ) -> int:
        """
        Milliseconds of ``[start, end)`` that fall inside business windows.

        Walks local calendar days from the day of ``start`` to the day of
        ``end``, so the cost grows with the number of days spanned, not
        with the length of the interval in minutes.

        Raises:
            InvalidTimeRangeException: ``end`` precedes ``start``
        """
        start = as_utc(start)
        end = as_utc(end)
        if end < start:
            raise InvalidTimeRangeException(start, end)
        if end == start:
            return 0

        total = timedelta(0)
        day = _local_date(start, calendar)
        last_day = _local_date(end, calendar)

        while day <= last_day:
            if calendar.is_business_day(day):
                open_at, close_at = _business_window(day, calendar)
                overlap_start = max(start, open_at)
                overlap_end = min(end, close_at)
                if overlap_start < overlap_end:
                    total += overlap_end - overlap_start
            day += timedelta(days=1)

        return total // _ONE_MS

    @staticmethod
    def effective_business_time(
        periods: Sequence[StatusPeriod],
        calendar: BusinessHoursConfig = DEFAULT_BUSINESS_HOURS
    ) -> int:
        """
        Business milliseconds accumulated by the running periods.

        Paused periods contribute nothing regardless of their length.
        ``periods`` must be ordered and non-overlapping, as produced by
        ``build_periods``.
        """
        total = 0
        previous_end: Optional[datetime] = None

        for period in periods:
            assert period.end_time >= period.start_time, "period with negative duration"
            assert previous_end is None or period.start_time >= previous_end, "overlapping periods"
            previous_end = period.end_time

            if is_paused(period.status):
                continue
            total += BusinessTimeCalculator.intersect_business_time(
                period.start_time, period.end_time, calendar
            )

        return total

    @staticmethod
    def next_business_moment(
        instant: datetime,
        calendar: BusinessHoursConfig = DEFAULT_BUSINESS_HOURS
    ) -> datetime:
        """``instant`` itself when the desk is open, else the next opening."""
        instant = as_utc(instant)
        day = _local_date(instant, calendar)
        while True:
            if calendar.is_business_day(day):
                open_at, close_at = _business_window(day, calendar)
                if instant < close_at:
                    return max(instant, open_at)
            day += timedelta(days=1)

    @staticmethod
    def add_business_time(
        start: datetime,
        hours: float,
        calendar: BusinessHoursConfig = DEFAULT_BUSINESS_HOURS
    ) -> datetime:
        """
        Instant at which ``hours`` of business time have elapsed since ``start``.

        Used for SLA due dates. Closed days and holidays are skipped.
        """
        remaining = timedelta(hours=hours)
        current = BusinessTimeCalculator.next_business_moment(start, calendar)

        while remaining > timedelta(0):
            _, close_at = _business_window(_local_date(current, calendar), calendar)
            available = close_at - current
            if remaining <= available:
                return current + remaining
            remaining -= available
            current = BusinessTimeCalculator.next_business_moment(close_at, calendar)

        return current

    @staticmethod
    def calculate_sla_status(
        created_at: datetime,
        sla_hours: float,
        now: datetime,
        periods: Sequence[StatusPeriod] = (),
        resolved_at: Optional[datetime] = None,
        calendar: BusinessHoursConfig = DEFAULT_BUSINESS_HOURS,
        current_status: TicketStatus = TicketStatus.NEW,
        thresholds: SLAThresholds = SLAThresholds()
    ) -> SLAResult:
        """
        Evaluate one SLA clock.

        The clock stops at ``resolved_at`` when given; for a finished
        status without ``resolved_at`` it stops where the last period
        entered a finished status (or at the end of the last period);
        otherwise it runs until ``now``.

        Args:
            created_at: When the clock started
            sla_hours: Target in business hours
            now: Evaluation instant
            periods: Status periods; empty means the clock never paused
            resolved_at: When the clock was satisfied, if it was
            calendar: Business calendar
            current_status: Ticket status at ``now``
            thresholds: Warning/critical percentages

        Returns:
            SLAResult for the clock
        """
        if sla_hours <= 0:
            raise ValidationException(
                "sla_hours must be positive", {"sla_hours": sla_hours}
            )

        created_at = as_utc(created_at)
        finished = resolved_at is not None or is_finished(current_status)

        end = as_utc(now)
        if resolved_at is not None:
            end = as_utc(resolved_at)
        elif finished and periods:
            last = periods[-1]
            end = last.start_time if is_finished(last.status) else last.end_time

        if end < created_at:
            raise InvalidTimeRangeException(created_at, end)

        due_date = BusinessTimeCalculator.add_business_time(created_at, sla_hours, calendar)

        if periods:
            clipped = [p for p in (period.clip(end) for period in periods) if p is not None]
            elapsed = BusinessTimeCalculator.effective_business_time(clipped, calendar)
        else:
            elapsed = BusinessTimeCalculator.intersect_business_time(created_at, end, calendar)

        total_ms = int(sla_hours * MS_PER_HOUR)
        percent = min(100.0, elapsed / total_ms * 100)
        is_breached = elapsed > total_ms

        if is_breached:
            state = SLAState.BREACHED
        elif percent >= thresholds.critical:
            state = SLAState.CRITICAL
        elif percent >= thresholds.warning:
            state = SLAState.WARNING
        else:
            state = SLAState.OK

        return SLAResult(
            time_elapsed_ms=elapsed,
            time_remaining_ms=max(0, total_ms - elapsed),
            percent_consumed=math.floor(percent + 0.5),
            is_breached=is_breached,
            due_date=due_date,
            state=state,
            is_paused=not finished and is_paused(current_status),
        )

    @staticmethod
    def format_time_remaining(time_ms: int, is_breached: bool = False) -> str:
        """Render a duration as "2d 3h", "3h 5m" or "12m"."""
        if time_ms <= 0:
            return "SLA breached" if is_breached else "Overdue"

        hours = time_ms // MS_PER_HOUR
        minutes = (time_ms % MS_PER_HOUR) // 60_000

        if hours > 24:
            return f"{hours // 24}d {hours % 24}h"
        if hours > 0:
            return f"{hours}h {minutes}m"
        return f"{minutes}m"


def to_hours(time_ms: int) -> float:
    """Milliseconds to hours, rounded half up to two decimals for reporting."""
    return round_half_up(time_ms, MS_PER_HOUR)
