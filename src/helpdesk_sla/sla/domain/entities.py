"""
SLA Domain Entities
====================

Pure Python domain objects for SLA accounting.

Following Domain-Driven Design principles, these objects contain
business logic and are free of infrastructure concerns.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Dict, List, Optional

from helpdesk_sla.config import SLAState, TicketStatus

if TYPE_CHECKING:
    from helpdesk_sla.sla.domain.value_objects import SLAResult


def as_utc(value: datetime) -> datetime:
    """Normalize an instant to UTC; naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def round_half_up(numerator: int, denominator: int, places: int = 2) -> float:
    """
    ``numerator / denominator`` rounded half up to ``places`` decimals.

    Exact integer arithmetic: 0.125 becomes 0.13.
    """
    scale = 10 ** places
    return (numerator * scale * 2 + denominator) // (denominator * 2) / scale


@dataclass(frozen=True)
class StatusChangeEvent:
    """One entry of a ticket's append-only status history."""

    old_status: Optional[TicketStatus]
    new_status: TicketStatus
    occurred_at: datetime

    def __post_init__(self):
        object.__setattr__(self, "occurred_at", as_utc(self.occurred_at))
        object.__setattr__(self, "new_status", TicketStatus(self.new_status))
        if self.old_status is not None:
            object.__setattr__(self, "old_status", TicketStatus(self.old_status))


@dataclass(frozen=True)
class StatusPeriod:
    """
    Interval ``[start_time, end_time)`` during which a ticket held ``status``.

    Derived from the status history on every query, never persisted.
    """

    start_time: datetime
    end_time: datetime
    status: TicketStatus

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    def clip(self, end: datetime) -> Optional["StatusPeriod"]:
        """Truncate the period at ``end``; None when nothing is left."""
        if self.start_time >= end:
            return None
        if self.end_time <= end:
            return self
        return StatusPeriod(self.start_time, end, self.status)


@dataclass
class Ticket:
    """
    Ticket as seen by the SLA engine.

    Carries only what the engine reads: creation instant, the status
    history and the terminal instants. The ticket lifecycle service
    owns every other attribute. ``status_history`` is sorted by
    ``occurred_at`` on construction.
    """

    id: str
    created_at: datetime
    status: TicketStatus
    initial_status: TicketStatus = TicketStatus.NEW
    status_history: List[StatusChangeEvent] = field(default_factory=list)

    first_response_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    priority: Optional[str] = None
    company_id: Optional[str] = None

    def __post_init__(self):
        """Normalize instants and validate ticket on initialization."""
        self.created_at = as_utc(self.created_at)
        if self.first_response_at is not None:
            self.first_response_at = as_utc(self.first_response_at)
        if self.resolved_at is not None:
            self.resolved_at = as_utc(self.resolved_at)

        if self.first_response_at and self.first_response_at < self.created_at:
            raise ValueError("first_response_at cannot be before created_at")

        if self.resolved_at and self.resolved_at < self.created_at:
            raise ValueError("resolved_at cannot be before created_at")

        self.status_history = sorted(self.status_history, key=lambda e: e.occurred_at)

    @property
    def first_response_instant(self) -> Optional[datetime]:
        """
        Instant that ends the first-response clock.

        A ticket resolved without an intermediate reply counts its
        resolution as the first response.
        """
        return self.first_response_at or self.resolved_at

    @property
    def is_resolved(self) -> bool:
        """Resolution metrics are only defined for resolved tickets."""
        return self.status == TicketStatus.RESOLVED and self.resolved_at is not None


@dataclass
class TicketSLAMetrics:
    """
    SLA figures for one ticket at one evaluation instant.

    ``first_response_ms``/``resolution_ms`` are None when the metric is
    not defined for the ticket (no response yet, not resolved).
    """

    ticket_id: str
    response_sla: "SLAResult"
    resolution_sla: "SLAResult"
    first_response_ms: Optional[int] = None
    resolution_ms: Optional[int] = None

    @property
    def most_urgent_state(self) -> SLAState:
        """The worse of the two clocks."""
        order = list(SLAState)
        return max(self.response_sla.state, self.resolution_sla.state, key=order.index)

    @property
    def is_any_breached(self) -> bool:
        return self.response_sla.is_breached or self.resolution_sla.is_breached


@dataclass(frozen=True)
class SLASummary:
    """Dashboard aggregate over a set of tickets."""

    total_tickets: int
    avg_first_response_hours: float
    avg_resolution_hours: float
    state_counts: Dict[SLAState, int]

    @property
    def breach_rate(self) -> float:
        """Percentage of tickets with a breached clock."""
        if not self.total_tickets:
            return 0.0
        breached = self.state_counts.get(SLAState.BREACHED, 0)
        return round_half_up(breached * 100, self.total_tickets)
