"""
SLA Application Services
=========================

Application services orchestrate business logic and coordinate between
domain objects and configuration.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on abstractions (config provider), not
  concrete implementations
"""

from abc import ABC, abstractmethod
from collections import Counter
from datetime import datetime
from typing import Iterable, List, Optional

from helpdesk_sla.config import SLAState
from helpdesk_sla.shared.infrastructure.logging import get_logger, log_latency
from helpdesk_sla.sla.domain import (
    BusinessHoursConfig,
    BusinessTimeCalculator,
    SLAConfig,
    SLASummary,
    StatusPeriod,
    Ticket,
    TicketSLAMetrics,
    is_finished,
)
from helpdesk_sla.sla.domain.calculator import MS_PER_HOUR
from helpdesk_sla.sla.domain.entities import as_utc, round_half_up

logger = get_logger(__name__)


# ========== Configuration Interface (Dependency Inversion) ==========

class ISLAConfigProvider(ABC):
    """Interface for SLA configuration access."""

    @abstractmethod
    def get_config(self) -> SLAConfig:
        """Get current SLA configuration."""


def average_hours(values_ms: List[int]) -> float:
    """Mean of millisecond durations in hours, rounded half up to two decimals; 0 when empty."""
    if not values_ms:
        return 0.0
    return round_half_up(sum(values_ms), len(values_ms) * MS_PER_HOUR)


# ========== Application Services ==========

class SLAMetricsService:
    """
    Service computing effective SLA times and metrics for tickets.

    Every call reads one configuration snapshot and the tickets passed
    in; nothing is cached, so results are always recomputed from the
    status history.
    """

    def __init__(self, config_provider: ISLAConfigProvider):
        self._config_provider = config_provider

    def business_hours_for(self, ticket: Ticket) -> BusinessHoursConfig:
        return self._config_provider.get_config().get_business_hours(ticket.company_id)

    def periods_for(self, ticket: Ticket, observation_end: datetime) -> List[StatusPeriod]:
        """Status periods of ``ticket`` up to ``observation_end``."""
        return BusinessTimeCalculator.build_periods(
            ticket.created_at,
            ticket.initial_status,
            ticket.status_history,
            observation_end
        )

    def effective_time_ms(self, ticket: Ticket, observation_end: datetime) -> int:
        """Effective business time of ``ticket`` between creation and ``observation_end``."""
        periods = self.periods_for(ticket, observation_end)
        return BusinessTimeCalculator.effective_business_time(
            periods, self.business_hours_for(ticket)
        )

    def first_response_time_ms(self, ticket: Ticket) -> Optional[int]:
        """
        Effective time until first response.

        Falls back to the resolution instant for tickets resolved without
        a reply. None when the ticket has neither.
        """
        end = ticket.first_response_instant
        if end is None:
            return None
        return self.effective_time_ms(ticket, end)

    def resolution_time_ms(self, ticket: Ticket) -> Optional[int]:
        """Effective time until resolution; None unless the ticket is resolved."""
        if not ticket.is_resolved:
            return None
        return self.effective_time_ms(ticket, ticket.resolved_at)

    def average_first_response_hours(self, tickets: Iterable[Ticket]) -> float:
        values = [
            value for value in (self.first_response_time_ms(t) for t in tickets)
            if value is not None
        ]
        return average_hours(values)

    def average_resolution_hours(self, tickets: Iterable[Ticket]) -> float:
        values = [
            value for value in (self.resolution_time_ms(t) for t in tickets)
            if value is not None
        ]
        return average_hours(values)

    def clock_stop(
        self,
        ticket: Ticket,
        terminal: Optional[datetime],
        now: datetime
    ) -> Optional[datetime]:
        """
        Instant at which an SLA clock stopped, or None while it runs.

        ``terminal`` wins when known. A finished ticket without it stops
        at its last status change (creation when it has no history),
        never later than ``now``.
        """
        if terminal is not None:
            return terminal
        if not is_finished(ticket.status):
            return None
        if ticket.status_history:
            last_change = max(ticket.status_history[-1].occurred_at, ticket.created_at)
        else:
            last_change = ticket.created_at
        return min(last_change, as_utc(now))

    def evaluate_ticket(self, ticket: Ticket, now: datetime) -> TicketSLAMetrics:
        """
        Evaluate both SLA clocks of a ticket at ``now``.

        The response clock stops at the first response (or resolution);
        the resolution clock stops at ``resolved_at``. A ticket that is
        resolved or closed without those instants stops both clocks at
        its last status change. Clocks still running are measured up to
        ``now``.

        Args:
            ticket: Ticket with its status history
            now: Evaluation instant

        Returns:
            TicketSLAMetrics with both SLA results
        """
        config = self._config_provider.get_config()
        calendar = config.get_business_hours(ticket.company_id)
        targets = config.get_targets(ticket.priority)
        now = as_utc(now)

        response_end = self.clock_stop(ticket, ticket.first_response_instant, now)
        response_periods = self.periods_for(ticket, response_end or now)
        response_sla = BusinessTimeCalculator.calculate_sla_status(
            ticket.created_at,
            targets.response_hours,
            now,
            periods=response_periods,
            resolved_at=response_end,
            calendar=calendar,
            current_status=ticket.status,
            thresholds=config.thresholds
        )

        resolution_end = self.clock_stop(ticket, ticket.resolved_at, now)
        resolution_periods = self.periods_for(ticket, resolution_end or now)
        resolution_sla = BusinessTimeCalculator.calculate_sla_status(
            ticket.created_at,
            targets.resolution_hours,
            now,
            periods=resolution_periods,
            resolved_at=resolution_end,
            calendar=calendar,
            current_status=ticket.status,
            thresholds=config.thresholds
        )

        return TicketSLAMetrics(
            ticket_id=ticket.id,
            response_sla=response_sla,
            resolution_sla=resolution_sla,
            first_response_ms=self.first_response_time_ms(ticket),
            resolution_ms=self.resolution_time_ms(ticket),
        )

    def evaluate_tickets(self, tickets: Iterable[Ticket], now: datetime) -> List[TicketSLAMetrics]:
        return [self.evaluate_ticket(ticket, now) for ticket in tickets]

    def summarize(self, tickets: Iterable[Ticket], now: datetime) -> SLASummary:
        """
        Dashboard aggregate: average first-response and resolution hours
        plus ticket counts per most urgent SLA state.
        """
        tickets = list(tickets)

        with log_latency(logger, "sla_summary", tickets=len(tickets)):
            metrics = self.evaluate_tickets(tickets, now)
            counts = Counter(m.most_urgent_state for m in metrics)

            summary = SLASummary(
                total_tickets=len(tickets),
                avg_first_response_hours=average_hours(
                    [m.first_response_ms for m in metrics if m.first_response_ms is not None]
                ),
                avg_resolution_hours=average_hours(
                    [m.resolution_ms for m in metrics if m.resolution_ms is not None]
                ),
                state_counts={state: counts.get(state, 0) for state in SLAState},
            )

        return summary
