import pytest

from helpdesk_sla.config import SLAState, TicketStatus
from helpdesk_sla.sla.application import SLAMetricsService, average_hours
from helpdesk_sla.sla.domain import (
    BusinessHoursConfig,
    SLAConfig,
    StatusChangeEvent,
    Ticket,
)
from helpdesk_sla.sla.infrastructure import StaticConfigProvider

from conftest import utc

HOUR_MS = 3_600_000


@pytest.fixture
def service():
    config = SLAConfig(
        business_hours=BusinessHoursConfig(start_hour=9, end_hour=18),
        company_business_hours={"42": BusinessHoursConfig(start_hour=12, end_hour=14)},
    )
    return SLAMetricsService(StaticConfigProvider(config))


def resolved_same_day():
    """Created Monday 10:00, resolved 14:00 without a reply."""
    return Ticket(
        id="A",
        created_at=utc(2024, 1, 8, 10),
        status=TicketStatus.RESOLVED,
        resolved_at=utc(2024, 1, 8, 14),
    )


def paused_then_resolved():
    return Ticket(
        id="C",
        created_at=utc(2024, 1, 8, 9),
        status=TicketStatus.RESOLVED,
        status_history=[
            StatusChangeEvent("new", "waiting_customer", utc(2024, 1, 8, 10)),
            StatusChangeEvent("waiting_customer", "ongoing", utc(2024, 1, 8, 14)),
            StatusChangeEvent("ongoing", "resolved", utc(2024, 1, 8, 15)),
        ],
        first_response_at=utc(2024, 1, 8, 9, 30),
        resolved_at=utc(2024, 1, 8, 15),
    )


def open_ticket(priority="critical"):
    return Ticket(
        id="O",
        created_at=utc(2024, 1, 8, 9),
        status=TicketStatus.ONGOING,
        priority=priority,
    )


def test_average_hours():
    assert average_hours([]) == 0.0
    assert average_hours([HOUR_MS, 2 * HOUR_MS]) == 1.5
    assert average_hours([HOUR_MS, HOUR_MS, 2 * HOUR_MS]) == 1.33


def test_first_response_falls_back_to_resolution(service):
    assert service.first_response_time_ms(resolved_same_day()) == 4 * HOUR_MS


def test_first_response_undefined_without_reply(service):
    assert service.first_response_time_ms(open_ticket()) is None


def test_resolution_excludes_paused_time(service):
    assert service.resolution_time_ms(paused_then_resolved()) == 2 * HOUR_MS


def test_resolution_requires_resolved_status(service):
    ticket = resolved_same_day()
    ticket.status = TicketStatus.CLOSED

    assert service.resolution_time_ms(ticket) is None


def test_averages_skip_undefined_metrics(service):
    tickets = [resolved_same_day(), paused_then_resolved(), open_ticket()]

    assert service.average_first_response_hours(tickets) == 2.25
    assert service.average_resolution_hours(tickets) == 3.0


def test_averages_of_empty_set_are_zero(service):
    assert service.average_first_response_hours([]) == 0.0
    assert service.average_resolution_hours([]) == 0.0


def test_company_calendar_is_used(service):
    ticket = resolved_same_day()
    ticket.company_id = "42"

    assert service.resolution_time_ms(ticket) == 2 * HOUR_MS


def test_unknown_company_uses_default_calendar(service):
    ticket = resolved_same_day()
    ticket.company_id = "7"

    assert service.resolution_time_ms(ticket) == 4 * HOUR_MS


def test_evaluate_open_critical_ticket(service):
    metrics = service.evaluate_ticket(open_ticket(), utc(2024, 1, 8, 11))

    assert metrics.response_sla.is_breached
    assert metrics.response_sla.time_elapsed_ms == 2 * HOUR_MS
    assert metrics.resolution_sla.state is SLAState.OK
    assert metrics.resolution_sla.percent_consumed == 50
    assert metrics.most_urgent_state is SLAState.BREACHED
    assert metrics.is_any_breached


def test_evaluate_resolved_ticket_is_stable_over_time(service):
    ticket = paused_then_resolved()

    early = service.evaluate_ticket(ticket, utc(2024, 1, 8, 16))
    late = service.evaluate_ticket(ticket, utc(2024, 3, 1, 12))

    assert early == late
    assert late.response_sla.time_elapsed_ms == HOUR_MS // 2
    assert late.resolution_sla.time_elapsed_ms == 2 * HOUR_MS


def test_missing_priority_uses_medium_targets(service):
    metrics = service.evaluate_ticket(open_ticket(priority=None), utc(2024, 1, 8, 12))

    # medium: 4h response, 24h resolution
    assert metrics.response_sla.state is SLAState.WARNING
    assert metrics.resolution_sla.due_date == utc(2024, 1, 10, 15)


def test_summarize(service):
    tickets = [resolved_same_day(), paused_then_resolved(), open_ticket()]

    summary = service.summarize(tickets, utc(2024, 1, 8, 11))

    assert summary.total_tickets == 3
    assert summary.avg_first_response_hours == 2.25
    assert summary.avg_resolution_hours == 3.0
    assert summary.state_counts[SLAState.BREACHED] == 1
    assert sum(summary.state_counts.values()) == 3
    assert summary.breach_rate == 33.33


def test_summarize_empty(service):
    summary = service.summarize([], utc(2024, 1, 8, 11))

    assert summary.total_tickets == 0
    assert summary.breach_rate == 0.0
    assert set(summary.state_counts) == set(SLAState)
    assert not any(summary.state_counts.values())


def test_ticket_rejects_resolution_before_creation():
    with pytest.raises(ValueError):
        Ticket(
            id="X",
            created_at=utc(2024, 1, 8, 10),
            status=TicketStatus.RESOLVED,
            resolved_at=utc(2024, 1, 8, 9),
        )


def closed_without_resolution():
    """Closed at Monday 10:00; no resolved_at and no reply."""
    return Ticket(
        id="K",
        created_at=utc(2024, 1, 8, 9),
        status=TicketStatus.CLOSED,
        status_history=[StatusChangeEvent("new", "closed", utc(2024, 1, 8, 10))],
    )


def test_closed_ticket_stops_clocks_at_last_change(service):
    metrics = service.evaluate_ticket(closed_without_resolution(), utc(2024, 1, 19, 12))

    assert metrics.response_sla.time_elapsed_ms == HOUR_MS
    assert metrics.resolution_sla.time_elapsed_ms == HOUR_MS
    assert metrics.response_sla.state is SLAState.OK
    assert metrics.resolution_sla.state is SLAState.OK
    assert not metrics.is_any_breached
    assert not metrics.resolution_sla.is_paused
    assert metrics.resolution_ms is None


def test_resolved_ticket_without_resolved_at_stops_at_resolution_change(service):
    ticket = Ticket(
        id="R",
        created_at=utc(2024, 1, 8, 9),
        status=TicketStatus.RESOLVED,
        status_history=[
            StatusChangeEvent("new", "ongoing", utc(2024, 1, 8, 9, 30)),
            StatusChangeEvent("ongoing", "resolved", utc(2024, 1, 8, 11)),
        ],
    )

    metrics = service.evaluate_ticket(ticket, utc(2024, 2, 1, 12))

    assert metrics.resolution_sla.time_elapsed_ms == 2 * HOUR_MS
    assert metrics.response_sla.time_elapsed_ms == 2 * HOUR_MS


def test_closed_ticket_without_history_has_no_elapsed_time(service):
    ticket = Ticket(id="Z", created_at=utc(2024, 1, 8, 9), status=TicketStatus.CLOSED)

    metrics = service.evaluate_ticket(ticket, utc(2024, 1, 19, 12))

    assert metrics.resolution_sla.time_elapsed_ms == 0
    assert metrics.most_urgent_state is SLAState.OK


def test_closing_after_now_is_capped_at_now(service):
    metrics = service.evaluate_ticket(closed_without_resolution(), utc(2024, 1, 8, 9, 30))

    assert metrics.resolution_sla.time_elapsed_ms == HOUR_MS // 2


def test_evaluation_of_closed_ticket_does_not_drift(service):
    ticket = closed_without_resolution()

    assert service.evaluate_ticket(ticket, utc(2024, 1, 9, 12)) == \
        service.evaluate_ticket(ticket, utc(2024, 6, 3, 12))


def test_summarize_counts_closed_ticket_as_ok(service):
    summary = service.summarize([closed_without_resolution()], utc(2024, 1, 19, 12))

    assert summary.state_counts[SLAState.OK] == 1
    assert summary.breach_rate == 0.0


def test_average_hours_rounds_half_up():
    assert average_hours([450_000]) == 0.13
    assert average_hours([3_618_000]) == 1.01
    assert average_hours([HOUR_MS, 2 * HOUR_MS + 900_000]) == 1.63
