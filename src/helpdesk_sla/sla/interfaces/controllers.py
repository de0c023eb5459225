"""
SLA Controllers (API Routes)
=============================

FastAPI routes exposing the business-time engine to the dashboard and
reporting layer.

Controllers are thin - they delegate to application services. The
server clock is read here, at the edge, and nowhere below.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from helpdesk_sla.shared.infrastructure.logging import get_context_logger
from helpdesk_sla.sla.application import (
    BusinessHoursResponse,
    DashboardResponse,
    EffectiveTimeRequest,
    EffectiveTimeResponse,
    ISLAConfigProvider,
    SLAMetricsService,
    StatusPeriodResponse,
    TicketBatchRequest,
    TicketBatchResponse,
    TicketSLAResponse,
)
from helpdesk_sla.sla.domain import BusinessTimeCalculator, is_paused, to_hours

router = APIRouter(prefix="/sla", tags=["SLA"])


# ========== Example payloads for Swagger ==========

EFFECTIVE_TIME_RESPONSE_EXAMPLE = {
    "effective_ms": 7200000,
    "effective_hours": 2.0,
    "periods": [
        {
            "start_time": "2024-01-08T09:00:00Z",
            "end_time": "2024-01-08T10:00:00Z",
            "status": "new",
            "paused": False
        },
        {
            "start_time": "2024-01-08T10:00:00Z",
            "end_time": "2024-01-08T14:00:00Z",
            "status": "waiting_customer",
            "paused": True
        },
        {
            "start_time": "2024-01-08T14:00:00Z",
            "end_time": "2024-01-08T15:00:00Z",
            "status": "ongoing",
            "paused": False
        }
    ]
}

DASHBOARD_RESPONSE_EXAMPLE = {
    "total_tickets": 2,
    "avg_first_response_time_hours": 1.5,
    "avg_resolution_time_hours": 6.25,
    "state_counts": {"ok": 1, "warning": 0, "critical": 0, "breached": 1},
    "breach_rate": 50.0,
    "evaluated_at": "2024-01-09T12:00:00Z"
}


# ========== Dependencies ==========

def get_config_provider(request: Request) -> ISLAConfigProvider:
    """SLA configuration provider created during application startup."""
    return request.app.state.sla_config_manager


def get_metrics_service(
    config_provider: ISLAConfigProvider = Depends(get_config_provider)
) -> SLAMetricsService:
    """Get SLA metrics service instance."""
    return SLAMetricsService(config_provider)


def _evaluation_instant(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


# ========== Route Handlers ==========

@router.post(
    "/effective-time",
    response_model=EffectiveTimeResponse,
    summary="Compute effective business time",
    description="""
    Compute the effective business time between `created_at` and
    `observation_end` for one status history.

    Time counts only inside the company's business hours and only while
    the ticket holds a status that keeps the SLA clock running.
    Statuses `waiting_customer`, `suspended` and `pending_deployment`
    pause the clock.
    """,
    responses={
        200: {
            "description": "Effective time and the status periods it was built from",
            "content": {"application/json": {"example": EFFECTIVE_TIME_RESPONSE_EXAMPLE}}
        },
        422: {"description": "observation_end precedes created_at"}
    }
)
async def compute_effective_time(
    body: EffectiveTimeRequest,
    config_provider: ISLAConfigProvider = Depends(get_config_provider)
):
    calendar = config_provider.get_config().get_business_hours(body.company_id)

    # Requests may list events in any order; only events before created_at
    # are left for the builder to skip.
    periods = BusinessTimeCalculator.build_periods(
        body.created_at,
        body.initial_status,
        sorted((event.to_domain() for event in body.events), key=lambda e: e.occurred_at),
        body.observation_end
    )
    effective_ms = BusinessTimeCalculator.effective_business_time(periods, calendar)

    return EffectiveTimeResponse(
        effective_ms=effective_ms,
        effective_hours=to_hours(effective_ms),
        periods=[
            StatusPeriodResponse.from_domain(period, is_paused(period.status))
            for period in periods
        ]
    )


@router.post(
    "/tickets/evaluate",
    response_model=TicketBatchResponse,
    summary="Evaluate ticket SLAs",
    description="""
    Evaluate the response and resolution SLA clocks of each ticket.

    The response clock stops at `first_response_at`, or at `resolved_at`
    for tickets resolved without a reply. Clocks still running are
    measured up to `now` (server clock when omitted).
    """
)
def evaluate_tickets(
    request: Request,
    body: TicketBatchRequest,
    service: SLAMetricsService = Depends(get_metrics_service)
):
    now = _evaluation_instant(body.now)
    metrics = service.evaluate_tickets((t.to_domain() for t in body.tickets), now)

    get_context_logger(__name__, getattr(request.state, "correlation_id", None)).info(
        "Tickets evaluated",
        extra={
            "tickets": len(metrics),
            "breached": sum(1 for m in metrics if m.is_any_breached)
        }
    )

    return TicketBatchResponse(
        tickets=[TicketSLAResponse.from_domain(m) for m in metrics],
        evaluated_at=now
    )


@router.post(
    "/dashboard",
    response_model=DashboardResponse,
    summary="SLA dashboard aggregates",
    description="""
    Average first-response and resolution times (business hours, two
    decimals) and ticket counts per SLA state for the supplied ticket set.

    The caller selects the ticket set; an empty set yields zeros.
    """,
    responses={
        200: {
            "description": "Dashboard summary",
            "content": {"application/json": {"example": DASHBOARD_RESPONSE_EXAMPLE}}
        }
    }
)
def get_dashboard(
    body: TicketBatchRequest,
    service: SLAMetricsService = Depends(get_metrics_service)
):
    now = _evaluation_instant(body.now)
    summary = service.summarize([t.to_domain() for t in body.tickets], now)
    return DashboardResponse.from_domain(summary, now)


@router.get(
    "/business-hours",
    response_model=BusinessHoursResponse,
    summary="Effective business calendar",
    description="Business calendar for a company, or the default calendar."
)
async def get_business_hours(
    company_id: Optional[str] = Query(None, description="Company identifier"),
    config_provider: ISLAConfigProvider = Depends(get_config_provider)
):
    calendar = config_provider.get_config().get_business_hours(company_id)
    return BusinessHoursResponse.from_domain(calendar, company_id)
