"""
SLA Application Layer
======================

Application layer for SLA business-time accounting.

Contains:
- Services: Wire the domain calculator to configuration for callers
- DTOs: Data transfer objects for API serialization

This layer depends on the domain layer and the config provider interface,
but not on concrete infrastructure implementations.
"""

from helpdesk_sla.sla.application.dto import (
    StatusChangeEventDTO,
    TicketDTO,
    EffectiveTimeRequest,
    TicketBatchRequest,
    StatusPeriodResponse,
    EffectiveTimeResponse,
    SLAStatusResponse,
    TicketSLAResponse,
    TicketBatchResponse,
    DashboardResponse,
    BusinessHoursResponse,
)
from helpdesk_sla.sla.application.services import (
    SLAMetricsService,
    ISLAConfigProvider,
    average_hours,
)

__all__ = [
    # DTOs
    "StatusChangeEventDTO",
    "TicketDTO",
    "EffectiveTimeRequest",
    "TicketBatchRequest",
    "StatusPeriodResponse",
    "EffectiveTimeResponse",
    "SLAStatusResponse",
    "TicketSLAResponse",
    "TicketBatchResponse",
    "DashboardResponse",
    "BusinessHoursResponse",
    # Services
    "SLAMetricsService",
    "average_hours",
    # Config Interface
    "ISLAConfigProvider",
]
