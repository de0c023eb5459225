"""
SLA Domain Layer
================

Domain layer for SLA business-time accounting.

Contains:
- Entities: Ticket, StatusChangeEvent, StatusPeriod
- Value Objects: BusinessHoursConfig, SLAConfig, SLATargets, SLAResult
- Policy: which statuses pause or finish the SLA clock
- Domain Services: Stateless business-time logic (BusinessTimeCalculator)

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from helpdesk_sla.sla.domain.entities import (
    Ticket,
    StatusChangeEvent,
    StatusPeriod,
    TicketSLAMetrics,
    SLASummary,
)
from helpdesk_sla.sla.domain.value_objects import (
    BusinessHoursConfig,
    SLAConfig,
    SLATargets,
    SLAThresholds,
    SLAResult,
)
from helpdesk_sla.sla.domain.policy import is_paused, is_finished, SLA_CLOCK_BY_STATUS
from helpdesk_sla.sla.domain.calculator import BusinessTimeCalculator, to_hours

__all__ = [
    # Entities
    "Ticket",
    "StatusChangeEvent",
    "StatusPeriod",
    "TicketSLAMetrics",
    "SLASummary",
    # Value Objects
    "BusinessHoursConfig",
    "SLAConfig",
    "SLATargets",
    "SLAThresholds",
    "SLAResult",
    # Policy
    "is_paused",
    "is_finished",
    "SLA_CLOCK_BY_STATUS",
    # Services
    "BusinessTimeCalculator",
    "to_hours",
]
