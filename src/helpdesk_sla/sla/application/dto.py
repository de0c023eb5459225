"""
SLA Application DTOs
=====================

Data Transfer Objects for the SLA API layer.

These Pydantic models handle serialization/deserialization and validation
for API requests and responses, and convert to and from domain objects.
"""

from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from helpdesk_sla.config import SLAState, TicketStatus
from helpdesk_sla.sla.domain import (
    BusinessHoursConfig,
    SLAResult,
    SLASummary,
    StatusChangeEvent,
    StatusPeriod,
    Ticket,
    TicketSLAMetrics,
    BusinessTimeCalculator,
    to_hours,
)
from helpdesk_sla.sla.domain.entities import as_utc


# ========== Type Aliases for Literals ==========
PriorityStr = Literal["critical", "high", "medium", "low"]


# ========== Request DTOs ==========

class StatusChangeEventDTO(BaseModel):
    """One status-history row as supplied by the ticket lifecycle service."""
    old_status: Optional[TicketStatus] = Field(None, description="Status before the change")
    new_status: TicketStatus = Field(..., description="Status after the change")
    occurred_at: datetime = Field(..., description="When the change was recorded")

    def to_domain(self) -> StatusChangeEvent:
        return StatusChangeEvent(
            old_status=self.old_status,
            new_status=self.new_status,
            occurred_at=self.occurred_at
        )


class TicketDTO(BaseModel):
    """Ticket snapshot used for SLA evaluation."""
    id: str = Field(..., min_length=1, description="Ticket ID")
    created_at: datetime = Field(..., description="Ticket creation timestamp")
    status: TicketStatus = Field(default=TicketStatus.NEW, description="Current status")
    initial_status: TicketStatus = Field(
        default=TicketStatus.NEW,
        description="Status held from creation until the first change"
    )
    status_history: List[StatusChangeEventDTO] = Field(
        default_factory=list,
        description="Status changes ordered by occurred_at"
    )
    first_response_at: Optional[datetime] = Field(None, description="First response time")
    resolved_at: Optional[datetime] = Field(None, description="Resolution time")
    priority: Optional[PriorityStr] = Field(None, description="Ticket priority")
    company_id: Optional[str] = Field(None, description="Tenant owning the ticket")

    @field_validator("first_response_at", "resolved_at")
    @classmethod
    def validate_not_before_creation(cls, v: Optional[datetime], info) -> Optional[datetime]:
        """Terminal instants cannot precede creation."""
        created_at = info.data.get("created_at")
        if v is not None and created_at is not None and as_utc(v) < as_utc(created_at):
            raise ValueError(f"{info.field_name} cannot be before created_at")
        return v

    def to_domain(self) -> Ticket:
        """Convert to domain entity."""
        return Ticket(
            id=self.id,
            created_at=self.created_at,
            status=self.status,
            initial_status=self.initial_status,
            status_history=[event.to_domain() for event in self.status_history],
            first_response_at=self.first_response_at,
            resolved_at=self.resolved_at,
            priority=self.priority,
            company_id=self.company_id
        )


class EffectiveTimeRequest(BaseModel):
    """Request model for a raw effective-time computation."""
    created_at: datetime = Field(..., description="Start of the measured window")
    initial_status: TicketStatus = Field(default=TicketStatus.NEW)
    events: List[StatusChangeEventDTO] = Field(default_factory=list)
    observation_end: datetime = Field(..., description="End of the measured window")
    company_id: Optional[str] = Field(None, description="Selects the company calendar")


class TicketBatchRequest(BaseModel):
    """Request model for evaluating a set of tickets."""
    tickets: List[TicketDTO] = Field(default_factory=list, max_length=5000)
    now: Optional[datetime] = Field(
        None,
        description="Evaluation instant; defaults to the server clock"
    )


# ========== Response DTOs ==========

class StatusPeriodResponse(BaseModel):
    start_time: datetime
    end_time: datetime
    status: TicketStatus
    paused: bool

    @classmethod
    def from_domain(cls, period: StatusPeriod, paused: bool) -> "StatusPeriodResponse":
        return cls(
            start_time=period.start_time,
            end_time=period.end_time,
            status=period.status,
            paused=paused
        )


class EffectiveTimeResponse(BaseModel):
    """Response model for an effective-time computation."""
    effective_ms: int = Field(..., description="Effective business time in milliseconds")
    effective_hours: float = Field(..., description="Effective business time in hours")
    periods: List[StatusPeriodResponse] = Field(default_factory=list)


class SLAStatusResponse(BaseModel):
    """Response model for SLA status of a single clock."""
    time_elapsed_ms: int
    time_remaining_ms: int
    time_remaining_label: str = Field(..., description="Human-readable remaining time")
    percent_consumed: int = Field(..., ge=0, le=100)
    is_breached: bool
    due_date: datetime
    state: SLAState
    is_paused: bool

    @classmethod
    def from_domain(cls, result: SLAResult) -> "SLAStatusResponse":
        return cls(
            time_elapsed_ms=result.time_elapsed_ms,
            time_remaining_ms=result.time_remaining_ms,
            time_remaining_label=BusinessTimeCalculator.format_time_remaining(
                result.time_remaining_ms, result.is_breached
            ),
            percent_consumed=result.percent_consumed,
            is_breached=result.is_breached,
            due_date=result.due_date,
            state=result.state,
            is_paused=result.is_paused
        )


class TicketSLAResponse(BaseModel):
    """Response model for ticket SLA information."""
    ticket_id: str
    first_response_ms: Optional[int] = None
    first_response_hours: Optional[float] = None
    resolution_ms: Optional[int] = None
    resolution_hours: Optional[float] = None
    response_sla: SLAStatusResponse
    resolution_sla: SLAStatusResponse
    overall_state: SLAState

    @classmethod
    def from_domain(cls, metrics: TicketSLAMetrics) -> "TicketSLAResponse":
        return cls(
            ticket_id=metrics.ticket_id,
            first_response_ms=metrics.first_response_ms,
            first_response_hours=_hours_or_none(metrics.first_response_ms),
            resolution_ms=metrics.resolution_ms,
            resolution_hours=_hours_or_none(metrics.resolution_ms),
            response_sla=SLAStatusResponse.from_domain(metrics.response_sla),
            resolution_sla=SLAStatusResponse.from_domain(metrics.resolution_sla),
            overall_state=metrics.most_urgent_state
        )


class TicketBatchResponse(BaseModel):
    tickets: List[TicketSLAResponse]
    evaluated_at: datetime


class DashboardResponse(BaseModel):
    """Summary statistics for dashboard."""
    total_tickets: int
    avg_first_response_time_hours: float
    avg_resolution_time_hours: float
    state_counts: Dict[SLAState, int]
    breach_rate: float = Field(..., description="Percentage of tickets breached")
    evaluated_at: datetime

    @classmethod
    def from_domain(cls, summary: SLASummary, evaluated_at: datetime) -> "DashboardResponse":
        return cls(
            total_tickets=summary.total_tickets,
            avg_first_response_time_hours=summary.avg_first_response_hours,
            avg_resolution_time_hours=summary.avg_resolution_hours,
            state_counts=summary.state_counts,
            breach_rate=summary.breach_rate,
            evaluated_at=evaluated_at
        )


class BusinessHoursResponse(BaseModel):
    """Effective business calendar for a company."""
    company_id: Optional[str] = None
    working_weekdays: List[int]
    start_hour: int
    end_hour: int
    time_zone: str
    holidays: List[date] = Field(default_factory=list)

    @classmethod
    def from_domain(
        cls,
        calendar: BusinessHoursConfig,
        company_id: Optional[str] = None
    ) -> "BusinessHoursResponse":
        return cls(
            company_id=company_id,
            working_weekdays=sorted(calendar.working_weekdays),
            start_hour=calendar.start_hour,
            end_hour=calendar.end_hour,
            time_zone=calendar.time_zone,
            holidays=sorted(calendar.holidays)
        )


def _hours_or_none(value_ms: Optional[int]) -> Optional[float]:
    return to_hours(value_ms) if value_ms is not None else None
