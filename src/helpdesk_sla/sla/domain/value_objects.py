"""
SLA Value Objects
==================

Immutable value objects for SLA domain.

Value objects are defined by their attributes rather than an identity.
They are immutable and can be freely shared across threads.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, FrozenSet, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from helpdesk_sla.config import (
    DEFAULT_CRITICAL_PERCENT,
    DEFAULT_WARNING_PERCENT,
    VALID_PRIORITIES,
    WEEKDAY_NAMES,
    SLAState,
    Settings,
)


class BusinessHoursConfig(BaseModel):
    """
    Recurring weekly business calendar.

    Days are cut in ``time_zone``; the daily window is
    ``[start_hour:00, end_hour:00)`` local time on every working weekday
    that is not listed in ``holidays``. Weekdays follow ``date.weekday()``
    numbering (Monday=0 ... Sunday=6); three-letter names are accepted too.

    Malformed calendars are rejected at construction with a
    ``pydantic.ValidationError``.
    """

    model_config = ConfigDict(frozen=True)

    working_weekdays: FrozenSet[int] = Field(
        default=frozenset({0, 1, 2, 3, 4}),
        description="Working weekdays (Monday=0 ... Sunday=6)"
    )
    start_hour: int = Field(default=8, ge=0, le=23, description="Daily opening hour")
    end_hour: int = Field(default=18, ge=0, le=23, description="Daily closing hour")
    time_zone: str = Field(default="UTC", description="IANA zone used to cut days")
    holidays: FrozenSet[date] = Field(
        default_factory=frozenset,
        description="Dates on which the desk is closed all day"
    )

    @field_validator("working_weekdays", mode="before")
    @classmethod
    def parse_weekdays(cls, v: Any) -> Any:
        """Accept weekday names ("mon") alongside integers."""
        if isinstance(v, (str, bytes)):
            raise ValueError("working_weekdays must be a collection of weekdays")
        parsed = set()
        for day in v:
            if isinstance(day, str):
                key = day.strip().lower()[:3]
                if key not in WEEKDAY_NAMES:
                    raise ValueError(f"unknown weekday name: {day!r}")
                parsed.add(WEEKDAY_NAMES.index(key))
            else:
                parsed.add(day)
        return frozenset(parsed)

    @field_validator("working_weekdays")
    @classmethod
    def validate_weekdays(cls, v: FrozenSet[int]) -> FrozenSet[int]:
        if not v:
            raise ValueError("working_weekdays must contain at least one day")
        invalid = sorted(day for day in v if not 0 <= day <= 6)
        if invalid:
            raise ValueError(f"weekdays out of range 0-6: {invalid}")
        return v

    @field_validator("time_zone")
    @classmethod
    def validate_time_zone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown time zone: {v!r}") from e
        return v

    @model_validator(mode="after")
    def validate_window(self) -> "BusinessHoursConfig":
        if self.end_hour <= self.start_hour:
            raise ValueError(
                f"end_hour ({self.end_hour}) must be greater than "
                f"start_hour ({self.start_hour})"
            )
        return self

    @property
    def zone(self) -> ZoneInfo:
        """Zone object for ``time_zone`` (ZoneInfo caches instances)."""
        return ZoneInfo(self.time_zone)

    @property
    def daily_hours(self) -> int:
        return self.end_hour - self.start_hour

    def is_business_day(self, day: date) -> bool:
        """Check whether the desk opens at all on ``day``."""
        return day.weekday() in self.working_weekdays and day not in self.holidays

    @classmethod
    def from_settings(cls, settings: Settings) -> "BusinessHoursConfig":
        """Build the process-wide default calendar from settings."""
        return cls(
            working_weekdays=settings.business_weekdays,
            start_hour=settings.business_start_hour,
            end_hour=settings.business_end_hour,
            time_zone=settings.business_time_zone,
        )


class SLATargets(BaseModel):
    """Response and resolution targets for one priority, in business hours."""

    model_config = ConfigDict(frozen=True)

    response_hours: float = Field(gt=0, description="First response target")
    resolution_hours: float = Field(gt=0, description="Resolution target")


DEFAULT_SLA_TARGETS: Dict[str, SLATargets] = {
    "critical": SLATargets(response_hours=1, resolution_hours=4),
    "high": SLATargets(response_hours=2, resolution_hours=8),
    "medium": SLATargets(response_hours=4, resolution_hours=24),
    "low": SLATargets(response_hours=8, resolution_hours=48),
}


class SLAThresholds(BaseModel):
    """Percent of the target consumed at which a clock escalates."""

    model_config = ConfigDict(frozen=True)

    warning: int = Field(default=DEFAULT_WARNING_PERCENT, ge=1, le=100)
    critical: int = Field(default=DEFAULT_CRITICAL_PERCENT, ge=1, le=100)

    @model_validator(mode="after")
    def validate_order(self) -> "SLAThresholds":
        if self.critical < self.warning:
            raise ValueError("critical threshold must not be below warning threshold")
        return self


class SLAConfig(BaseModel):
    """
    SLA configuration loaded from YAML.

    Holds the default business calendar, optional per-company calendars,
    per-priority targets and the escalation thresholds. This is a value
    object: the config manager swaps whole instances on reload.
    """

    model_config = ConfigDict(frozen=True)

    business_hours: BusinessHoursConfig = Field(default_factory=BusinessHoursConfig)
    company_business_hours: Dict[str, BusinessHoursConfig] = Field(
        default_factory=dict,
        description="Calendars keyed by company id"
    )
    sla_targets: Dict[str, SLATargets] = Field(
        default_factory=dict,
        description="SLA targets in business hours by priority"
    )
    thresholds: SLAThresholds = Field(default_factory=SLAThresholds)

    @field_validator("company_business_hours", mode="before")
    @classmethod
    def stringify_company_ids(cls, v: Any) -> Any:
        # YAML reads bare numeric keys as ints
        if isinstance(v, dict):
            return {str(key): value for key, value in v.items()}
        return v

    @field_validator("sla_targets")
    @classmethod
    def fill_sla_targets(cls, v: Dict[str, SLATargets]) -> Dict[str, SLATargets]:
        """Fill in defaults for any priority the file leaves out."""
        unknown = sorted(set(v) - set(VALID_PRIORITIES))
        if unknown:
            raise ValueError(f"unknown priorities in sla_targets: {unknown}")
        return {**DEFAULT_SLA_TARGETS, **v}

    def get_business_hours(self, company_id: Optional[str] = None) -> BusinessHoursConfig:
        """Company calendar when one is configured, else the default."""
        if company_id is not None:
            calendar = self.company_business_hours.get(str(company_id))
            if calendar is not None:
                return calendar
        return self.business_hours

    def get_targets(self, priority: Optional[str]) -> SLATargets:
        """Targets for ``priority``; unknown or missing priorities use medium."""
        targets = self.sla_targets or DEFAULT_SLA_TARGETS
        return targets.get(priority or "medium", targets["medium"])


@dataclass(frozen=True)
class SLAResult:
    """
    Outcome of evaluating one SLA clock for a ticket.

    Times are milliseconds of effective business time.
    """
    time_elapsed_ms: int
    time_remaining_ms: int
    percent_consumed: int
    is_breached: bool
    due_date: datetime
    state: SLAState
    is_paused: bool

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "time_elapsed_ms": self.time_elapsed_ms,
            "time_remaining_ms": self.time_remaining_ms,
            "percent_consumed": self.percent_consumed,
            "is_breached": self.is_breached,
            "due_date": self.due_date.isoformat(),
            "state": self.state.value,
            "is_paused": self.is_paused,
        }
