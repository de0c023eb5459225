"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="helpdesk-sla", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root logging level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== SLA Configuration ==========
    sla_config_path: Path = Field(
        default=Path("sla_config.yaml"),
        description="Path to SLA configuration YAML file"
    )
    sla_config_watch: bool = Field(
        default=True,
        description="Reload the SLA configuration file when it changes"
    )

    # ========== Default Business Hours ==========
    business_start_hour: int = Field(
        default=8,
        description="Hour the service desk opens (local to business_time_zone)",
        ge=0,
        le=23
    )
    business_end_hour: int = Field(
        default=18,
        description="Hour the service desk closes (local to business_time_zone)",
        ge=0,
        le=23
    )
    business_weekdays: List[int] = Field(
        default=[0, 1, 2, 3, 4],
        description="Working weekdays, Monday=0 ... Sunday=6"
    )
    business_time_zone: str = Field(
        default="UTC",
        description="IANA time zone in which business days are cut"
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8080"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class TicketStatus(str, Enum):
    """Ticket lifecycle statuses."""
    NEW = "new"
    ONGOING = "ongoing"
    SUSPENDED = "suspended"                    # waiting on a third party
    WAITING_CUSTOMER = "waiting_customer"
    ESCALATED = "escalated"
    IN_ANALYSIS = "in_analysis"
    PENDING_DEPLOYMENT = "pending_deployment"  # waiting on a deploy window
    REOPENED = "reopened"
    RESOLVED = "resolved"
    CLOSED = "closed"


class SLAClock(str, Enum):
    """Whether the SLA clock advances while a ticket holds a status."""
    RUNNING = "running"
    PAUSED = "paused"


class SLAState(str, Enum):
    """SLA status states, ordered by urgency."""
    OK = "ok"
    WARNING = "warning"
    CRITICAL = "critical"
    BREACHED = "breached"


class Priority(str, Enum):
    """Ticket priority levels."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# ========== Lists for validation ==========

VALID_PRIORITIES = [priority.value for priority in Priority]

WEEKDAY_NAMES = ["mon", "tue", "wed", "thu", "fri", "sat", "sun"]

# Percentage of the SLA target consumed at which a clock turns warning/critical
DEFAULT_WARNING_PERCENT = 75
DEFAULT_CRITICAL_PERCENT = 90
