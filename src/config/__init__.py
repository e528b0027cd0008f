"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="service-desk", description="Application name")
    app_version: str = Field(default="2.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/servicedesk",
        description="PostgreSQL connection URL (async)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== SLA Engine ==========
    sla_sweep_interval_seconds: int = Field(
        default=600,
        description="Seconds between breach sweeps (0 disables the scheduler)",
        ge=0
    )
    sla_max_simulated_hours: int = Field(
        default=720,
        description="Upper bound of hours simulated per deadline computation",
        ge=1
    )
    sla_warning_threshold_percent: int = Field(
        default=15,
        description="Remaining-time percentage below which an SLA is at risk",
        ge=0,
        le=100
    )
    business_timezone: str = Field(
        default="Asia/Jakarta",
        description="IANA timezone whose wall clock the working hours are expressed in"
    )

    # ========== Ticket Defaults ==========
    default_urgency: int = Field(default=3, ge=1, le=5, description="Urgency used at creation")
    default_impact: int = Field(default=3, ge=1, le=5, description="Impact used at creation")

    # ========== Escalation ==========
    escalation_admin_role: str = Field(
        default="admin_opd",
        description="Role notified when a ticket in its unit breaches SLA"
    )
    escalation_webhook_url: Optional[str] = Field(
        default=None,
        description="Slack-compatible webhook for breach escalations"
    )
    escalation_webhook_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for webhook calls",
        ge=0.1,
        le=30
    )

    # ========== RBAC ==========
    rbac_config_path: Path = Field(
        default=Path("rbac.yaml"),
        description="Path to role/permission YAML file"
    )
    rbac_cache_ttl_seconds: int = Field(
        default=300,
        description="Maximum age of the cached role table before a read reloads it",
        ge=0
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
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


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class TicketType(str, Enum):
    """Kinds of ticket."""
    INCIDENT = "incident"
    REQUEST = "request"


class TicketStatus(str, Enum):
    """Authoritative ticket lifecycle statuses."""
    OPEN = "open"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    PENDING_APPROVAL = "pending_approval"
    RESOLVED = "resolved"
    CLOSED = "closed"
    REJECTED = "rejected"


class TicketStage(str, Enum):
    """Well-known display stages. Stage is free text, these are the ones the core sets."""
    TRIASE = "triase"
    VERIFICATION = "verification"
    EXECUTION = "execution"
    FINISHED = "finished"
    APPROVAL_SEKSI = "approval_seksi"


class PriorityCategory(str, Enum):
    """Priority categories derived from urgency x impact."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    MAJOR = "major"


class ActivityAction(str, Enum):
    """Action kinds written to the ticket activity log."""
    CREATE = "create"
    CREATE_PUBLIC = "create_public"
    ASSIGN = "assign"
    REASSIGN = "reassign"
    CLASSIFY = "classify"
    PROGRESS_UPDATE = "progress_update"
    APPROVE = "approve"
    REJECT = "reject"
    MERGE = "merge"
    ESCALATION = "escalation"


class NotificationSeverity(str, Enum):
    """Notification severities."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ApprovalStatus(str, Enum):
    """Approval workflow step states."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class SLAState(str, Enum):
    """SLA status states."""
    NOT_STARTED = "not_started"
    ON_TRACK = "on_track"
    AT_RISK = "at_risk"
    BREACHED = "breached"
    MET = "met"


# ========== Lists for validation ==========

TERMINAL_STATUSES = [
    TicketStatus.RESOLVED, TicketStatus.CLOSED, TicketStatus.REJECTED
]
VALID_STATUSES = list(TicketStatus)
VALID_PRIORITIES = list(PriorityCategory)
