"""
Configuration Module
====================

Application settings and configuration management using Pydantic.

Two layers:
- Settings: process-level settings loaded from environment variables / .env
- RuntimeConfig: integration config (CMDB, webhook sources, SLA thresholds)
  served by a Config Provider and reloadable at runtime
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
    app_name: str = Field(default="alertbridge", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/itsm",
        description="Ticket store connection URL (async)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== Runtime Configuration ==========
    config_path: Path = Field(
        default=Path("alertbridge.yaml"),
        description="Path to the runtime configuration YAML file"
    )

    # ========== CMDB overrides (take precedence over the YAML file) ==========
    cmdb_base_url: Optional[str] = Field(
        default=None,
        description="CMDB base URL, e.g. https://cmdb.example.com"
    )
    cmdb_api_token: Optional[str] = Field(
        default=None,
        description="Bearer token for the CMDB API"
    )

    # ========== Escalation ==========
    escalation_enabled: bool = Field(
        default=True,
        description="Run the background SLA escalation sweep"
    )

    # ========== Operator API ==========
    operator_api_token: Optional[str] = Field(
        default=None,
        description="Bearer token for operator endpoints (change creation, sweeps)"
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
        allowed = {"development", "staging", "production", "test"}
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


# ========== Constants ==========

class Severity(str, Enum):
    """Alert / ticket severity levels."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Severity"]:
        """Case-insensitive lookup; None when the value is not a severity."""
        if not value:
            return None
        wanted = value.strip().lower()
        for member in cls:
            if member.value.lower() == wanted:
                return member
        return None


class TicketKind(str, Enum):
    """ITIL record types."""
    INCIDENT = "Incident"
    PROBLEM = "Problem"
    CHANGE = "Change"


class TicketStatus(str, Enum):
    """Ticket lifecycle statuses."""
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    PENDING = "Pending"
    RESOLVED = "Resolved"
    CLOSED = "Closed"


class LinkType(str, Enum):
    """Directed relation types between tickets."""
    RELATES = "Relates"
    IMPLEMENTS = "Implements"
    CAUSED_BY = "CausedBy"


class TransitionAction(str, Enum):
    """Workflow actions understood by the ticket store."""
    START = "start"
    PEND = "pend"
    RESOLVE = "resolve"
    CLOSE = "close"
    REOPEN = "reopen"


# ========== Lists for validation ==========

OPEN_STATUSES = [TicketStatus.OPEN, TicketStatus.IN_PROGRESS, TicketStatus.PENDING]
CLOSED_STATUSES = [TicketStatus.RESOLVED, TicketStatus.CLOSED]
VALID_SEVERITIES = list(Severity)
VALID_LINK_TYPES = list(LinkType)
