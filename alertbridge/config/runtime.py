"""
Runtime Configuration
=====================

Integration configuration served by a Config Provider.

These models describe the YAML file watched by
``alertbridge.infrastructure.config_provider.YAMLConfigManager``:

    cmdb:
      base_url: https://cmdb.example.com
      api_token: "..."
      timeout_ms: 5000
    webhook:
      ip_allowlist: ["203.0.113.0/24"]
      sources:
        - name: prometheus
          token: "..."
          signing_secret: "..."
          require_signature: true
    tickets:
      project_key: ITSM
      service_assignees: {network: netops, db: dba}
    escalation:
      interval_seconds: 300
      sla_thresholds_minutes: {critical: 30, high: 120, medium: 480, low: 1440}
      tiers: [l2-support, l3-support]
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, SecretStr, field_validator

from alertbridge.config import Severity

# Unicode word characters, whitespace and punctuation that cannot form markup.
DEFAULT_ALLOWED_CHARACTERS = r"\w\s\-.,!?()\[\]{}:;@#$%^*+=|/\\~"

DEFAULT_SLA_THRESHOLDS_MINUTES = {
    "critical": 30,
    "high": 120,
    "medium": 480,
    "low": 1440,
}


class CMDBConfig(BaseModel):
    """CMDB enrichment settings."""
    base_url: Optional[str] = Field(default=None, description="CMDB base URL")
    api_token: Optional[SecretStr] = Field(default=None, description="CMDB bearer token")
    timeout_ms: int = Field(default=5000, ge=1, le=60000, description="Enrichment timeout")
    cache_ttl_seconds: int = Field(default=60, ge=0, description="Read-through cache TTL (0 disables)")
    cache_max_entries: int = Field(default=1024, ge=1, description="Cache size cap; oldest entries evicted first")
    allow_private_hosts: bool = Field(
        default=False,
        description="Permit a CMDB living on private address space"
    )
    verify_resolved_addresses: bool = Field(
        default=False,
        description="Resolve the CMDB host and reject private/loopback addresses"
    )
    max_field_length: int = Field(default=255, ge=1)

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.api_token and self.api_token.get_secret_value())


class WebhookSource(BaseModel):
    """A monitoring system allowed to post alerts."""
    name: str = Field(..., min_length=1)
    token: SecretStr = Field(..., description="Expected bearer credential")
    signing_secret: Optional[SecretStr] = Field(
        default=None,
        description="HMAC-SHA256 key for X-Webhook-Signature"
    )
    require_signature: bool = False


class WebhookConfig(BaseModel):
    """Inbound webhook validation and authentication settings."""
    max_payload_bytes: int = Field(default=1024 * 1024, ge=1)
    max_string_length: int = Field(default=1000, ge=1)
    max_tags: int = Field(default=50, ge=0)
    allowed_characters: str = Field(
        default=DEFAULT_ALLOWED_CHARACTERS,
        description="Regex character-class body of characters kept by the sanitizer"
    )
    ip_allowlist: List[str] = Field(
        default_factory=list,
        description="CIDR blocks or addresses; empty means unrestricted"
    )
    trust_forwarded_headers: bool = Field(
        default=False,
        description="Take the client IP from X-Forwarded-For / X-Real-IP"
    )
    sources: List[WebhookSource] = Field(default_factory=list)

    @property
    def allowed_sources(self) -> List[str]:
        return [source.name for source in self.sources]

    def get_source(self, name: str) -> Optional[WebhookSource]:
        for source in self.sources:
            if source.name == name:
                return source
        return None


class TicketsConfig(BaseModel):
    """Ticket creation defaults."""
    project_key: str = Field(default="ITSM", min_length=1)
    service_assignees: Dict[str, str] = Field(
        default_factory=lambda: {"network": "netops", "db": "dba"}
    )
    default_assignee: Optional[str] = Field(default="oncall")

    def assignee_for_service(self, service: Optional[str]) -> Optional[str]:
        """Map a service name to its first-line assignee (case-insensitive)."""
        if service:
            wanted = service.strip().lower()
            for name, assignee in self.service_assignees.items():
                if name.lower() == wanted:
                    return assignee
        return self.default_assignee


class EscalationConfig(BaseModel):
    """SLA escalation sweep settings."""
    interval_seconds: int = Field(default=300, ge=10)
    sla_thresholds_minutes: Dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_SLA_THRESHOLDS_MINUTES)
    )
    tiers: List[str] = Field(default_factory=lambda: ["l2-support", "l3-support"])
    marker_prefix: str = Field(default="sla-escalated", min_length=1)
    measure_from: Literal["created", "status_change"] = "created"
    max_concurrency: int = Field(default=5, ge=1)

    @field_validator("sla_thresholds_minutes")
    @classmethod
    def validate_thresholds(cls, v: Dict[str, int]) -> Dict[str, int]:
        """Lower-case keys, fill missing severities, reject non-positive values."""
        thresholds = {key.lower(): minutes for key, minutes in v.items()}
        for severity in Severity:
            thresholds.setdefault(
                severity.value.lower(),
                DEFAULT_SLA_THRESHOLDS_MINUTES[severity.value.lower()]
            )
        for key, minutes in thresholds.items():
            if minutes <= 0:
                raise ValueError(f"SLA threshold for '{key}' must be positive")
        return thresholds


class RuntimeConfig(BaseModel):
    """Everything the core resolves through the Config Provider."""
    cmdb: CMDBConfig = Field(default_factory=CMDBConfig)
    webhook: WebhookConfig = Field(default_factory=WebhookConfig)
    tickets: TicketsConfig = Field(default_factory=TicketsConfig)
    escalation: EscalationConfig = Field(default_factory=EscalationConfig)


class IConfigProvider(ABC):
    """Interface for runtime configuration access."""

    @abstractmethod
    def get_config(self) -> RuntimeConfig:
        """Get current runtime configuration."""


class StaticConfigProvider(IConfigProvider):
    """Config provider holding a fixed configuration."""

    def __init__(self, config: Optional[RuntimeConfig] = None):
        self._config = config or RuntimeConfig()

    def get_config(self) -> RuntimeConfig:
        return self._config
