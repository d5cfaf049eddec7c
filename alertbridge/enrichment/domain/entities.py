"""
Enrichment Domain Entities
==========================

CI records and the outcome of a single enrichment attempt.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class EnrichmentStatus(str, Enum):
    """How an enrichment attempt ended."""
    FOUND = "found"
    NOT_FOUND = "not_found"
    TIMED_OUT = "timed_out"
    UNREACHABLE = "unreachable"
    DISABLED = "disabled"


# Location shown in place of CMDB data, per status
FALLBACK_LOCATIONS: Dict[EnrichmentStatus, str] = {
    EnrichmentStatus.FOUND: "unknown",
    EnrichmentStatus.NOT_FOUND: "Not found in CMDB",
    EnrichmentStatus.TIMED_OUT: "CMDB timeout",
    EnrichmentStatus.UNREACHABLE: "CMDB error",
    EnrichmentStatus.DISABLED: "CMDB not configured",
}

NO_CI_LINKED = "No CI linked"


@dataclass(frozen=True)
class CIRecord:
    """Configuration item attributes as read from the CMDB (already sanitized)."""
    id: str
    hostname: str
    location: str
    ip_address: str = ""
    operating_system: str = ""
    environment: str = ""
    view_url: Optional[str] = None


@dataclass(frozen=True)
class EnrichmentOutcome:
    """
    Result of enriching one CI.

    Enrichment never fails the caller: every status maps to a usable record
    through ``record_or_fallback``.
    """
    status: EnrichmentStatus
    record: Optional[CIRecord] = None
    detail: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.status == EnrichmentStatus.FOUND and self.record is not None

    @classmethod
    def found_record(cls, record: CIRecord) -> "EnrichmentOutcome":
        return cls(EnrichmentStatus.FOUND, record=record)

    @classmethod
    def failed(cls, status: EnrichmentStatus, detail: Optional[str] = None) -> "EnrichmentOutcome":
        return cls(status, detail=detail)

    def record_or_fallback(self, ci_id: str) -> CIRecord:
        """The CMDB record, or a placeholder naming the raw CI id."""
        if self.found:
            return self.record
        return CIRecord(id=ci_id, hostname=ci_id, location=FALLBACK_LOCATIONS[self.status])

    def to_context(self, ci_id: str) -> Dict[str, str]:
        """Context map consumed by the ticket CI panel."""
        record = self.record_or_fallback(ci_id)
        context = {
            "ciName": record.hostname,
            "ciLocation": record.location,
            "ciIpAddress": record.ip_address,
            "ciOperatingSystem": record.operating_system,
            "ciEnvironment": record.environment,
        }
        if record.view_url:
            context["cmdbViewUrl"] = record.view_url
        return context
