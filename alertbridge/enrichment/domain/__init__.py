"""
Enrichment Domain Layer
=======================

Contains:
- Entities: CIRecord, EnrichmentOutcome and its fallback values
- URL guard: SSRF checks for CMDB URLs

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from alertbridge.enrichment.domain.entities import (
    CIRecord,
    EnrichmentOutcome,
    EnrichmentStatus,
    FALLBACK_LOCATIONS,
    NO_CI_LINKED,
)
from alertbridge.enrichment.domain.url_guard import (
    is_valid_cmdb_url,
    is_internal_address,
    all_addresses_public,
)

__all__ = [
    "CIRecord",
    "EnrichmentOutcome",
    "EnrichmentStatus",
    "FALLBACK_LOCATIONS",
    "NO_CI_LINKED",
    "is_valid_cmdb_url",
    "is_internal_address",
    "all_addresses_public",
]
