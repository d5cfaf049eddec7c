"""
Enrichment Module
=================

Bounded Context for configuration-item (CI) enrichment from the CMDB.

Responsibilities:
- Fetch CI attributes with a bounded wait and a circuit breaker
- Refuse CMDB URLs that could reach internal hosts (SSRF guard)
- Degrade to fixed fallback values when the CMDB is unavailable
- Render the CI context map shown next to a ticket
"""
