"""
Ingestion Module
================

Bounded Context for inbound monitoring alerts.

Responsibilities:
- Authenticate webhook callers (bearer token, HMAC signature, allow-lists)
- Validate and sanitize alert payloads into immutable AlertPayload values
- Run the alert pipeline: enrich, create incident, correlate with problems
- Expose POST /webhook/alert
"""
