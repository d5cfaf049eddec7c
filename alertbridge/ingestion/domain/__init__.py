"""
Ingestion Domain Layer
======================

Contains:
- AlertPayload: the validated, immutable inbound alert

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from alertbridge.ingestion.domain.entities import AlertPayload

__all__ = ["AlertPayload"]
