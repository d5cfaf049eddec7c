"""
Ingestion Domain Entities
=========================

Immutable, already-sanitized view of an inbound alert.
"""

from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from alertbridge.config import Severity


class AlertPayload(BaseModel):
    """
    Validated alert. Built only by AlertValidator; never re-parsed.

    Field names follow the webhook JSON (``ciId``, ``alertType``).
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    summary: str = Field(..., min_length=1)
    description: str = ""
    ci_id: Optional[str] = Field(default=None, alias="ciId")
    service: Optional[str] = None
    severity: Severity = Severity.MEDIUM
    alert_type: str = Field(default="Incident", alias="alertType")
    environment: Optional[str] = None
    component: Optional[str] = None
    tags: Tuple[str, ...] = ()
