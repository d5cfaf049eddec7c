"""
Escalation Application Layer
============================

Contains:
- EscalationService: sweep execution against the ticket store
- SweepReport, EscalationError
"""

from alertbridge.escalation.application.services import (
    EscalationService,
    EscalationError,
    EscalationErrorKind,
    SweepReport,
)

__all__ = [
    "EscalationService",
    "EscalationError",
    "EscalationErrorKind",
    "SweepReport",
]
