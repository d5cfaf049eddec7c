"""
Escalation Domain Layer
=======================

Contains:
- EscalationPolicy: thresholds, tiers and marker naming
- plan_escalations: pure sweep planner
- EscalationAction, SweepState

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from alertbridge.escalation.domain.policy import (
    EscalationAction,
    EscalationPolicy,
    SweepState,
    ESCALATABLE_KINDS,
    count_breaching,
    plan_escalations,
)

__all__ = [
    "EscalationAction",
    "EscalationPolicy",
    "SweepState",
    "ESCALATABLE_KINDS",
    "count_breaching",
    "plan_escalations",
]
