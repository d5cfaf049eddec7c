"""
Escalation Infrastructure Layer
===============================

- EscalationScheduler: APScheduler interval job for the sweep
"""

from alertbridge.escalation.infrastructure.scheduler import EscalationScheduler

__all__ = ["EscalationScheduler"]
