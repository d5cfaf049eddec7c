"""
Escalation Interfaces Layer
===========================

Contains:
- Controllers: manual sweep trigger and scheduler status
"""

from alertbridge.escalation.interfaces.controllers import router as escalation_router

__all__ = ["escalation_router"]
