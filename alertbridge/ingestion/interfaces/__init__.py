"""
Ingestion Interfaces Layer
==========================

Contains:
- Controllers: POST /webhook/alert

This is the outermost layer - handles HTTP requests/responses and
delegates to application services.
"""

from alertbridge.ingestion.interfaces.controllers import router as webhook_router

__all__ = ["webhook_router"]
