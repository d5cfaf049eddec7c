"""
Ticket Interfaces Layer
=======================

Contains:
- Controllers: ticket view, CI context, change management routes

This is the outermost layer - handles HTTP requests/responses and
delegates to application services.
"""

from alertbridge.tickets.interfaces.controllers import router as tickets_router

__all__ = ["tickets_router"]
