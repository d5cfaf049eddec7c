"""
Enrichment Application Layer
============================

Contains:
- ICMDBClient: port implemented by the CMDB HTTP client
- CIContextService: CI context map for a ticket
"""

from alertbridge.enrichment.application.services import ICMDBClient, CIContextService

__all__ = ["ICMDBClient", "CIContextService"]
