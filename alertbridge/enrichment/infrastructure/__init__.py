"""
Enrichment Infrastructure Layer
===============================

External integrations for enrichment:
- CMDBClient: httpx client for the CMDB assets API
"""

from alertbridge.enrichment.infrastructure.cmdb_client import CMDBClient, build_asset_url

__all__ = ["CMDBClient", "build_asset_url"]
