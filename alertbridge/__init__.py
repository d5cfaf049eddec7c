"""
AlertBridge
===========

Monitoring-alert ingestion, CMDB enrichment, ITIL correlation and SLA
escalation service.
"""

__version__ = "1.0.0"
