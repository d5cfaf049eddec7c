"""
Shared Kernel Module
====================

Shared infrastructure used across all bounded contexts (ingestion,
enrichment, tickets, escalation).

Architecture Pattern: Modular Monolith
- Each module is a bounded context
- Shared kernel contains only generic infrastructure

DO NOT add alerting, ticketing or escalation rules to the shared kernel.
"""
