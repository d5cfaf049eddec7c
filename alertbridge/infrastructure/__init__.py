"""
Infrastructure Layer
=====================

Process-wide technical concerns:
- Database engine and session management
- Runtime configuration provider (YAML + hot reload)
"""
