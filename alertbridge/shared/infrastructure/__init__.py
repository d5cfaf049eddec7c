"""
Infrastructure Layer
=====================

Low-level technical concerns shared by every module:
- Logging setup
- Circuit breaker for outbound calls
"""
