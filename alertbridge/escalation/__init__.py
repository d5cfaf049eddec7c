"""
Escalation Module
=================

Bounded Context for time-based SLA escalation of open tickets.

Responsibilities:
- Plan escalations as a pure function of time, tickets and policy
- Execute them through the ticket store (reassign, comment, marker label)
- Run the sweep on an APScheduler interval and on operator request
"""
