"""
Tickets Module
==============

Bounded Context for ITIL records (Incident, Problem, Change) and the links
between them.

Responsibilities:
- Create incidents with service-based auto-assignment
- Correlate incidents with open problems on the same CI
- Raise a change from a problem and close the issues it fixes
- Expose tickets over the API
"""
