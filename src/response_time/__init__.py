"""
Response-Time Analytics Module
==============================

Bounded Context for agent response-time and SLA analytics.

Responsibilities:
- Fetch a window of CRM chat and ownership events
- Pair each customer message with the agent reply that answered it
- Measure response time in business hours only
- Attribute pairs to the agent responsible when the customer wrote in
- Report per-agent and overall mean, median, p90 and SLA rate
"""

__version__ = "1.0.0"
