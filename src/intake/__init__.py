"""
Ticket Intake Module
====================

Bounded Context for first-pass analysis of incoming support tickets.

Responsibilities:
- Classify tickets by category and priority from keyword rules
- Resolve the requester e-mail to a registered customer
- Flag duplicates and list similar earlier tickets
- Suggest category, priority and escalation actions
- Aggregate category/priority trends and a naive prediction
"""

__version__ = "1.0.0"
