"""
Payout Service Event Handling

Standard Structure:
- models.py: Event data models (Pydantic)
- publishers.py: Event publishers (publish events to other services)
"""

from .models import PayoutRecordedEvent
from .publishers import publish_payout_recorded

__all__ = [
    "publish_payout_recorded",
    "PayoutRecordedEvent",
]
