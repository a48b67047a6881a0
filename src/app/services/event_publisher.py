"""Event Publisher Interface

Defines the contract for announcing billing events to other services.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict


class EventPublisher(ABC):
    """
    Abstract publisher for billing domain events

    Implementations can deliver via:
    - Logging
    - Webhook (HTTP POST)
    - A message broker
    """

    @abstractmethod
    async def publish(self, event_type: str, payload: Dict[str, Any]) -> bool:
        """
        Publish a billing event

        Args:
            event_type: Event name (e.g. "payout.created")
            payload: JSON-serialisable event body

        Returns:
            True if the event was delivered, False otherwise
        """
        pass
