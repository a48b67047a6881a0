"""Processed Event Repository Interface

Idempotency records of handled payment processor notifications.
"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.processor_event import ProcessedEvent


class ProcessedEventRepository(ABC):

    @abstractmethod
    async def get_by_event_id(self, event_id: str) -> Optional[ProcessedEvent]:
        """
        Retrieve the record of a processor event

        Args:
            event_id: Processor event id (idempotency token)

        Returns:
            ProcessedEvent if the event was handled before, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, record: ProcessedEvent) -> ProcessedEvent:
        """
        Record a handled event

        Raises:
            DuplicateEventError: If event_id was already recorded
        """
        pass
