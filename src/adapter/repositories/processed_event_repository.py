"""SQLAlchemy implementation of ProcessedEventRepository

Idempotency log of payment processor notifications, enforced by the
unique constraint on event_id.
"""

from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.exc import IntegrityError
from src.app.repositories.processed_event_repository import ProcessedEventRepository
from src.domain.errors import DuplicateEventError
from src.domain.processor_event import ProcessedEvent


class SqlAlchemyProcessedEventRepository(ProcessedEventRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_event_id(self, event_id: str) -> Optional[ProcessedEvent]:
        stmt = select(ProcessedEvent).where(ProcessedEvent.event_id == event_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, record: ProcessedEvent) -> ProcessedEvent:
        """
        Record a processed event

        Raises:
            DuplicateEventError: If the event_id was recorded concurrently
        """
        self.session.add(record)
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise DuplicateEventError(
                f"Processor event {record.event_id} already recorded",
                reason=str(e.orig),
            ) from e
        await self.session.refresh(record)
        return record
