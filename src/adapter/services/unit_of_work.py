"""SQLAlchemy Unit of Work

Transaction boundary of a use case over one AsyncSession. Repositories
only flush; nothing reaches the database until commit().
"""

import logging
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class SqlAlchemyUnitOfWork(UnitOfWork):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is not None:
            logger.warning(f"Rolling back after {exc_type.__name__}: {exc}")
        await self.rollback()

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        # a session with nothing pending has no transaction to discard
        if self.session.in_transaction():
            await self.session.rollback()
