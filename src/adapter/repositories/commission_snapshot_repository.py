"""SQLAlchemy implementation of CommissionSnapshotRepository

Insert-only persistence of placement commission snapshots.
"""

from typing import Optional
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.exc import IntegrityError
from src.app.repositories.commission_snapshot_repository import CommissionSnapshotRepository
from src.domain.commission_snapshot import CommissionSnapshot
from src.domain.errors import ConflictError


class SqlAlchemyCommissionSnapshotRepository(CommissionSnapshotRepository):
    """
    SQLAlchemy implementation of CommissionSnapshotRepository

    There is no update method: snapshots are immutable.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_placement_id(self, placement_id: str) -> Optional[CommissionSnapshot]:
        stmt = select(CommissionSnapshot).where(CommissionSnapshot.placement_id == placement_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, snapshot: CommissionSnapshot) -> CommissionSnapshot:
        """
        Insert a snapshot

        Raises:
            ConflictError: If a snapshot for the placement was inserted concurrently
        """
        self.session.add(snapshot)
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise ConflictError(
                f"Snapshot for placement {snapshot.placement_id} already exists",
                reason=str(e.orig),
            ) from e
        await self.session.refresh(snapshot)
        return snapshot
