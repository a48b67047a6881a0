"""Commission Snapshot Repository Interface

Snapshots are append-only, so there is no update method.
"""

from abc import ABC, abstractmethod
from typing import Optional
from src.domain.commission_snapshot import CommissionSnapshot


class CommissionSnapshotRepository(ABC):

    @abstractmethod
    async def get_by_placement_id(self, placement_id: str) -> Optional[CommissionSnapshot]:
        """
        Retrieve the snapshot of a placement

        Args:
            placement_id: Placement identifier

        Returns:
            CommissionSnapshot if found, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, snapshot: CommissionSnapshot) -> CommissionSnapshot:
        """
        Persist a new snapshot

        Raises:
            ConflictError: If a snapshot already exists for the placement
        """
        pass
