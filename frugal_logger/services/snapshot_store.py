"""Snapshot stores: where changed device snapshots are written on a tick."""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from frugal_logger.models.telemetry_models import Snapshot


class SnapshotStore(ABC):
    """A remote (or local) store of device snapshots."""

    @abstractmethod
    async def write_snapshot(self, snapshot: Snapshot) -> None:
        """Persist the snapshot; raise on failure so it is retried later."""
        pass

    def get_store_id(self) -> str:
        return self.__class__.__name__


class InMemorySnapshotStore(SnapshotStore):
    """Keeps the latest snapshot per device; useful for dashboards and tests."""

    def __init__(self):
        self.latest: Dict[str, Snapshot] = {}
        self.history: List[Snapshot] = []

    async def write_snapshot(self, snapshot: Snapshot) -> None:
        self.latest[snapshot.device] = snapshot
        self.history.append(snapshot)

    def get(self, device: str) -> Optional[Snapshot]:
        return self.latest.get(device)


class LoggingSnapshotStore(SnapshotStore):
    """Writes snapshots to the log only."""

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    async def write_snapshot(self, snapshot: Snapshot) -> None:
        self.logger.info(f"Snapshot {snapshot.device} @ {snapshot.timestamp.isoformat()}: {snapshot.values}")
