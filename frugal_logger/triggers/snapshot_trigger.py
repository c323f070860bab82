from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
import hashlib
import json
import logging

from frugal_logger.models.telemetry_models import Snapshot
from .base_trigger import TriggerStrategy


def _canonical(value: Any) -> Any:
    """Mappings become item lists sorted by key type and repr, so any key mix hashes."""
    if isinstance(value, dict):
        items = sorted(value.items(), key=lambda kv: (type(kv[0]).__name__, repr(kv[0])))
        return [[_canonical(k), _canonical(v)] for k, v in items]
    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]
    return value


def fingerprint(values: Dict[str, Any]) -> str:
    """Order independent digest of a device's value map."""
    canonical = json.dumps(_canonical(values), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


@dataclass
class DeviceAccumulator:
    values: Dict[str, Any] = field(default_factory=dict)
    pending_snapshot: Optional[Snapshot] = None
    committed_fingerprint: Optional[str] = None


class SnapshotChangeDetector(TriggerStrategy):
    """
    Accumulates the latest value per sensor of each device and, on a tick,
    hands out a snapshot only when the values differ from the last one
    written. The fingerprint advances on commit(), never on take.
    """

    def __init__(self, name: str = "snapshot"):
        super().__init__(name)
        self._devices: Dict[str, DeviceAccumulator] = {}
        self.logger = logging.getLogger(self.__class__.__name__)

    def record_value(self, device: str, sensor_key: str, value: Any) -> None:
        accumulator = self._devices.get(device)
        if accumulator is None:
            accumulator = self._devices[device] = DeviceAccumulator()
        accumulator.values[sensor_key] = value

    def take_snapshot_if_changed(self, device: str, now: datetime) -> Optional[Snapshot]:
        accumulator = self._devices.get(device)
        if accumulator is None or not accumulator.values:
            return None
        digest = fingerprint(accumulator.values)
        if digest == accumulator.committed_fingerprint:
            return None
        snapshot = Snapshot(device=device, values=dict(accumulator.values),
                            timestamp=now, fingerprint=digest)
        accumulator.pending_snapshot = snapshot
        self._fired(now)
        return snapshot

    def commit(self, snapshot: Snapshot) -> None:
        """The snapshot was written; later ticks compare against it."""
        accumulator = self._devices.get(snapshot.device)
        if accumulator is None:
            return
        accumulator.committed_fingerprint = snapshot.fingerprint
        if accumulator.pending_snapshot is snapshot:
            accumulator.pending_snapshot = None

    def abandon(self, snapshot: Snapshot) -> None:
        """The write failed; the stale fingerprint makes the next tick retry."""
        accumulator = self._devices.get(snapshot.device)
        if accumulator is not None and accumulator.pending_snapshot is snapshot:
            accumulator.pending_snapshot = None
        self.logger.warning(f"Snapshot for {snapshot.device} not written, will retry on next tick")

    def pending(self, device: str) -> Optional[Snapshot]:
        accumulator = self._devices.get(device)
        return accumulator.pending_snapshot if accumulator else None

    def committed_fingerprint(self, device: str) -> Optional[str]:
        accumulator = self._devices.get(device)
        return accumulator.committed_fingerprint if accumulator else None

    def values(self, device: str) -> Dict[str, Any]:
        accumulator = self._devices.get(device)
        return dict(accumulator.values) if accumulator else {}

    def devices(self) -> List[str]:
        return list(self._devices)

    def reset_state(self) -> None:
        self._devices.clear()
        self.execution_count = 0
