from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict


@dataclass(frozen=True, slots=True)
class Reading:
    """A reading that survived duplicate suppression."""
    timestamp: datetime
    topic: str
    value: Any
    raw: str

    @property
    def epoch_ms(self) -> int:
        return int(self.timestamp.timestamp() * 1000)


@dataclass(frozen=True, slots=True)
class NodeSighting:
    """A node announced itself on its project's discovery topic."""
    project: str
    node: str
    timestamp: datetime


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Current values of one device, captured on a tick."""
    device: str
    values: Dict[str, Any]
    timestamp: datetime
    fingerprint: str = field(compare=False)
