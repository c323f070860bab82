from datetime import datetime
from typing import Dict, List, Optional, Tuple

from frugal_logger.models.telemetry_models import NodeSighting


class NodeRegistry:
    """Last time each node of an organization announced itself."""

    def __init__(self):
        self._last_seen: Dict[Tuple[str, str], datetime] = {}

    def record(self, sighting: NodeSighting) -> None:
        self._last_seen[(sighting.project, sighting.node)] = sighting.timestamp

    def last_seen(self, project: str, node: str) -> Optional[datetime]:
        return self._last_seen.get((project, node))

    def nodes(self) -> List[NodeSighting]:
        return [NodeSighting(project, node, ts) for (project, node), ts in self._last_seen.items()]
