from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from frugal_logger.models.config_models import DuplicateRule
from frugal_logger.subscriptions.topic_matcher import TOPIC_SEGMENTS, matches

DEFAULT_QOS = 0       # at most once


@dataclass(slots=True)
class TopicState:
    """Per concrete topic state kept by a subscription."""
    last_timestamp: Optional[datetime] = None     # last forwarded reading
    last_value: Any = None
    current_timestamp: Optional[datetime] = None  # latest reading, forwarded or not
    current_value: Any = None
    current_raw: Optional[str] = None

    @property
    def has_forwarded(self) -> bool:
        return self.last_timestamp is not None


@dataclass(eq=False)
class Subscription:
    """
    A sensor subscription bound to a declared type and duplicate rule.

    The pattern may contain `+`; state is tracked per concrete topic seen
    and lives as long as the organization's connection.
    """
    pattern: str
    value_type: str
    rule: Optional[DuplicateRule] = None
    qos: int = DEFAULT_QOS
    states: Dict[str, TopicState] = field(default_factory=dict, repr=False)

    min_segments = TOPIC_SEGMENTS
    is_discovery = False

    def matches(self, topic: str) -> bool:
        return matches(self.pattern, topic, self.min_segments)

    def state_for(self, topic: str) -> TopicState:
        state = self.states.get(topic)
        if state is None:
            state = self.states[topic] = TopicState()
        return state

    def current_value(self, topic: str) -> Any:
        state = self.states.get(topic)
        return state.current_value if state else None

    def topics(self):
        return list(self.states)


@dataclass(eq=False)
class DiscoverySubscription(Subscription):
    """`org/project` subscription; payload is the id of a live node."""
    value_type: str = "text"

    min_segments = 2
    is_discovery = True
