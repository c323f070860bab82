from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional, Tuple
import logging

from frugal_logger.core.patterns.state_machine import ConnectionState, ConnectionStateMachine
from frugal_logger.models.config_models import OrganizationConfig
from frugal_logger.models.telemetry_models import NodeSighting, Reading, Snapshot
from frugal_logger.services.node_registry import NodeRegistry
from frugal_logger.subscriptions.registry import SubscriptionRegistry
from frugal_logger.subscriptions.subscription import DEFAULT_QOS, Subscription
from frugal_logger.subscriptions.topic_matcher import device_of, sensor_key_of, split_topic
from frugal_logger.triggers.duplicate_trigger import DeduplicationEngine, Verdict
from frugal_logger.triggers.snapshot_trigger import SnapshotChangeDetector


@dataclass
class MessageOutcome:
    readings: List[Reading] = field(default_factory=list)
    sightings: List[NodeSighting] = field(default_factory=list)


class OrganizationProcessor:
    """
    All state of one organization: registry, dedup, snapshots, node sightings.

    Not thread safe; exactly one caller (the organization's event loop task)
    may drive it.
    """

    def __init__(self, org: OrganizationConfig, qos: int = DEFAULT_QOS):
        self.org = org
        self.logger = logging.getLogger(self.__class__.__name__)
        self.connection = ConnectionStateMachine(org.id)
        self.registry = SubscriptionRegistry(org, qos=qos)
        self.dedup = DeduplicationEngine(org.id)
        self.detector = SnapshotChangeDetector(org.id)
        self.nodes = NodeRegistry()

    # ---------- connectivity ---------------------------------------------- #
    def on_connection_state(self, state: ConnectionState) -> List[Tuple[str, int]]:
        """Apply a state change; returns the (pattern, qos) pairs to subscribe."""
        if not self.connection.transition(state):
            return []
        if state != ConnectionState.CONNECTED:
            return []
        if self.connection.is_reconnect() and self.registry.is_built:
            self.logger.info(f"Resubscribing {len(self.registry)} patterns for {self.org.id}")
        self.registry.build()   # no-op once built, dedup state survives
        return self.registry.patterns()

    # ---------- messages -------------------------------------------------- #
    def process_message(self, topic: str, raw: str, now: datetime) -> MessageOutcome:
        outcome = MessageOutcome()
        subscriptions = self.registry.matching(topic)
        if not subscriptions:
            self.logger.debug(f"No subscription matches {topic}")
            return outcome
        if any(s.is_discovery for s in subscriptions):
            sighting = self._discovered(topic, raw, now)
            if sighting:
                outcome.sightings.append(sighting)
        # overlapping patterns: only the most specific one decides and forwards
        subscription = self.registry.most_specific(topic)
        if subscription is not None:
            reading = self._deduplicate(subscription, topic, raw, now)
            if reading:
                outcome.readings.append(reading)
        return outcome

    def _deduplicate(self, subscription: Subscription, topic: str, raw: str, now: datetime) -> Optional[Reading]:
        verdict = self.dedup.on_message(subscription, topic, raw, now)
        state = subscription.states.get(topic)
        if state is None or state.current_timestamp != now:
            return None   # not decoded
        self.detector.record_value(device_of(topic), sensor_key_of(topic), state.current_value)
        if verdict is Verdict.FORWARD:
            return Reading(timestamp=now, topic=topic, value=state.current_value, raw=raw)
        return None

    def _discovered(self, topic: str, raw: str, now: datetime) -> Optional[NodeSighting]:
        node = raw.strip()
        if not node:
            self.logger.debug(f"Empty node id on {topic}")
            return None
        sighting = NodeSighting(project=split_topic(topic)[1], node=node, timestamp=now)
        self.nodes.record(sighting)
        return sighting

    # ---------- snapshots ------------------------------------------------- #
    def tick(self, now: datetime) -> List[Snapshot]:
        snapshots = []
        for device in self.detector.devices():
            snapshot = self.detector.take_snapshot_if_changed(device, now)
            if snapshot is not None:
                snapshots.append(snapshot)
        return snapshots

    def commit_snapshot(self, snapshot: Snapshot) -> None:
        self.detector.commit(snapshot)

    def abandon_snapshot(self, snapshot: Snapshot) -> None:
        self.detector.abandon(snapshot)

    # ---------- pull access ----------------------------------------------- #
    def current_value(self, topic: str) -> Any:
        """Latest decoded value of a concrete topic, suppressed or not."""
        subscription = self.registry.most_specific(topic)
        if subscription is None:
            return None
        state = subscription.states.get(topic)
        return state.current_value if state is not None else None
