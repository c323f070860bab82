"""
One organization's logger: a single asyncio task consumes an event queue fed
by the bus thread, the snapshot ticker and snapshot write acknowledgements, so
all state of the organization has exactly one writer.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum, auto
from typing import Any, Callable, Iterable, Optional, Set

from frugal_logger.core.exceptions import ProtocolError
from frugal_logger.core.patterns.circuit_breaker import BreakerConfig, CircuitBreaker
from frugal_logger.core.patterns.observer import EventSubject, EventType, LoggerEvent, SinkObserver
from frugal_logger.core.patterns.state_machine import ConnectionState
from frugal_logger.models.config_models import OrganizationConfig
from frugal_logger.models.telemetry_models import Snapshot
from frugal_logger.orchestration.processor import OrganizationProcessor
from frugal_logger.protocols.base_protocol_client import BaseBusClient, BusClientConfig
from frugal_logger.protocols.mqtt_client import MqttBusClient
from frugal_logger.services.snapshot_store import SnapshotStore
from frugal_logger.subscriptions.subscription import DEFAULT_QOS
from frugal_logger.triggers.time_trigger import IntervalTrigger


class EventKind(Enum):
    MESSAGE = auto()
    CONNECTION = auto()
    TICK = auto()
    SNAPSHOT_WRITTEN = auto()
    SNAPSHOT_FAILED = auto()
    STOP = auto()


@dataclass
class OrganizationEvent:
    kind: EventKind
    topic: Optional[str] = None
    payload: Optional[str] = None
    timestamp: Optional[datetime] = None
    state: Optional[ConnectionState] = None
    snapshot: Optional[Snapshot] = None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MqttOrganization:
    """Connection, subscriptions and sinks for one organization."""

    def __init__(self,
                 org: OrganizationConfig,
                 sinks: Iterable[SinkObserver] = (),
                 snapshot_store: Optional[SnapshotStore] = None,
                 snapshot_interval: float = 60.0,
                 qos: int = DEFAULT_QOS,
                 connect_timeout: float = 5.0,
                 breaker_config: Optional[BreakerConfig] = None,
                 bus_factory: Optional[Callable[["MqttOrganization"], BaseBusClient]] = None):
        self.org = org
        self.logger = logging.getLogger(self.__class__.__name__)
        self.processor = OrganizationProcessor(org, qos=qos)
        self.subject = EventSubject()
        for sink in sinks:
            self.subject.subscribe(sink)
        self.snapshot_store = snapshot_store
        self.snapshot_interval = org.snapshot_interval or snapshot_interval
        self.breaker = CircuitBreaker(f"{org.id}:snapshots", breaker_config)
        self.connect_timeout = connect_timeout
        self._bus_factory = bus_factory or self._default_bus
        self.bus: Optional[BaseBusClient] = None

        self._queue: "asyncio.Queue[OrganizationEvent]" = asyncio.Queue()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._worker: Optional[asyncio.Task] = None
        self._ticker: Optional[asyncio.Task] = None
        self._pending: Set[asyncio.Task] = set()

    @property
    def id(self) -> str:
        return self.org.id

    @property
    def status(self) -> ConnectionState:
        return self.processor.connection.state

    def _default_bus(self, organization: "MqttOrganization") -> BaseBusClient:
        config = BusClientConfig.from_organization(self.org, connect_timeout=self.connect_timeout)
        return MqttBusClient(config, listener=organization)

    # ---------- lifecycle ------------------------------------------------- #
    async def start(self):
        if self._worker is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._worker = asyncio.create_task(self._run(), name=f"org:{self.id}")
        if self.snapshot_store is not None:
            self._ticker = asyncio.create_task(self._tick_loop(), name=f"tick:{self.id}")
        self.bus = self._bus_factory(self)
        self.post_connection(ConnectionState.CONNECTING)
        await self.bus.connect()

    async def stop(self):
        if self._worker is None:
            return
        if self._ticker is not None:
            self._ticker.cancel()
            await asyncio.gather(self._ticker, return_exceptions=True)
        if self.bus is not None:
            await self.bus.disconnect()
        self._enqueue(OrganizationEvent(EventKind.STOP))
        await self._worker
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
        self._worker = self._ticker = None
        self.logger.info(f"mqtt {self.id} stopped")

    async def drain(self):
        """Wait until every queued event, and the sink writes it caused, is done."""
        while True:
            await self._queue.join()
            if not self._pending:
                return
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ---------- thread-safe entry points (BusListener) -------------------- #
    def post_message(self, topic: str, payload: str, arrival: datetime) -> None:
        self._post(OrganizationEvent(EventKind.MESSAGE, topic=topic, payload=payload, timestamp=arrival))

    def post_connection(self, state: ConnectionState) -> None:
        self._post(OrganizationEvent(EventKind.CONNECTION, state=state))

    def post_tick(self, now: Optional[datetime] = None) -> None:
        self._post(OrganizationEvent(EventKind.TICK, timestamp=now or utcnow()))

    def _post(self, event: OrganizationEvent):
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if self._loop is None or running is self._loop:
            self._enqueue(event)
        else:
            self._loop.call_soon_threadsafe(self._enqueue, event)

    def _enqueue(self, event: OrganizationEvent):
        self._queue.put_nowait(event)

    # ---------- event loop ------------------------------------------------ #
    async def _run(self):
        while True:
            event = await self._queue.get()
            try:
                if event.kind == EventKind.STOP:
                    return
                self._handle(event)
            except Exception as e:
                self.logger.error(f"Error handling {event.kind.name} for {self.id}: {e}", exc_info=True)
            finally:
                self._queue.task_done()

    def _handle(self, event: OrganizationEvent):
        if event.kind == EventKind.MESSAGE:
            self._on_message(event.topic, event.payload, event.timestamp)
        elif event.kind == EventKind.CONNECTION:
            self._on_connection(event.state)
        elif event.kind == EventKind.TICK:
            for snapshot in self.processor.tick(event.timestamp):
                self._spawn(self._write_snapshot(snapshot))
        elif event.kind == EventKind.SNAPSHOT_WRITTEN:
            self.processor.commit_snapshot(event.snapshot)
            self._publish(EventType.SNAPSHOT_CHANGED, event.snapshot)
        elif event.kind == EventKind.SNAPSHOT_FAILED:
            self.processor.abandon_snapshot(event.snapshot)

    def _on_message(self, topic: str, payload: str, arrival: datetime):
        outcome = self.processor.process_message(topic, payload, arrival)
        for reading in outcome.readings:
            self._publish(EventType.READING_FORWARDED, reading)
        for sighting in outcome.sightings:
            self._publish(EventType.NODE_SEEN, sighting)

    def _on_connection(self, state: ConnectionState):
        for pattern, qos in self.processor.on_connection_state(state):
            try:
                self.bus.subscribe(pattern, qos)
            except ProtocolError as e:
                self.logger.error(f"mqtt {self.id} {e}")

    def _publish(self, event_type: EventType, payload: Any):
        if self.subject.interested(event_type):
            self._spawn(self.subject.notify_observers(LoggerEvent(event_type, self.id, payload)))

    def _spawn(self, coro):
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write_snapshot(self, snapshot: Snapshot):
        try:
            await self.breaker(self.snapshot_store.write_snapshot, snapshot)
        except Exception as e:
            self.logger.error(f"Snapshot write for {snapshot.device} failed: {e}")
            self._enqueue(OrganizationEvent(EventKind.SNAPSHOT_FAILED, snapshot=snapshot))
        else:
            self._enqueue(OrganizationEvent(EventKind.SNAPSHOT_WRITTEN, snapshot=snapshot))

    async def _tick_loop(self):
        trigger = IntervalTrigger(self.snapshot_interval)
        while True:
            await asyncio.sleep(trigger.get_next_check_interval())
            if trigger.should_trigger():
                self.post_tick()

    # ---------- pull access ----------------------------------------------- #
    def current_value(self, topic: str) -> Any:
        return self.processor.current_value(topic)
