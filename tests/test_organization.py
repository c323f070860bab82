"""Tests for the organization event loop with a fake bus and in-memory stores."""

import asyncio

from frugal_logger.core.exceptions import SinkError
from frugal_logger.core.patterns.circuit_breaker import BreakerConfig
from frugal_logger.core.patterns.observer import EventType
from frugal_logger.core.patterns.state_machine import ConnectionState
from frugal_logger.orchestration.organization import MqttOrganization
from frugal_logger.services.csv_log_sink import CsvLogSink
from frugal_logger.services.snapshot_store import InMemorySnapshotStore, SnapshotStore
from tests.conftest import FakeBus, RecordingSink, at

TOPIC = "dev/lotus/esp1/temp"
DEVICE = "dev/lotus/esp1"


class FlakyStore(SnapshotStore):
    """Fails the first `failures` writes."""

    def __init__(self, failures=1):
        self.failures = failures
        self.calls = 0
        self.written = []

    async def write_snapshot(self, snapshot):
        self.calls += 1
        if self.calls <= self.failures:
            raise SinkError("store unavailable")
        self.written.append(snapshot)


def organization(org, **kwargs):
    buses = []

    def bus_factory(listener):
        bus = FakeBus(listener)
        buses.append(bus)
        return bus

    kwargs.setdefault("snapshot_interval", 3600)
    return MqttOrganization(org, bus_factory=bus_factory, **kwargs), buses


class TestLifecycle:

    def test_start_subscribes_and_stop_closes(self, sensor_org):
        async def scenario():
            org, buses = organization(sensor_org)
            await org.start()
            await org.drain()
            status = org.status
            await org.stop()
            return org, buses[0], status

        org, bus, status = asyncio.run(scenario())
        assert status == ConnectionState.CONNECTED
        assert set(bus.subscribed) == {(TOPIC, 0), ("dev/lotus", 0)}
        assert org.status == ConnectionState.CLOSED

    def test_reconnect_resubscribes_without_losing_state(self, sensor_org):
        async def scenario():
            org, buses = organization(sensor_org)
            await org.start()
            org.post_message(TOPIC, "20.0", at(0))
            await org.drain()
            buses[0].drop_and_restore()
            org.post_message(TOPIC, "20.2", at(10))
            await org.drain()
            await org.stop()
            return org, buses[0]

        org, bus = asyncio.run(scenario())
        assert bus.subscribed.count((TOPIC, 0)) == 2
        assert len(org.processor.registry) == 2
        assert org.processor.dedup.forwarded == 1
        assert org.current_value(TOPIC) == 20.2


class TestSinks:

    def test_forwarded_readings_written_to_csv(self, sensor_org, tmp_path):
        recorder = RecordingSink()

        async def scenario():
            org, _ = organization(sensor_org, sinks=[CsvLogSink(tmp_path), recorder])
            await org.start()
            for raw, seconds in (("20.0", 0), ("20.3", 1), ("21.0", 2)):
                org.post_message(TOPIC, raw, at(seconds))
            org.post_message("dev/lotus", "esp1", at(3))
            await org.drain()
            await org.stop()

        asyncio.run(scenario())
        path = tmp_path / "dev" / "lotus" / "esp1" / "temp" / "2024-05-01.csv"
        assert path.read_text(encoding="utf-8").splitlines() == [
            f'{int(at(0).timestamp() * 1000)},"20.0"',
            f'{int(at(2).timestamp() * 1000)},"21.0"',
        ]
        assert [r.raw for r in recorder.of(EventType.READING_FORWARDED)] == ["20.0", "21.0"]
        assert [s.node for s in recorder.of(EventType.NODE_SEEN)] == ["esp1"]

    def test_failing_sink_does_not_stop_processing(self, sensor_org, tmp_path):
        blocker = tmp_path / "blocked"
        blocker.write_text("not a directory")
        recorder = RecordingSink()

        async def scenario():
            org, _ = organization(sensor_org, sinks=[CsvLogSink(blocker), recorder])
            await org.start()
            org.post_message(TOPIC, "20.0", at(0))
            org.post_message(TOPIC, "25.0", at(1))
            await org.drain()
            await org.stop()

        asyncio.run(scenario())
        assert len(recorder.of(EventType.READING_FORWARDED)) == 2


class TestSnapshots:

    def test_only_changed_snapshots_written(self, sensor_org):
        store = InMemorySnapshotStore()
        recorder = RecordingSink()

        async def scenario():
            org, _ = organization(sensor_org, sinks=[recorder], snapshot_store=store)
            await org.start()
            org.post_message(TOPIC, "20.0", at(0))
            org.post_message(TOPIC, "20.3", at(1))
            org.post_tick(at(60))
            await org.drain()
            org.post_tick(at(120))
            await org.drain()
            org.post_message(TOPIC, "20.4", at(130))
            org.post_tick(at(180))
            await org.drain()
            await org.stop()

        asyncio.run(scenario())
        assert [s.values for s in store.history] == [{"temp": 20.3}, {"temp": 20.4}]
        assert store.get(DEVICE).timestamp == at(180)
        assert len(recorder.of(EventType.SNAPSHOT_CHANGED)) == 2

    def test_failed_write_retried_on_next_tick(self, sensor_org):
        store = FlakyStore(failures=1)

        async def scenario():
            org, _ = organization(sensor_org, snapshot_store=store,
                                  breaker_config=BreakerConfig(failure_threshold=3))
            await org.start()
            org.post_message(TOPIC, "20.0", at(0))
            org.post_tick(at(60))
            await org.drain()
            pending = org.processor.detector.committed_fingerprint(DEVICE)
            org.post_tick(at(120))
            await org.drain()
            org.post_tick(at(180))
            await org.drain()
            await org.stop()
            return pending

        committed_after_failure = asyncio.run(scenario())
        assert committed_after_failure is None
        assert store.calls == 2
        assert [s.values for s in store.written] == [{"temp": 20.0}]
