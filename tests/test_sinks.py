"""Tests for the CSV sink, snapshot stores, fan-out and the circuit breaker."""

import asyncio
from datetime import datetime, timezone

import pytest

from frugal_logger.core.exceptions import SinkError
from frugal_logger.core.patterns.circuit_breaker import BreakerConfig, BreakerState, CircuitBreaker
from frugal_logger.core.patterns.observer import EventSubject, EventType, LoggerEvent, SinkObserver
from frugal_logger.models.telemetry_models import Reading
from frugal_logger.services.csv_log_sink import CsvLogSink, format_row, sanitize_topic
from tests.conftest import RecordingSink, at


def reading(raw="20.5", topic="dev/lotus/esp1/temp", timestamp=None):
    return Reading(timestamp=timestamp or at(0), topic=topic, value=float(raw), raw=raw)


class TestCsvLogSink:

    def test_path_per_topic_and_utc_day(self, tmp_path):
        sink = CsvLogSink(tmp_path)
        late = datetime(2024, 5, 1, 23, 30, tzinfo=timezone.utc)
        assert sink.path_for(reading(timestamp=late)) == tmp_path / "dev/lotus/esp1/temp/2024-05-01.csv"

    def test_row_format(self):
        assert format_row(reading("21.5")) == f'{int(at(0).timestamp() * 1000)},"21.5"\n'

    def test_append_creates_directories(self, tmp_path):
        sink = CsvLogSink(tmp_path)
        path = sink.append(reading("1"))
        sink.append(reading("2"))
        assert path.exists()
        assert len(path.read_text(encoding="utf-8").splitlines()) == 2

    def test_topic_cannot_escape_data_dir(self):
        assert str(sanitize_topic("/../dev//lotus/./x")) == "dev/lotus/x"
        with pytest.raises(SinkError):
            sanitize_topic("/../")

    def test_unwritable_directory(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(SinkError):
            CsvLogSink(blocker).append(reading())


class BrokenSink(SinkObserver):
    def get_observer_id(self):
        return "broken"

    def get_interested_events(self):
        return [EventType.READING_FORWARDED]

    async def notify(self, event):
        raise SinkError("down")


class TestEventSubject:

    def test_fan_out_isolates_failures(self):
        subject = EventSubject()
        recorder = RecordingSink()
        subject.subscribe(BrokenSink())
        subject.subscribe(recorder)
        asyncio.run(subject.notify_observers(
            LoggerEvent(EventType.READING_FORWARDED, "dev", reading())))
        assert len(recorder.events) == 1

    def test_interest_filter(self):
        subject = EventSubject()
        subject.subscribe(BrokenSink())
        assert subject.interested(EventType.SNAPSHOT_CHANGED) == []
        assert subject.get_observer_ids() == ["broken"]

    def test_duplicate_subscribe_ignored(self):
        subject = EventSubject()
        sink = RecordingSink()
        subject.subscribe(sink)
        subject.subscribe(sink)
        assert subject.get_observer_count() == 1


class TestCircuitBreaker:

    def test_opens_after_threshold(self):
        calls = []

        async def failing():
            calls.append(1)
            raise OSError("unreachable")

        async def scenario():
            breaker = CircuitBreaker("store", BreakerConfig(failure_threshold=2, timeout=60))
            for _ in range(2):
                with pytest.raises(OSError):
                    await breaker(failing)
            with pytest.raises(SinkError):
                await breaker(failing)
            return breaker

        breaker = asyncio.run(scenario())
        assert breaker.state == BreakerState.OPEN
        assert len(calls) == 2

    def test_half_open_probe_closes(self):
        async def ok():
            return "written"

        async def scenario():
            breaker = CircuitBreaker("store", BreakerConfig(failure_threshold=1, timeout=0))
            breaker._on_fail()
            assert breaker.state == BreakerState.OPEN
            breaker.last_fail_ts -= 1
            result = await breaker(ok)
            return breaker, result

        breaker, result = asyncio.run(scenario())
        assert result == "written"
        assert breaker.state == BreakerState.CLOSED
