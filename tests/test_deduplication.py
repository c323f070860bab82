"""Tests for duplicate suppression against the last forwarded reading."""

from datetime import timedelta

import pytest

from frugal_logger.models.config_models import DuplicateRule
from frugal_logger.subscriptions.subscription import Subscription
from frugal_logger.triggers.duplicate_trigger import DeduplicationEngine, Verdict
from tests.conftest import at

TOPIC = "dev/lotus/esp1/temp"

F = Verdict.FORWARD
D = Verdict.DROP


@pytest.fixture
def engine():
    return DeduplicationEngine()


def feed(engine, subscription, *messages, topic=TOPIC):
    return [engine.on_message(subscription, topic, raw, at(seconds)) for raw, seconds in messages]


class TestForwarding:

    def test_first_reading_always_forwarded(self, engine):
        sub = Subscription(TOPIC, "float", DuplicateRule(significant_value=100))
        assert feed(engine, sub, ("20.0", 0)) == [F]

    def test_exact_repeat_dropped(self, engine):
        sub = Subscription(TOPIC, "float")
        assert feed(engine, sub, ("11", 1), ("11", 1)) == [F, D]

    def test_no_rule_forwards_everything_else(self, engine):
        sub = Subscription(TOPIC, "float")
        assert feed(engine, sub, ("10", 0), ("10", 1), ("11", 2)) == [F, F, F]

    def test_empty_rule_behaves_like_no_rule(self, engine):
        sub = Subscription(TOPIC, "float", DuplicateRule())
        assert feed(engine, sub, ("10", 0), ("10", 1)) == [F, F]


class TestValueThreshold:

    def test_compared_to_last_forwarded_not_last_seen(self, engine):
        sub = Subscription(TOPIC, "float", DuplicateRule(significant_value=5))
        # 12 is dropped; 16 is compared with 10, not 12
        assert feed(engine, sub, ("10", 0), ("12", 1), ("16", 2)) == [F, D, F]

    def test_equal_value_later_is_dropped(self, engine):
        sub = Subscription(TOPIC, "float", DuplicateRule(significant_value=5))
        assert feed(engine, sub, ("10", 0), ("10", 30)) == [F, D]

    def test_threshold_is_strict(self, engine):
        sub = Subscription(TOPIC, "int", DuplicateRule(significant_value=5))
        assert feed(engine, sub, ("10", 0), ("15", 1), ("16", 2)) == [F, D, F]

    def test_half_degree_sensor(self, engine):
        sub = Subscription(TOPIC, "float", DuplicateRule(significant_value=0.5))
        assert feed(engine, sub, ("20.0", 0), ("20.3", 1), ("21.0", 2)) == [F, D, F]

    def test_text_change_exceeds(self, engine):
        sub = Subscription(TOPIC, "text", DuplicateRule(significant_value=1))
        assert feed(engine, sub, ("on", 0), ("off", 1), ("off", 2)) == [F, F, D]

    def test_nan_never_exceeds(self, engine):
        sub = Subscription(TOPIC, "float", DuplicateRule(significant_value=1))
        assert feed(engine, sub, ("n/a", 0), ("n/a", 1), ("5", 2)) == [F, D, D]

    def test_nan_repeat_dropped_without_rule(self, engine):
        sub = Subscription(TOPIC, "float")
        assert feed(engine, sub, ("n/a", 0), ("n/a", 0)) == [F, D]


class TestDateThreshold:
    def test_forwarded_after_interval(self, engine):
        sub = Subscription(TOPIC, "float", DuplicateRule(significant_date=timedelta(seconds=60)))
        assert feed(engine, sub, ("10", 0), ("10", 30), ("10", 60), ("10", 61)) == [F, D, D, F]

    def test_either_threshold_suffices(self, engine):
        rule = DuplicateRule(significant_value=5, significant_date=timedelta(minutes=10))
        sub = Subscription(TOPIC, "float", rule)
        assert feed(engine, sub, ("10", 0), ("11", 60), ("20", 120), ("21", 721)) == [F, D, F, F]


class TestState:
    """Per-topic bookkeeping and failure accounting."""

    def test_current_value_tracks_dropped_readings(self, engine):
        sub = Subscription(TOPIC, "float", DuplicateRule(significant_value=5))
        feed(engine, sub, ("10", 0), ("12", 1))
        state = sub.state_for(TOPIC)
        assert sub.current_value(TOPIC) == 12
        assert state.last_value == 10
        assert state.last_timestamp == at(0)
        assert state.current_raw == "12"

    def test_wildcard_state_is_per_topic(self, engine):
        sub = Subscription("dev/lotus/+/temp", "float", DuplicateRule(significant_value=5))
        assert feed(engine, sub, ("10", 0), topic="dev/lotus/esp1/temp") == [F]
        assert feed(engine, sub, ("12", 1), topic="dev/lotus/esp2/temp") == [F]
        assert set(sub.topics()) == {"dev/lotus/esp1/temp", "dev/lotus/esp2/temp"}

    def test_decode_failure_dropped_without_state(self, engine):
        sub = Subscription(TOPIC, "yaml")
        assert feed(engine, sub, ("{unclosed", 0)) == [D]
        assert engine.decode_errors == 1
        assert sub.current_value(TOPIC) is None
        # the next good payload is still a first reading
        assert feed(engine, sub, ("{a: 1}", 1)) == [F]

    def test_counters(self, engine):
        sub = Subscription(TOPIC, "float", DuplicateRule(significant_value=5))
        feed(engine, sub, ("10", 0), ("12", 1), ("20", 2))
        metadata = engine.get_execution_metadata()
        assert metadata["forwarded"] == 2
        assert metadata["dropped"] == 1
        assert metadata["last_execution"] == at(2)
        engine.reset_state()
        assert engine.forwarded == engine.dropped == 0
