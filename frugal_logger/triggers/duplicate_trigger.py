from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
import logging

from frugal_logger.core.exceptions import DecodeError
from frugal_logger.mapping.value_coder import decode, is_number, values_equal
from frugal_logger.models.config_models import DuplicateRule
from frugal_logger.subscriptions.subscription import Subscription, TopicState
from .base_trigger import TriggerStrategy


class Verdict(Enum):
    FORWARD = "forward"
    DROP = "drop"


def value_threshold_exceeded(rule: DuplicateRule, previous: Any, value: Any) -> bool:
    if is_number(previous) and is_number(value):
        # NaN differences compare False, so they never exceed
        return abs(value - previous) > rule.significant_value
    return not values_equal(previous, value)


def evaluate_rule(rule: Optional[DuplicateRule], state: TopicState, value: Any, now: datetime) -> Verdict:
    """Duplicate decision against the last forwarded reading of one topic."""
    if not state.has_forwarded:
        return Verdict.FORWARD
    if now == state.last_timestamp and values_equal(value, state.last_value):
        return Verdict.DROP
    if rule is None or not rule.has_thresholds:
        return Verdict.FORWARD
    if rule.significant_value is not None and value_threshold_exceeded(rule, state.last_value, value):
        return Verdict.FORWARD
    if rule.significant_date is not None and (now - state.last_timestamp) > rule.significant_date:
        return Verdict.FORWARD
    return Verdict.DROP


class DeduplicationEngine(TriggerStrategy):
    """Decides, per subscription and concrete topic, whether to forward a reading"""

    def __init__(self, name: str = "dedup"):
        super().__init__(name)
        self.forwarded = 0
        self.dropped = 0
        self.decode_errors = 0
        self.logger = logging.getLogger(self.__class__.__name__)

    def on_message(self, subscription: Subscription, topic: str, raw: str, now: datetime) -> Verdict:
        try:
            value = decode(raw, subscription.value_type)
        except DecodeError as e:
            self.decode_errors += 1
            self.logger.warning(f"Dropping {topic}: {e}")
            return Verdict.DROP

        state = subscription.state_for(topic)
        state.current_timestamp = now
        state.current_value = value
        state.current_raw = raw

        verdict = evaluate_rule(subscription.rule, state, value, now)
        if verdict is Verdict.FORWARD:
            state.last_timestamp = now
            state.last_value = value
            self.forwarded += 1
            self._fired(now)
        else:
            self.dropped += 1
            self.logger.debug(f"Duplicate on {topic}: {raw!r}")
        return verdict

    def reset_state(self) -> None:
        self.forwarded = 0
        self.dropped = 0
        self.decode_errors = 0
        self.execution_count = 0

    def get_execution_metadata(self) -> Dict[str, Any]:
        metadata = super().get_execution_metadata()
        metadata.update(forwarded=self.forwarded, dropped=self.dropped, decode_errors=self.decode_errors)
        return metadata
