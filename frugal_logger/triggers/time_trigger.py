import time
from typing import Optional

class IntervalTrigger:
    """Fixed-interval schedule for snapshot ticks"""

    def __init__(self, interval_seconds: float = 60):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.interval_seconds = interval_seconds
        self.last_trigger_time: Optional[float] = None
        self.execution_count = 0

    def should_trigger(self, current_time: Optional[float] = None) -> bool:
        current_time = time.monotonic() if current_time is None else current_time

        if self.last_trigger_time is None:
            # first tick waits a full interval so values can accumulate
            self.last_trigger_time = current_time
            return False

        if (current_time - self.last_trigger_time) >= self.interval_seconds:
            self.last_trigger_time = current_time
            self.execution_count += 1
            return True

        return False

    def get_next_check_interval(self, current_time: Optional[float] = None) -> float:
        if self.last_trigger_time is None:
            return 0.0  # Check immediately

        current_time = time.monotonic() if current_time is None else current_time
        elapsed = current_time - self.last_trigger_time
        return max(0.0, self.interval_seconds - elapsed)

    def reset_state(self) -> None:
        self.last_trigger_time = None
        self.execution_count = 0
