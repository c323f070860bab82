from __future__ import annotations
import asyncio, time, logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, TypeVar

from frugal_logger.core.exceptions import SinkError

T = TypeVar("T")

@dataclass
class BreakerConfig:
    failure_threshold: int = 5
    success_threshold: int = 1
    timeout: float = 60.0                 # seconds before a half-open probe

class BreakerState(Enum):
    CLOSED = "closed"
    OPEN   = "open"
    HALF_OPEN = "half_open"

class CircuitBreaker:
    """Guards a remote sink; while open, writes fail fast with SinkError."""

    def __init__(self, name: str, cfg: BreakerConfig | None = None):
        self.name = name
        self.cfg  = cfg or BreakerConfig()
        self.log  = logging.getLogger(self.__class__.__name__)
        self.state= BreakerState.CLOSED
        self.fail = 0
        self.ok   = 0
        self.last_fail_ts = 0.0

    async def __call__(self, fn: Callable[..., Awaitable[T]], *a, **kw) -> T:
        if self.state == BreakerState.OPEN:
            if time.time() - self.last_fail_ts > self.cfg.timeout:
                self.state, self.ok = BreakerState.HALF_OPEN, 0
            else:
                raise SinkError(f"{self.name}: circuit open")
        try:
            res = await fn(*a, **kw)
        except asyncio.CancelledError:
            raise
        except Exception:
            self._on_fail()
            raise
        self._on_success()
        return res

    def _on_success(self):
        if self.state == BreakerState.HALF_OPEN:
            self.ok += 1
            if self.ok >= self.cfg.success_threshold:
                self.state, self.fail = BreakerState.CLOSED, 0
                self.log.info("%s: circuit closed", self.name)
        else:
            self.fail = 0

    def _on_fail(self):
        self.fail, self.last_fail_ts = self.fail + 1, time.time()
        self.log.warning("%s: write failed %d/%d", self.name, self.fail, self.cfg.failure_threshold)
        if self.state == BreakerState.HALF_OPEN or self.fail >= self.cfg.failure_threshold:
            self.state = BreakerState.OPEN
            self.log.error("%s: circuit opened", self.name)
