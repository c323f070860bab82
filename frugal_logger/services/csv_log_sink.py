"""Durable log sink: one CSV file per topic per UTC day."""

import asyncio
import logging
from datetime import timezone
from pathlib import Path
from typing import List, Union

from frugal_logger.core.exceptions import SinkError
from frugal_logger.core.patterns.observer import EventType, LoggerEvent, SinkObserver
from frugal_logger.models.telemetry_models import Reading


def sanitize_topic(topic: str) -> Path:
    """Relative path for a topic, without leading `/` or `..` segments."""
    parts = [p for p in topic.split("/") if p and p not in (".", "..")]
    if not parts:
        raise SinkError(f"Topic cannot be used as a path: {topic!r}")
    return Path(*parts)


def format_row(reading: Reading) -> str:
    return f'{reading.epoch_ms},"{reading.raw}"\n'


class CsvLogSink(SinkObserver):
    """Appends forwarded readings to `<data_dir>/<topic>/<YYYY-MM-DD>.csv`."""

    def __init__(self, data_dir: Union[str, Path] = "data"):
        self.data_dir = Path(data_dir)
        self.logger = logging.getLogger(self.__class__.__name__)
        self._lock = asyncio.Lock()

    def get_observer_id(self) -> str:
        return f"csv:{self.data_dir}"

    def get_interested_events(self) -> List[EventType]:
        return [EventType.READING_FORWARDED]

    def path_for(self, reading: Reading) -> Path:
        day = reading.timestamp.astimezone(timezone.utc).strftime("%Y-%m-%d")
        return self.data_dir / sanitize_topic(reading.topic) / f"{day}.csv"

    async def notify(self, event: LoggerEvent) -> None:
        async with self._lock:   # rows keep arrival order
            await asyncio.to_thread(self.append, event.payload)

    def append(self, reading: Reading) -> Path:
        path = self.path_for(reading)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "a", encoding="utf-8") as f:
                f.write(format_row(reading))
        except OSError as e:
            self.logger.error(f"Error appending to {path}: {e}")
            raise SinkError(str(e)) from e
        return path
