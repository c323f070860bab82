"""
Observer Pattern Implementation for Sink Fan-out

Forwarded readings, node sightings and changed snapshots are published to an
EventSubject, which hands each event to every sink observer interested in its
type. A failing sink is logged and never affects the others.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, List
from dataclasses import dataclass
from enum import Enum


class EventType(Enum):
    """Kinds of events produced by an organization."""
    READING_FORWARDED = "reading_forwarded"
    NODE_SEEN = "node_seen"
    SNAPSHOT_CHANGED = "snapshot_changed"


@dataclass
class LoggerEvent:
    """Event envelope handed to sink observers."""
    event_type: EventType
    organization: str
    payload: Any


class SinkObserver(ABC):
    """Abstract base class for sinks fed by an organization."""

    @abstractmethod
    async def notify(self, event: LoggerEvent) -> None:
        """Handle one event."""
        pass

    @abstractmethod
    def get_observer_id(self) -> str:
        """Get unique identifier for this observer."""
        pass

    @abstractmethod
    def get_interested_events(self) -> List[EventType]:
        """Get list of event types this observer is interested in."""
        pass


class EventSubject:
    """Subject that notifies sink observers of organization events."""

    def __init__(self):
        self._observers: List[SinkObserver] = []
        self._logger = logging.getLogger(self.__class__.__name__)

    def subscribe(self, observer: SinkObserver) -> None:
        if observer not in self._observers:
            self._observers.append(observer)
            self._logger.info(f"Subscribed sink: {observer.get_observer_id()}")
        else:
            self._logger.warning(f"Sink already subscribed: {observer.get_observer_id()}")

    def unsubscribe(self, observer: SinkObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)
            self._logger.info(f"Unsubscribed sink: {observer.get_observer_id()}")
        else:
            self._logger.warning(f"Sink not found for unsubscription: {observer.get_observer_id()}")

    def interested(self, event_type: EventType) -> List[SinkObserver]:
        return [o for o in self._observers if event_type in o.get_interested_events()]

    async def notify_observers(self, event: LoggerEvent) -> None:
        """Notify all interested observers concurrently."""
        observers = self.interested(event.event_type)
        if not observers:
            self._logger.debug(f"No sinks interested in: {event.event_type}")
            return

        await asyncio.gather(
            *(self._safe_notify_observer(o, event) for o in observers),
            return_exceptions=True,
        )

    async def _safe_notify_observer(self, observer: SinkObserver, event: LoggerEvent) -> None:
        """Safely notify a single observer, catching and logging any exceptions."""
        try:
            await observer.notify(event)
        except Exception as e:
            self._logger.error(f"Error notifying sink {observer.get_observer_id()}: {e}", exc_info=True)

    def get_observer_count(self) -> int:
        return len(self._observers)

    def get_observer_ids(self) -> List[str]:
        return [observer.get_observer_id() for observer in self._observers]
