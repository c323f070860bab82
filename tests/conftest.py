"""Shared fixtures: organizations built from YAML snippets and fake collaborators."""

from datetime import datetime, timedelta, timezone

import pytest

from frugal_logger.core.patterns.observer import EventType, SinkObserver
from frugal_logger.core.patterns.state_machine import ConnectionState
from frugal_logger.services.config_service import ConfigService


T0 = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def at(seconds: float) -> datetime:
    return T0 + timedelta(seconds=seconds)


def org_from_yaml(text: str):
    return ConfigService.from_text(text).organizations[0]


HIERARCHY_YAML = """
organizations:
  dev:
    mqtt:
      broker: mqtt://localhost
    type: float
    duplicates:
      significantValue: 10
    projects:
      lotus:
        duplicates:
          significantValue: 1
        nodes:
          esp1:
            topics:
              temperature:
                duplicates:
                  significantValue: 0.1
              humidity: {}
          '+':
            duplicates:
              significantValue: 2
            topics:
              humidity:
                duplicates:
                  significantValue: 3
      '+':
        nodes:
          '+':
            topics:
              battery:
                type: int
"""

SENSOR_YAML = """
organizations:
  dev:
    mqtt:
      broker: mqtt://localhost
    projects:
      lotus:
        nodes:
          esp1:
            topics:
              temp:
                type: float
                duplicates:
                  significantValue: 0.5
"""


@pytest.fixture
def hierarchy_org():
    return org_from_yaml(HIERARCHY_YAML)


@pytest.fixture
def sensor_org():
    return org_from_yaml(SENSOR_YAML)


class FakeBus:
    """Stands in for the MQTT client: connects instantly and records subscribes."""

    def __init__(self, listener):
        self.listener = listener
        self.subscribed = []

    async def connect(self):
        self.listener.post_connection(ConnectionState.CONNECTED)

    async def disconnect(self):
        self.listener.post_connection(ConnectionState.CLOSED)

    def subscribe(self, pattern, qos=0):
        self.subscribed.append((pattern, qos))

    def drop_and_restore(self):
        self.listener.post_connection(ConnectionState.RECONNECTING)
        self.listener.post_connection(ConnectionState.CONNECTED)


class RecordingSink(SinkObserver):
    def __init__(self):
        self.events = []

    def get_observer_id(self):
        return "recording"

    def get_interested_events(self):
        return list(EventType)

    async def notify(self, event):
        self.events.append(event)

    def of(self, event_type):
        return [e.payload for e in self.events if e.event_type == event_type]
