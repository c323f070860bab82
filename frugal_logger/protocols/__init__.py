"""Message bus client implementations."""

from .base_protocol_client import (
    BaseBusClient,
    BusClientConfig,
    BusListener,
    BROKER_SCHEMES,
)

from .mqtt_client import MqttBusClient

__all__ = [
    # Base classes
    'BaseBusClient',
    'BusClientConfig',
    'BusListener',
    'BROKER_SCHEMES',

    # Implementations
    'MqttBusClient',
]
