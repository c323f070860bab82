# frugal_logger/core/__init__.py
"""Core infrastructure components for the frugal MQTT logger."""

# Import order: most fundamental to most specific

from .exceptions import (
    FrugalLoggerError,
    ConfigurationError,
    DecodeError,
    ProtocolError,
    SinkError,
)

from .patterns.state_machine import ConnectionStateMachine, ConnectionState
from .patterns.circuit_breaker import CircuitBreaker, BreakerConfig
from .patterns.observer import (
    EventType,
    EventSubject,
    LoggerEvent,
    SinkObserver,
)


__all__ = [
    "ConnectionStateMachine",
    "ConnectionState",
    "CircuitBreaker",
    "BreakerConfig",
    "EventType",
    "EventSubject",
    "LoggerEvent",
    "SinkObserver",
    "FrugalLoggerError",        # make available at package root
    "ConfigurationError",
    "DecodeError",
    "ProtocolError",
    "SinkError",
]
