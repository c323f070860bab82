"""Frugal IoT MQTT Logger - Main Package"""

__version__ = '1.0.0'
__description__ = 'MQTT telemetry logger with hierarchical topic configuration and duplicate suppression'

# Core patterns - most fundamental
from .core import ConnectionStateMachine, CircuitBreaker, EventSubject, SinkObserver

# Models - domain objects
from .models import OrganizationConfig, LoggerConfig, DuplicateRule, Reading, Snapshot

# Decoding, matching, resolution
from .mapping import decode
from .subscriptions import matches, resolve, SubscriptionRegistry

# Triggers
from .triggers import DeduplicationEngine, SnapshotChangeDetector

# Services
from .services import ConfigService, CsvLogSink

# Orchestration
from .orchestration import MqttLogger, MqttOrganization, OrganizationProcessor

__all__ = [
    # Core
    'ConnectionStateMachine',
    'CircuitBreaker',
    'EventSubject',
    'SinkObserver',

    # Models
    'OrganizationConfig',
    'LoggerConfig',
    'DuplicateRule',
    'Reading',
    'Snapshot',

    # Engine
    'decode',
    'matches',
    'resolve',
    'SubscriptionRegistry',
    'DeduplicationEngine',
    'SnapshotChangeDetector',

    # Services
    'ConfigService',
    'CsvLogSink',

    # Orchestration
    'MqttLogger',
    'MqttOrganization',
    'OrganizationProcessor',
]
