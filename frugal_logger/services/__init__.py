"""Configuration loading and sinks."""

from .config_service import ConfigService, deep_merge
from .csv_log_sink import CsvLogSink
from .node_registry import NodeRegistry
from .snapshot_store import SnapshotStore, InMemorySnapshotStore, LoggingSnapshotStore

__all__ = [
    'ConfigService',
    'deep_merge',
    'CsvLogSink',
    'NodeRegistry',
    'SnapshotStore',
    'InMemorySnapshotStore',
    'LoggingSnapshotStore',
]
