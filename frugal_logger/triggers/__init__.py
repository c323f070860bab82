"""Duplicate suppression, snapshot change detection and tick scheduling."""

from .base_trigger import TriggerStrategy
from .duplicate_trigger import DeduplicationEngine, Verdict, evaluate_rule
from .snapshot_trigger import SnapshotChangeDetector, fingerprint
from .time_trigger import IntervalTrigger

__all__ = [
    'TriggerStrategy',
    'DeduplicationEngine',
    'Verdict',
    'evaluate_rule',
    'SnapshotChangeDetector',
    'fingerprint',
    'IntervalTrigger',
]
