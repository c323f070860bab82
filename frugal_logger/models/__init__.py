"""Data models and domain objects."""

from .config_models import (
    WILDCARD,
    KeyKind,
    TreeKey,
    DuplicateRule,
    Level,
    ConfigNode,
    TopicConfig,
    NodeConfig,
    ProjectConfig,
    OrganizationConfig,
    LoggerConfig,
    parse_duration,
)

from .telemetry_models import (
    Reading,
    NodeSighting,
    Snapshot,
)

__all__ = [
    # Configuration tree
    'WILDCARD',
    'KeyKind',
    'TreeKey',
    'DuplicateRule',
    'Level',
    'ConfigNode',
    'TopicConfig',
    'NodeConfig',
    'ProjectConfig',
    'OrganizationConfig',
    'LoggerConfig',
    'parse_duration',

    # Telemetry
    'Reading',
    'NodeSighting',
    'Snapshot',
]
