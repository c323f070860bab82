from __future__ import annotations
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any, ClassVar, Dict, Iterator, List, Optional, Tuple
import re

from frugal_logger.core.exceptions import ConfigurationError

WILDCARD_TOKEN = "+"
TYPE_ATTRIBUTE = "type"
DUPLICATES_ATTRIBUTE = "duplicates"


###############################################################################
# 1. TREE KEYS ----------------------------------------------------------------
###############################################################################

class KeyKind(Enum):
    EXACT = "exact"
    WILDCARD = "wildcard"


@dataclass(frozen=True, slots=True)
class TreeKey:
    """Key of a configuration child: an exact name or the `+` wildcard."""
    kind: KeyKind
    name: str = WILDCARD_TOKEN

    @classmethod
    def exact(cls, name: str) -> "TreeKey":
        if name == WILDCARD_TOKEN:
            return WILDCARD
        return cls(KeyKind.EXACT, name)

    @classmethod
    def parse(cls, raw: Any) -> "TreeKey":
        name = str(raw).strip()
        if not name:
            raise ConfigurationError("empty key in configuration tree")
        return cls.exact(name)

    @property
    def is_wildcard(self) -> bool:
        return self.kind == KeyKind.WILDCARD

    @property
    def segment(self) -> str:
        """Topic segment used when building a subscription pattern."""
        return self.name

    def __str__(self) -> str:
        return self.name


WILDCARD = TreeKey(KeyKind.WILDCARD)


###############################################################################
# 2. DUPLICATE RULE -----------------------------------------------------------
###############################################################################

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h|d)?\s*$")
_DURATION_UNITS = {"ms": 0.001, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(value: Any) -> timedelta:
    """Seconds as a number, or a string such as `"90s"`, `"10m"`, `"1h"`."""
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ConfigurationError(f"invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ConfigurationError(f"invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(seconds=float(amount) * _DURATION_UNITS[unit or "s"])


@dataclass(frozen=True, slots=True)
class DuplicateRule:
    """Thresholds below which a new reading is dropped as a repeat."""
    significant_value: Optional[float] = None
    significant_date: Optional[timedelta] = None

    @property
    def has_thresholds(self) -> bool:
        return self.significant_value is not None or self.significant_date is not None

    # ---------- factory --------------------------------------------------- #
    @classmethod
    def from_row(cls, row: Any) -> "DuplicateRule":
        if row is None:
            return cls()
        if not isinstance(row, dict):
            raise ConfigurationError(f"duplicates must be a mapping, got {row!r}")
        value = _first(row, "significantValue", "significant_value")
        date = _first(row, "significantDate", "significant_date")
        if value is not None:
            try:
                value = abs(float(value))
            except (TypeError, ValueError):
                raise ConfigurationError(f"invalid significantValue: {value!r}") from None
        return cls(
            significant_value = value,
            significant_date  = parse_duration(date) if date is not None else None,
        )


###############################################################################
# 3. CONFIGURATION TREE -------------------------------------------------------
###############################################################################

class Level(Enum):
    ORGANIZATION = "organization"
    PROJECT = "project"
    NODE = "node"
    TOPIC = "topic"


@dataclass(frozen=True, slots=True)
class ConfigNode:
    """One level of the organization -> project -> node -> topic tree."""
    key: TreeKey
    attributes: Dict[str, Any] = field(default_factory=dict)
    children: Dict[TreeKey, "ConfigNode"] = field(default_factory=dict)

    level: ClassVar[Level]

    def child(self, key: TreeKey) -> Optional["ConfigNode"]:
        return self.children.get(key)

    def attribute(self, name: str) -> Any:
        return self.attributes.get(name)

    @property
    def is_terminal(self) -> bool:
        return not self.children


@dataclass(frozen=True, slots=True)
class TopicConfig(ConfigNode):
    """A topic; with children it is a sub grouping such as `sht`."""
    level: ClassVar[Level] = Level.TOPIC

    @classmethod
    def from_row(cls, key: TreeKey, row: Any) -> "TopicConfig":
        row = _mapping(row, f"topic {key}")
        children = {
            child_key: cls.from_row(child_key, child_row)
            for child_key, child_row in _keyed(_nest_topic_keys(row.get("topics")))
        }
        return cls(key=key, attributes=_attributes(row), children=children)


@dataclass(frozen=True, slots=True)
class NodeConfig(ConfigNode):
    level: ClassVar[Level] = Level.NODE

    @classmethod
    def from_row(cls, key: TreeKey, row: Any) -> "NodeConfig":
        row = _mapping(row, f"node {key}")
        children = {
            topic_key: TopicConfig.from_row(topic_key, topic_row)
            for topic_key, topic_row in _keyed(_nest_topic_keys(row.get("topics")))
        }
        return cls(key=key, attributes=_attributes(row), children=children)


@dataclass(frozen=True, slots=True)
class ProjectConfig(ConfigNode):
    level: ClassVar[Level] = Level.PROJECT

    @classmethod
    def from_row(cls, key: TreeKey, row: Any) -> "ProjectConfig":
        row = _mapping(row, f"project {key}")
        children = {
            node_key: NodeConfig.from_row(node_key, node_row)
            for node_key, node_row in _keyed(row.get("nodes"))
        }
        return cls(key=key, attributes=_attributes(row), children=children)


@dataclass(frozen=True, slots=True)
class OrganizationConfig(ConfigNode):
    """Root of one organization's tree plus its broker credentials."""
    broker: Optional[str] = None
    userid: Optional[str] = None
    mqtt_password: Optional[str] = None
    snapshot_interval: Optional[float] = None
    level: ClassVar[Level] = Level.ORGANIZATION

    @property
    def id(self) -> str:
        return self.key.name

    @property
    def username(self) -> str:
        return self.userid or self.id

    def projects(self) -> Iterator[Tuple[TreeKey, "ConfigNode"]]:
        return iter(self.children.items())

    # ---------- factory --------------------------------------------------- #
    @classmethod
    def from_row(cls, org_id: Any, row: Any, default_broker: Optional[str] = None) -> "OrganizationConfig":
        key = TreeKey.parse(org_id)
        if key.is_wildcard:
            raise ConfigurationError("organization id cannot be a wildcard")
        row = _mapping(row, f"organization {key}")
        mqtt = _mapping(row.get("mqtt"), f"organization {key} mqtt")
        interval = row.get("snapshot_interval")
        children = {
            project_key: ProjectConfig.from_row(project_key, project_row)
            for project_key, project_row in _keyed(row.get("projects"))
        }
        return cls(
            key               = key,
            attributes        = _attributes(row),
            children          = children,
            broker            = mqtt.get("broker") or default_broker,
            userid            = row.get("userid"),
            mqtt_password     = row.get("mqtt_password"),
            snapshot_interval = parse_duration(interval).total_seconds() if interval is not None else None,
        )


@dataclass(frozen=True, slots=True)
class LoggerConfig:
    """Every organization the logger connects for."""
    organizations: List[OrganizationConfig]
    broker: Optional[str] = None

    @classmethod
    def from_row(cls, row: Any) -> "LoggerConfig":
        row = _mapping(row, "logger configuration")
        broker = _mapping(row.get("mqtt"), "mqtt").get("broker")
        organizations = [
            OrganizationConfig.from_row(org_id, org_row, default_broker=broker)
            for org_id, org_row in _mapping(row.get("organizations"), "organizations").items()
        ]
        for org in organizations:
            if not org.broker:
                raise ConfigurationError(f"organization {org.id} has no mqtt.broker")
        return cls(organizations=organizations, broker=broker)


###############################################################################
# 4. HELPER PARSERS -----------------------------------------------------------
###############################################################################

def _first(row: Dict[str, Any], *names: str) -> Any:
    for name in names:
        if row.get(name) is not None:
            return row[name]
    return None


def _mapping(row: Any, what: str) -> Dict[str, Any]:
    if row is None:
        return {}
    if not isinstance(row, dict):
        raise ConfigurationError(f"{what} must be a mapping, got {type(row).__name__}")
    return row


def _keyed(rows: Any) -> Iterator[Tuple[TreeKey, Any]]:
    """Iterate a children mapping; a plain list of names is also accepted."""
    if rows is None:
        return iter(())
    if isinstance(rows, list):
        rows = {name: None for name in rows}
    if not isinstance(rows, dict):
        raise ConfigurationError(f"expected a mapping of children, got {type(rows).__name__}")
    return ((TreeKey.parse(name), row) for name, row in rows.items())


def _attributes(row: Dict[str, Any]) -> Dict[str, Any]:
    attrs: Dict[str, Any] = {}
    if row.get(TYPE_ATTRIBUTE) is not None:
        attrs[TYPE_ATTRIBUTE] = str(row[TYPE_ATTRIBUTE])
    if DUPLICATES_ATTRIBUTE in row:
        attrs[DUPLICATES_ATTRIBUTE] = DuplicateRule.from_row(row[DUPLICATES_ATTRIBUTE])
    return attrs


def _nest_topic_keys(rows: Any) -> Any:
    """Expand keys like `sht/temperature` into nested `topics` groupings."""
    if isinstance(rows, list):
        rows = {name: None for name in rows}
    if not isinstance(rows, dict):
        return rows
    nested: Dict[str, Any] = {}
    for name, row in rows.items():
        head, _, rest = str(name).strip("/").partition("/")
        if not rest:
            nested[head] = _merge_topic_rows(nested.get(head), row)
            continue
        grouping = dict(_mapping(nested.get(head), f"topic {head}"))
        grouping["topics"] = dict(_mapping(_nest_topic_keys(grouping.get("topics")), f"topic {head}"))
        grouping["topics"][rest] = _merge_topic_rows(grouping["topics"].get(rest), row)
        grouping["topics"] = _nest_topic_keys(grouping["topics"])
        nested[head] = grouping
    return nested


def _merge_topic_rows(existing: Any, row: Any) -> Any:
    if existing is None:
        return row
    merged = dict(_mapping(existing, "topic"))
    for k, v in _mapping(row, "topic").items():
        if k == "topics":
            topics = dict(_mapping(_nest_topic_keys(merged.get("topics")), "topics"))
            for name, child in _mapping(_nest_topic_keys(v), "topics").items():
                topics[name] = _merge_topic_rows(topics.get(name), child)
            merged["topics"] = topics
        else:
            merged[k] = v
    return merged
