"""
Attribute lookup over one organization's configuration tree.

The search order is fixed: at every level the exact child is searched first,
then the `+` child, and only then the level's own attribute. The first value
found wins, so a wildcard sibling deeper down beats an exact ancestor.
"""
from typing import Any, Optional, Sequence

from frugal_logger.models.config_models import WILDCARD, ConfigNode, OrganizationConfig, TreeKey
from frugal_logger.subscriptions.topic_matcher import TOPIC_SEGMENTS, split_topic


def resolve(org: OrganizationConfig, topic: str, attribute: str) -> Optional[Any]:
    segments = split_topic(topic)
    if len(segments) < TOPIC_SEGMENTS or not all(segments):
        return None
    if segments[0] != org.id:
        return None
    return resolve_in(org, segments[1:], attribute)


def resolve_in(node: ConfigNode, segments: Sequence[str], attribute: str) -> Optional[Any]:
    if not segments:
        return node.attribute(attribute)

    head, rest = segments[0], segments[1:]
    exact = TreeKey.exact(head)
    for key in (exact, WILDCARD) if not exact.is_wildcard else (WILDCARD,):
        child = node.child(key)
        if child is None:
            continue
        value = resolve_in(child, rest, attribute)
        if value is not None:
            return value
    return node.attribute(attribute)
