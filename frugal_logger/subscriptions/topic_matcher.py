from typing import List

from frugal_logger.models.config_models import WILDCARD_TOKEN

TOPIC_SEPARATOR = "/"
TOPIC_SEGMENTS = 4        # organization/project/node/topic


def split_topic(topic: str) -> List[str]:
    return topic.split(TOPIC_SEPARATOR) if topic else []


def matches(pattern: str, topic: str, min_segments: int = TOPIC_SEGMENTS) -> bool:
    """True when every pattern segment equals the topic's or is `+`."""
    pattern_parts = split_topic(pattern)
    topic_parts = split_topic(topic)
    if len(pattern_parts) < min_segments or len(topic_parts) < min_segments:
        return False
    if len(pattern_parts) != len(topic_parts):
        return False
    return all(p == WILDCARD_TOKEN or p == t for p, t in zip(pattern_parts, topic_parts))


def device_of(topic: str) -> str:
    """`org/project/node` part of a sensor topic."""
    return TOPIC_SEPARATOR.join(split_topic(topic)[:TOPIC_SEGMENTS - 1])


def sensor_key_of(topic: str) -> str:
    """Topic suffix after the node, e.g. `sht/temperature`."""
    return TOPIC_SEPARATOR.join(split_topic(topic)[TOPIC_SEGMENTS - 1:])
