"""Topic matching, configuration resolution and the subscription registry."""

from .topic_matcher import matches, device_of, sensor_key_of, split_topic
from .config_resolver import resolve
from .subscription import Subscription, DiscoverySubscription, TopicState, DEFAULT_QOS
from .registry import SubscriptionRegistry

__all__ = [
    'matches',
    'device_of',
    'sensor_key_of',
    'split_topic',
    'resolve',
    'Subscription',
    'DiscoverySubscription',
    'TopicState',
    'DEFAULT_QOS',
    'SubscriptionRegistry',
]
