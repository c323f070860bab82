from typing import Dict, Iterator, List, Optional, Tuple
import logging

from frugal_logger.core.exceptions import DecodeError
from frugal_logger.mapping.value_coder import canonical_type
from frugal_logger.models.config_models import (
    DUPLICATES_ATTRIBUTE,
    WILDCARD_TOKEN,
    TYPE_ATTRIBUTE,
    ConfigNode,
    OrganizationConfig,
)
from frugal_logger.subscriptions.config_resolver import resolve
from frugal_logger.subscriptions.subscription import DEFAULT_QOS, DiscoverySubscription, Subscription
from frugal_logger.subscriptions.topic_matcher import TOPIC_SEPARATOR


class SubscriptionRegistry:
    """
    Builds and owns the subscriptions of one organization.

    build() is idempotent: after a reconnect the same Subscription objects,
    with their dedup state, are returned instead of new ones.
    """

    def __init__(self, org: OrganizationConfig, qos: int = DEFAULT_QOS):
        self.org = org
        self.qos = qos
        self.log = logging.getLogger(self.__class__.__name__)
        self._subscriptions: Dict[str, Subscription] = {}
        self._built = False
        self.config_errors: List[str] = []

    @property
    def is_built(self) -> bool:
        return self._built

    def build(self) -> List[Subscription]:
        if self._built:
            self.log.debug(f"Subscriptions for {self.org.id} already built")
            return self.subscriptions()

        for project_key, project in self.org.projects():
            self._register(DiscoverySubscription(
                pattern=TOPIC_SEPARATOR.join((self.org.id, project_key.segment)),
                qos=self.qos,
            ))
            for path in self._terminal_paths(project, [self.org.id, project_key.segment]):
                self._register_topic(TOPIC_SEPARATOR.join(path))

        self._built = True
        self.log.info(f"Built {len(self._subscriptions)} subscriptions for {self.org.id}")
        return self.subscriptions()

    def _terminal_paths(self, node: ConfigNode, path: List[str]) -> Iterator[List[str]]:
        for key, child in node.children.items():
            child_path = path + [key.segment]
            # projects and nodes are never terminal; a topic without children is
            if child.is_terminal and len(child_path) >= 4:
                yield child_path
            else:
                yield from self._terminal_paths(child, child_path)

    def _register_topic(self, pattern: str):
        value_type = resolve(self.org, pattern, TYPE_ATTRIBUTE)
        if value_type is None:
            self._config_error(f"topic {pattern} has no type configured")
            return
        try:
            canonical_type(value_type)
        except DecodeError as e:
            self._config_error(f"topic {pattern}: {e}")
            return
        self._register(Subscription(
            pattern=pattern,
            value_type=value_type,
            rule=resolve(self.org, pattern, DUPLICATES_ATTRIBUTE),
            qos=self.qos,
        ))

    def _register(self, subscription: Subscription):
        if subscription.pattern in self._subscriptions:
            self.log.debug(f"Pattern already registered: {subscription.pattern}")
            return
        self._subscriptions[subscription.pattern] = subscription

    def _config_error(self, message: str):
        self.config_errors.append(message)
        self.log.error(f"Configuration error in {self.org.id}: {message}")

    def subscriptions(self) -> List[Subscription]:
        return list(self._subscriptions.values())

    def get(self, pattern: str) -> Optional[Subscription]:
        return self._subscriptions.get(pattern)

    def patterns(self) -> List[Tuple[str, int]]:
        """(pattern, qos) for each bus-level subscribe call."""
        return [(s.pattern, s.qos) for s in self._subscriptions.values()]

    def matching(self, topic: str) -> List[Subscription]:
        return [s for s in self._subscriptions.values() if s.matches(topic)]

    def most_specific(self, topic: str) -> Optional[Subscription]:
        """The sensor subscription that decides for a topic: fewest `+`, exact segments first."""
        candidates = [s for s in self.matching(topic) if not s.is_discovery]
        if not candidates:
            return None
        return min(candidates, key=_specificity)

    def __len__(self) -> int:
        return len(self._subscriptions)


def _specificity(subscription: Subscription) -> Tuple[int, Tuple[bool, ...]]:
    wildcards = tuple(part == WILDCARD_TOKEN for part in subscription.pattern.split(TOPIC_SEPARATOR))
    return sum(wildcards), wildcards
