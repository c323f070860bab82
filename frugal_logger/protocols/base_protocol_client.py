"""
Bus Client Framework
Base abstract class and configuration for message bus clients
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol
from urllib.parse import urlparse
import logging

from frugal_logger.core.exceptions import ConfigurationError
from frugal_logger.core.patterns.state_machine import ConnectionState
from frugal_logger.models.config_models import OrganizationConfig


# scheme -> (transport, tls, default port)
BROKER_SCHEMES = {
    "mqtt": ("tcp", False, 1883),
    "tcp": ("tcp", False, 1883),
    "mqtts": ("tcp", True, 8883),
    "ssl": ("tcp", True, 8883),
    "ws": ("websockets", False, 80),
    "wss": ("websockets", True, 443),
}


class BusListener(Protocol):
    """Receives bus events; both methods must be safe to call from any thread."""

    def post_message(self, topic: str, payload: str, arrival: datetime) -> None: ...

    def post_connection(self, state: ConnectionState) -> None: ...


@dataclass(frozen=True)
class BusClientConfig:
    """Connection parameters for one organization's broker session."""
    host: str
    port: int
    transport: str = "tcp"
    use_tls: bool = False
    path: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    client_id: Optional[str] = None
    connect_timeout: float = 5.0
    keepalive: int = 60

    @classmethod
    def from_broker_url(cls, url: str, **kwargs) -> "BusClientConfig":
        if "://" not in url:
            url = f"mqtt://{url}"
        parsed = urlparse(url)
        scheme = BROKER_SCHEMES.get(parsed.scheme.lower())
        if scheme is None or not parsed.hostname:
            raise ConfigurationError(f"Unsupported broker url: {url}")
        transport, use_tls, default_port = scheme
        return cls(
            host=parsed.hostname,
            port=parsed.port or default_port,
            transport=transport,
            use_tls=use_tls,
            path=parsed.path or None,
            **kwargs,
        )

    @classmethod
    def from_organization(cls, org: OrganizationConfig, connect_timeout: float = 5.0) -> "BusClientConfig":
        if not org.broker:
            raise ConfigurationError(f"organization {org.id} has no mqtt.broker")
        return cls.from_broker_url(
            org.broker,
            username=org.username,
            password=org.mqtt_password,
            connect_timeout=connect_timeout,
        )


class BaseBusClient(ABC):
    """
    Abstract base class for bus clients.

    The client owns connecting and reconnecting; it reports state changes and
    messages to its listener and never interprets payloads itself.
    """

    def __init__(self, config: BusClientConfig, listener: BusListener):
        self.config = config
        self.listener = listener
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    async def connect(self) -> None:
        """Start the session; connection progress is reported asynchronously."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the session for good."""
        pass

    @abstractmethod
    def subscribe(self, pattern: str, qos: int = 0) -> None:
        """Issue one bus-level subscribe; raises ProtocolError on failure."""
        pass
