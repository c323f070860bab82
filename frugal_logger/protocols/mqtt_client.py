"""
MQTT Bus Client Implementation
paho-mqtt session for one organization; paho's network thread drives
connection, reconnection and message delivery.
"""

import asyncio
from datetime import datetime, timezone
from typing import List, Optional
import logging

import paho.mqtt.client as mqtt

from frugal_logger.core.exceptions import ProtocolError
from frugal_logger.core.patterns.state_machine import ConnectionState
from frugal_logger.protocols.base_protocol_client import BaseBusClient, BusClientConfig, BusListener


class MqttBusClient(BaseBusClient):
    """
    MQTT client bound to one organization.

    Features:
    - tcp, tls and websocket brokers
    - automatic reconnection by the paho loop
    - state changes and messages forwarded to the listener
    """

    def __init__(self, config: BusClientConfig, listener: BusListener):
        super().__init__(config, listener)
        self.client: Optional[mqtt.Client] = None
        self._closing = False

    def _initialize_client(self) -> mqtt.Client:
        """Initialize the paho client."""
        client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=self.config.client_id or "",
            transport=self.config.transport,
            protocol=mqtt.MQTTv311,
            clean_session=True,
        )
        if self.config.transport == "websockets":
            client.ws_set_options(path=self.config.path or "/mqtt")
        if self.config.use_tls:
            client.tls_set()
        if self.config.username:
            client.username_pw_set(self.config.username, self.config.password)
        client.connect_timeout = self.config.connect_timeout
        client.reconnect_delay_set(min_delay=1, max_delay=60)

        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        client.on_message = self._on_message
        client.on_subscribe = self._on_subscribe
        client.on_log = self._on_log
        return client

    async def connect(self):
        """Start connecting; the paho loop keeps retrying until disconnect()."""
        if self.client is not None:
            return
        self._closing = False
        self.client = self._initialize_client()
        self.logger.info(f"Connecting to MQTT broker at {self.config.host}:{self.config.port} "
                         f"({self.config.transport}{', tls' if self.config.use_tls else ''})")
        try:
            self.client.connect_async(self.config.host, self.config.port, keepalive=self.config.keepalive)
            self.client.loop_start()
        except (OSError, ValueError) as e:
            self.logger.error(f"MQTT connection failed: {e}")
            raise ProtocolError(str(e)) from e

    async def disconnect(self):
        if self.client is None:
            return
        self._closing = True
        self.logger.info("Disconnecting from MQTT broker")
        self.client.disconnect()
        await asyncio.to_thread(self.client.loop_stop)   # joins the paho thread
        self.client = None
        self.listener.post_connection(ConnectionState.CLOSED)

    def subscribe(self, pattern: str, qos: int = 0):
        if self.client is None:
            raise ProtocolError("MQTT client is not started")
        result, mid = self.client.subscribe(pattern, qos)
        if result != mqtt.MQTT_ERR_SUCCESS:
            raise ProtocolError(f"Subscription failed {pattern}: {mqtt.error_string(result)}")
        self.logger.debug(f"Subscribe sent for '{pattern}' with QoS {qos} (mid {mid})")

    # MQTT Event Callbacks (paho network thread)
    def _on_connect(self, client, userdata, flags, reason_code, properties):
        if reason_code.is_failure:
            self.logger.error(f"Connection refused: {reason_code}")
            self.listener.post_connection(ConnectionState.RECONNECTING)
            return
        self.listener.post_connection(ConnectionState.CONNECTED)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties):
        if self._closing:
            return
        self.logger.warning(f"Unexpected disconnection from MQTT broker ({reason_code})")
        self.listener.post_connection(ConnectionState.RECONNECTING)

    def _on_message(self, client, userdata, msg):
        arrival = datetime.now(timezone.utc)
        payload = msg.payload.decode("utf-8", errors="replace")
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(f"Received {msg.topic} {payload}")
        self.listener.post_message(msg.topic, payload, arrival)

    def _on_subscribe(self, client, userdata, mid, reason_code_list: List, properties):
        for reason_code in reason_code_list:
            if reason_code.is_failure:
                self.logger.error(f"Subscription failed (mid {mid}): {reason_code}")

    def _on_log(self, client, userdata, level, buf):
        level_map = {
            mqtt.MQTT_LOG_DEBUG: logging.DEBUG,
            mqtt.MQTT_LOG_INFO: logging.DEBUG,
            mqtt.MQTT_LOG_NOTICE: logging.INFO,
            mqtt.MQTT_LOG_WARNING: logging.WARNING,
            mqtt.MQTT_LOG_ERR: logging.ERROR
        }
        self.logger.log(level_map.get(level, logging.DEBUG), f"MQTT: {buf}")
