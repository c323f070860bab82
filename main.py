#!/usr/bin/env python3
import asyncio, sys
from config.logging_config import configure
from config.app_config import settings
from frugal_logger.core.patterns.circuit_breaker import BreakerConfig
from frugal_logger.orchestration import MqttLogger, MqttOrganization
from frugal_logger.services import ConfigService, CsvLogSink, LoggingSnapshotStore

def build_logger() -> MqttLogger:
    csv_sink = CsvLogSink(settings.DATA_DIR)
    snapshot_store = LoggingSnapshotStore()
    breaker = BreakerConfig(failure_threshold=settings.BREAKER_FAILURES, timeout=settings.BREAKER_TIMEOUT)

    def organization_factory(org):
        return MqttOrganization(
            org,
            sinks=[csv_sink],
            snapshot_store=snapshot_store,
            snapshot_interval=settings.SNAPSHOT_INTERVAL,
            qos=settings.MQTT_QOS,
            connect_timeout=settings.MQTT_CONNECT_TIMEOUT,
            breaker_config=breaker,
        )

    return MqttLogger(ConfigService(settings.LOGGER_CONFIG), organization_factory)

async def async_main():
    configure()
    logger = build_logger()
    if not await logger.start():
        sys.exit("❌  logger failed to start, see log")
    # keep process alive
    try:
        while True:
            await asyncio.sleep(3600)
    finally:
        await logger.shutdown()

if __name__ == "__main__":
    try:
        asyncio.run(async_main())
    except KeyboardInterrupt:
        sys.exit("🌙  graceful shutdown")
