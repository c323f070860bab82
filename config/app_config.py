"""Centralised application settings (dotenv + env overrides)."""
from __future__ import annotations
import os
from pathlib import Path
from dotenv import load_dotenv

ROOT = Path(__file__).parents[1]
load_dotenv(ROOT / ".env", override=False)

class settings:                            # pylint: disable=too-few-public-methods
    LOGGER_CONFIG     = os.getenv("LOGGER_CONFIG", "config.yaml")
    DATA_DIR          = os.getenv("DATA_DIR", "data")
    LOG_LEVEL         = os.getenv("LOG_LEVEL", "INFO").upper()
    SNAPSHOT_INTERVAL = float(os.getenv("SNAPSHOT_INTERVAL", 60))
    MQTT_QOS          = int(os.getenv("MQTT_QOS", 0))
    MQTT_CONNECT_TIMEOUT = float(os.getenv("MQTT_CONNECT_TIMEOUT", 5))
    BREAKER_FAILURES  = int(os.getenv("BREAKER_FAILURES", 5))
    BREAKER_TIMEOUT   = float(os.getenv("BREAKER_TIMEOUT", 60))
