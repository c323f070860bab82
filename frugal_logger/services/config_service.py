# config_service.py

from pathlib import Path
from typing import Any, Dict, List, Union
import logging

import yaml

from frugal_logger.core.exceptions import ConfigurationError
from frugal_logger.models.config_models import LoggerConfig


logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge mappings; values from `override` win."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class ConfigService:
    """Loads the logger configuration from a YAML file or a directory of them."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def files(self) -> List[Path]:
        if self.path.is_dir():
            return sorted(p for p in self.path.iterdir() if p.suffix in YAML_SUFFIXES and p.is_file())
        if self.path.is_file():
            return [self.path]
        raise ConfigurationError(f"Configuration not found: {self.path}")

    def load_raw(self) -> Dict[str, Any]:
        merged: Dict[str, Any] = {}
        for path in self.files():
            logger.info(f"Reading configuration from {path}")
            try:
                with open(path, encoding="utf-8") as f:
                    data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
            except OSError as e:
                raise ConfigurationError(f"Cannot read {path}: {e}") from e
            if data is None:
                continue
            if not isinstance(data, dict):
                raise ConfigurationError(f"{path} must contain a mapping at top level")
            merged = deep_merge(merged, data)
        return merged

    def load(self) -> LoggerConfig:
        config = LoggerConfig.from_row(self.load_raw())
        logger.info(f"Loaded configuration for {len(config.organizations)} organizations")
        return config

    @staticmethod
    def from_text(text: str) -> LoggerConfig:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML: {e}") from e
        return LoggerConfig.from_row(data or {})
