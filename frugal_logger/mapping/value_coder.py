import logging
import math
from typing import Any, Callable, Dict

import yaml

from frugal_logger.core.exceptions import DecodeError

logger = logging.getLogger(__name__)

NAN = float("nan")

# Declared-type aliases accepted in configuration.
TYPE_ALIASES: Dict[str, str] = {
    "bool": "bool",
    "boolean": "bool",
    "int": "int",
    "integer": "int",
    "float": "float",
    "number": "float",
    "text": "text",
    "string": "text",
    "str": "text",
    "topic": "topic",
    "yaml": "yaml",
    "json": "yaml",
    "structured": "yaml",
}


def _to_float(raw: str) -> float:
    try:
        return float(raw)
    except (TypeError, ValueError):
        return NAN


def _to_int(raw: str) -> Any:
    try:
        return int(raw)
    except (TypeError, ValueError):
        pass
    value = _to_float(raw)
    if math.isnan(value) or math.isinf(value):
        return NAN
    return int(value)


def _to_bool(raw: str) -> Any:
    stripped = raw.strip() if isinstance(raw, str) else raw
    if stripped == "1":
        return 1
    if stripped == "0":
        return 0
    value = _to_float(stripped)
    return NAN if math.isnan(value) else int(bool(value))


def _to_document(raw: str) -> Any:
    try:
        doc = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise DecodeError(f"unparseable structured payload: {e}") from e
    if isinstance(doc, str) and raw.lstrip()[:1] in ("{", "["):
        logger.warning(f"Structured payload parsed as plain text: {raw!r}")
    return doc


CONVERTERS: Dict[str, Callable[[str], Any]] = {
    "bool": _to_bool,
    "int": _to_int,
    "float": _to_float,
    "text": str,
    "topic": str,
    "yaml": _to_document,
}


def canonical_type(declared_type: Any) -> str:
    """Map a declared type (or alias) onto its converter name."""
    name = TYPE_ALIASES.get(str(declared_type).strip().lower()) if declared_type is not None else None
    if name is None:
        raise DecodeError(f"unrecognized declared type: {declared_type!r}")
    return name


def decode(raw: str, declared_type: Any) -> Any:
    """
    Convert a raw textual payload into a typed value.

    Numeric types never fail: unparseable input becomes NaN. Structured
    payloads that do not parse, and unknown declared types, raise DecodeError.
    """
    return CONVERTERS[canonical_type(declared_type)](raw)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def values_equal(a: Any, b: Any) -> bool:
    """Equality where two NaNs count as the same value."""
    if is_number(a) and is_number(b) and math.isnan(a) and math.isnan(b):
        return True
    return a == b
