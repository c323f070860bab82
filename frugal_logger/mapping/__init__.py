"""Payload decoding for declared topic types."""

from .value_coder import (
    decode,
    canonical_type,
    values_equal,
    is_number,
    TYPE_ALIASES,
)

__all__ = [
    'decode',
    'canonical_type',
    'values_equal',
    'is_number',
    'TYPE_ALIASES',
]
