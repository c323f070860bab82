"""
Centralised exception definitions for the frugal MQTT logger.
All custom exceptions should inherit from FrugalLoggerError.
"""

class FrugalLoggerError(Exception):
    """Base class for every custom exception thrown by this project."""

class ConfigurationError(FrugalLoggerError):
    """Raised when the logger configuration tree or environment is invalid."""

class DecodeError(FrugalLoggerError):
    """Raised when a payload cannot be decoded into its declared type."""

class ProtocolError(FrugalLoggerError):
    """Failure inside the bus client (connect, subscribe, …)."""

class SinkError(FrugalLoggerError):
    """Raised when a sink (CSV log, snapshot store, …) cannot accept a write."""
