# frugal_logger/orchestration/__init__.py
"""Per-organization processing, command pattern startup and state management."""

from .processor import OrganizationProcessor, MessageOutcome
from .organization import MqttOrganization, EventKind, OrganizationEvent
from .orchestrator import MqttLogger
from .state_machine import LoggerStateMachine, LoggerState
from .commands import (
    OrchestrationCommand,
    LoadConfigurationCommand,
    OrganizationStartupCommand,
)

__all__ = [
    'OrganizationProcessor',
    'MessageOutcome',
    'MqttOrganization',
    'EventKind',
    'OrganizationEvent',
    'MqttLogger',
    'LoggerStateMachine',
    'LoggerState',
    'OrchestrationCommand',
    'LoadConfigurationCommand',
    'OrganizationStartupCommand',
]
