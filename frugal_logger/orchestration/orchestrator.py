from typing import Any, Callable, Dict, List, Optional
import logging

from frugal_logger.models.config_models import OrganizationConfig
from frugal_logger.services.config_service import ConfigService
from .state_machine import LoggerStateMachine, LoggerState
from .organization import MqttOrganization
from .commands import (
    OrchestrationCommand,
    LoadConfigurationCommand,
    OrganizationStartupCommand,
)

class MqttLogger:
    """Starts one MqttOrganization per configured organization"""

    def __init__(self, config_service: ConfigService,
                 organization_factory: Callable[[OrganizationConfig], MqttOrganization]):
        self.state_machine = LoggerStateMachine()
        self.context: Dict[str, Any] = {
            "config_service": config_service,
            "organization_factory": organization_factory,
        }
        self.executed_commands: List[OrchestrationCommand] = []
        self.logger = logging.getLogger(self.__class__.__name__)

    @property
    def clients(self) -> List[MqttOrganization]:
        return self.context.get("clients", [])

    def organization(self, org_id: str) -> Optional[MqttOrganization]:
        return next((c for c in self.clients if c.id == org_id), None)

    async def start(self) -> bool:
        """Execute startup sequence using command pattern"""
        try:
            command_sequence = [
                (LoadConfigurationCommand, LoggerState.CONFIGURATION_LOADING),
                (OrganizationStartupCommand, LoggerState.ORGANIZATION_STARTUP),
            ]

            for command_class, target_state in command_sequence:
                if not self.state_machine.transition_to(target_state):
                    raise RuntimeError(f"Failed to transition to {target_state}")

                command = command_class(self.context)
                result = await command.execute()

                if not result.get("success", False):
                    await self._rollback_commands()
                    self.state_machine.transition_to(LoggerState.ERROR_RECOVERY)
                    return False

                self.context.update(result)
                self.executed_commands.append(command)

            self.state_machine.transition_to(LoggerState.OPERATIONAL)
            self.logger.info(f"Logger running for {len(self.clients)} organizations")
            return True

        except Exception as e:
            self.logger.error(f"Logger startup failed: {e}")
            await self._rollback_commands()
            self.state_machine.transition_to(LoggerState.ERROR_RECOVERY)
            return False

    async def _rollback_commands(self):
        """Rollback executed commands in reverse order"""
        for command in reversed(self.executed_commands):
            try:
                await command.rollback()
            except Exception as e:
                self.logger.error(f"Error during rollback: {e}")

        self.executed_commands.clear()

    async def shutdown(self):
        """Graceful shutdown"""
        self.state_machine.transition_to(LoggerState.SHUTDOWN)
        await self._rollback_commands()
        self.logger.info("Logger shutdown completed")
