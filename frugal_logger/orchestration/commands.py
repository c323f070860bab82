from abc import ABC, abstractmethod
from typing import Any, Dict, List
import logging

from frugal_logger.core.exceptions import FrugalLoggerError
from frugal_logger.orchestration.organization import MqttOrganization

class OrchestrationCommand(ABC):
    """Base class for orchestration commands"""

    def __init__(self, context: Dict[str, Any]):
        self.context = context
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    async def execute(self) -> Dict[str, Any]:
        """Execute the command and return results"""
        pass

    @abstractmethod
    async def rollback(self) -> None:
        """Rollback command effects if possible"""
        pass

class LoadConfigurationCommand(OrchestrationCommand):
    """Command to read the organizations from the YAML configuration"""

    async def execute(self) -> Dict[str, Any]:
        config_service = self.context.get("config_service")
        if not config_service:
            raise ValueError("ConfigService not found in context")

        try:
            config = config_service.load()
        except FrugalLoggerError as e:
            self.logger.error(f"Configuration loading failed: {e}")
            return {"success": False, "error": str(e)}

        self.logger.info(f"Loaded {len(config.organizations)} organizations")
        return {
            "config": config,
            "organizations": config.organizations,
            "success": True
        }

    async def rollback(self) -> None:
        # Loading configuration doesn't need rollback
        pass

class OrganizationStartupCommand(OrchestrationCommand):
    """Command to create and start one MqttOrganization per organization"""

    async def execute(self) -> Dict[str, Any]:
        organizations = self.context.get("organizations", [])
        factory = self.context.get("organization_factory")
        if factory is None:
            raise ValueError("organization_factory not found in context")

        started: List[MqttOrganization] = []
        for org in organizations:
            try:
                client = factory(org)
                await client.start()
                started.append(client)
                self.logger.info(f"Started organization: {org.id}")
            except Exception as e:
                self.logger.error(f"Failed to start organization {org.id}: {e}")
                await self._stop_clients(started)
                return {"success": False, "error": str(e)}

        self.context["clients"] = started
        return {
            "clients": started,
            "success": True
        }

    async def rollback(self) -> None:
        await self._stop_clients(self.context.get("clients", []))

    async def _stop_clients(self, clients: List[MqttOrganization]):
        for client in clients:
            try:
                await client.stop()
                self.logger.info(f"Stopped organization: {client.id}")
            except Exception as e:
                self.logger.error(f"Error stopping organization {client.id}: {e}")
