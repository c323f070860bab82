# frugal_logger/triggers/base_trigger.py
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
from datetime import datetime

class TriggerStrategy(ABC):
    """Abstract base class for the decisions taken on incoming data"""

    def __init__(self, name: str):
        self.name = name
        self.last_execution: Optional[datetime] = None
        self.execution_count: int = 0

    @abstractmethod
    def reset_state(self) -> None:
        """Reset trigger internal state"""
        pass

    def _fired(self, now: datetime) -> None:
        self.last_execution = now
        self.execution_count += 1

    def get_execution_metadata(self) -> Dict[str, Any]:
        """Return metadata about trigger execution"""
        return {
            "name": self.name,
            "last_execution": self.last_execution,
            "execution_count": self.execution_count,
            "trigger_type": self.__class__.__name__
        }
