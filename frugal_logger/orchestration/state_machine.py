from enum import Enum, auto
import logging

class LoggerState(Enum):
    INITIALIZING = auto()
    CONFIGURATION_LOADING = auto()
    ORGANIZATION_STARTUP = auto()
    OPERATIONAL = auto()
    ERROR_RECOVERY = auto()
    SHUTDOWN = auto()

class LoggerStateMachine:
    """Manages the overall logger state transitions"""

    def __init__(self):
        self.current_state = LoggerState.INITIALIZING
        self.logger = logging.getLogger(self.__class__.__name__)
        self.valid_transitions = {
            LoggerState.INITIALIZING: {LoggerState.CONFIGURATION_LOADING, LoggerState.SHUTDOWN},
            LoggerState.CONFIGURATION_LOADING: {LoggerState.ORGANIZATION_STARTUP, LoggerState.ERROR_RECOVERY},
            LoggerState.ORGANIZATION_STARTUP: {LoggerState.OPERATIONAL, LoggerState.ERROR_RECOVERY},
            LoggerState.OPERATIONAL: {LoggerState.ERROR_RECOVERY, LoggerState.SHUTDOWN},
            LoggerState.ERROR_RECOVERY: {LoggerState.CONFIGURATION_LOADING, LoggerState.SHUTDOWN},
            LoggerState.SHUTDOWN: set()
        }

    def can_transition_to(self, new_state: LoggerState) -> bool:
        return new_state in self.valid_transitions.get(self.current_state, set())

    def transition_to(self, new_state: LoggerState) -> bool:
        if self.can_transition_to(new_state):
            self.logger.info(f"State transition: {self.current_state.name} -> {new_state.name}")
            self.current_state = new_state
            return True
        else:
            self.logger.error(f"Invalid state transition: {self.current_state.name} -> {new_state.name}")
            return False
