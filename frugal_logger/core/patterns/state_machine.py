from enum import Enum
from typing import Dict, List, Optional
import logging

class ConnectionState(Enum):
    DISCONNECTED  = "disconnected"
    CONNECTING    = "connecting"
    CONNECTED     = "connected"
    RECONNECTING  = "reconnecting"
    CLOSED        = "closed"

class ConnectionStateMachine:
    """Bus connectivity of one organization."""

    def __init__(self, name: str, initial: ConnectionState = ConnectionState.DISCONNECTED):
        self.name = name
        self.log = logging.getLogger(self.__class__.__name__)
        self._state = initial
        self._previous: Optional[ConnectionState] = None
        self._trans: Dict[ConnectionState, List[ConnectionState]] = {
            ConnectionState.DISCONNECTED: [ConnectionState.CONNECTING, ConnectionState.CLOSED],
            ConnectionState.CONNECTING:   [ConnectionState.CONNECTED, ConnectionState.RECONNECTING,
                                           ConnectionState.CLOSED],
            ConnectionState.CONNECTED:    [ConnectionState.RECONNECTING, ConnectionState.CLOSED],
            ConnectionState.RECONNECTING: [ConnectionState.CONNECTED, ConnectionState.CLOSED],
            ConnectionState.CLOSED:       [],
        }

    @property
    def state(self) -> ConnectionState: return self._state

    @property
    def previous(self) -> Optional[ConnectionState]: return self._previous

    def can(self, nxt: ConnectionState) -> bool: return nxt in self._trans[self._state]

    def transition(self, nxt: ConnectionState) -> bool:
        if nxt == self._state:
            return False
        if self.can(nxt):
            self.log.info("mqtt %s %s -> %s", self.name, self._state.value, nxt.value)
            self._previous, self._state = self._state, nxt
            return True
        self.log.warning("mqtt %s ignored transition %s -> %s", self.name, self._state.value, nxt.value)
        return False

    def is_reconnect(self) -> bool:
        """True when the last transition restored a dropped connection."""
        return (self._state == ConnectionState.CONNECTED
                and self._previous == ConnectionState.RECONNECTING)
