"""
Connection state as shown to observers, with a short transition history
"""

import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional, List

from events import event_bus as default_event_bus, EventBus, EventTypes
from core.logging_config import get_logger


class ConnectionState(Enum):
    """States of the relay session"""
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"


@dataclass(frozen=True)
class StateTransition:
    from_state: ConnectionState
    to_state: ConnectionState
    reason: str = ""
    timestamp: float = field(default_factory=time.time)

    def __str__(self):
        return f"{self.from_state.value} → {self.to_state.value} ({self.reason})"


class ConnectionStateTracker:
    """
    Holds the connection state shown to observers.

    The transport is authoritative for the connection state, so every
    transition it reports is applied. Transitions missing from
    EXPECTED_TRANSITIONS are still applied but logged as warnings.
    """

    EXPECTED_TRANSITIONS = {
        ConnectionState.DISCONNECTED: {ConnectionState.CONNECTING},
        ConnectionState.CONNECTING: {ConnectionState.CONNECTED, ConnectionState.DISCONNECTED},
        ConnectionState.CONNECTED: {ConnectionState.RECONNECTING, ConnectionState.DISCONNECTED,
                                    ConnectionState.CONNECTING},
        ConnectionState.RECONNECTING: {ConnectionState.CONNECTED, ConnectionState.DISCONNECTED},
    }

    def __init__(self, bus: Optional[EventBus] = None, max_history: int = 100):
        self.logger = get_logger(__name__)
        self.bus = bus or default_event_bus
        self.state = ConnectionState.DISCONNECTED
        self.transitions: deque = deque(maxlen=max_history)
        self.unexpected_transitions = 0

    def transition_to(self, new_state: ConnectionState, reason: str = "") -> bool:
        """
        Move to new_state and publish CONNECTION_STATE_CHANGED.

        Returns:
            True if the state changed, False if it was already new_state
        """
        old_state = self.state
        if new_state == old_state:
            return False

        if new_state not in self.EXPECTED_TRANSITIONS[old_state]:
            self.unexpected_transitions += 1
            self.logger.warning(f"Unexpected state transition: {old_state.value} → {new_state.value}")

        transition = StateTransition(old_state, new_state, reason)
        self.transitions.append(transition)
        self.state = new_state
        self.logger.info(f"Connection state: {transition}")

        self.bus.emit(EventTypes.CONNECTION_STATE_CHANGED, {
            "from_state": old_state.value,
            "to_state": new_state.value,
            "reason": reason
        }, source="ConnectionStateTracker")
        return True

    def get_transition_history(self, limit: int = 10) -> List[Dict[str, Any]]:
        return [
            {"from": t.from_state.value, "to": t.to_state.value, "reason": t.reason, "timestamp": t.timestamp}
            for t in list(self.transitions)[-limit:]
        ]

    def get_stats(self) -> Dict[str, Any]:
        since = self.transitions[-1].timestamp if self.transitions else None
        return {
            "current_state": self.state.value,
            "state_duration": time.time() - since if since else None,
            "transition_count": len(self.transitions),
            "unexpected_transitions": self.unexpected_transitions
        }
