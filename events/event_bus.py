"""
In-process event bus for broadcasting client state changes to observers
"""

import itertools
import logging
import time
from collections import Counter, defaultdict, deque
from dataclasses import dataclass, field
from typing import Dict, Any, List, Callable, Optional

logger = logging.getLogger(__name__)

WILDCARD = "*"

Listener = Callable[["SystemEvent"], None]

_sequence = itertools.count(1)


@dataclass
class SystemEvent:
    """A published state change; sequence orders events across buses"""
    type: str
    data: Dict[str, Any]
    source: str = "system"
    sequence: int = field(default_factory=lambda: next(_sequence))
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sequence": self.sequence,
            "type": self.type,
            "data": self.data,
            "source": self.source,
            "timestamp": self.timestamp
        }


class EventBus:
    """
    Fan-out of state changes to observers (UI snapshots, console reporter).

    Dispatch is synchronous: listeners run on the caller's event loop
    thread, in registration order, before emit() returns. Listeners must
    not block. A failing listener is logged and skipped.
    """

    def __init__(self, max_history: int = 1000):
        self.listeners: Dict[str, List[Listener]] = defaultdict(list)
        self.event_history: deque = deque(maxlen=max_history)
        self.event_counts: Counter = Counter()

    def emit(self, event_type: str, data: Dict[str, Any], source: Optional[str] = None) -> SystemEvent:
        event = SystemEvent(event_type, data, source or "system")
        self.event_counts[event_type] += 1
        self.event_history.append(event)

        for listener in self.listeners.get(event_type, []) + self.listeners.get(WILDCARD, []):
            try:
                listener(event)
            except Exception:
                logger.error(f"Error in listener {getattr(listener, '__name__', listener)} for {event_type}",
                             exc_info=True)
        return event

    def on(self, event_type: str, callback: Listener):
        self.listeners[event_type].append(callback)

    def on_all(self, callback: Listener):
        self.listeners[WILDCARD].append(callback)

    def off(self, event_type: str, callback: Listener):
        if callback in self.listeners.get(event_type, []):
            self.listeners[event_type].remove(callback)

    def get_stats(self) -> Dict[str, Any]:
        return {
            "total_events": sum(self.event_counts.values()),
            "event_counts": dict(self.event_counts),
            "history_size": len(self.event_history),
            "listener_counts": {name: len(callbacks) for name, callbacks in self.listeners.items()}
        }

    def get_recent_events(self, count: int = 50, event_type: Optional[str] = None) -> List[Dict[str, Any]]:
        """Recent events, oldest first"""
        events = [e for e in self.event_history if event_type is None or e.type == event_type]
        return [e.to_dict() for e in events[-count:]]


# Shared bus used when a component is not given its own
event_bus = EventBus()


# Event type constants
class EventTypes:
    # Connection lifecycle
    CONNECTION_STATE_CHANGED = "connection.state_changed"
    CONNECTION_ESTABLISHED = "connection.established"
    CONNECTION_FAILED = "connection.failed"
    CONNECTION_LOST = "connection.lost"
    RECONNECT_CANCELLED = "connection.reconnect_cancelled"
    PANELS_UPDATED = "connection.panels_updated"

    # Panel lifecycle
    PANEL_LOAD_START = "panel.load_start"
    PANEL_LOADED = "panel.loaded"
    PANEL_LOAD_FAILED = "panel.load_failed"
    PANEL_CLOSED = "panel.closed"
    PANEL_VIEW_CHANGED = "panel.view_changed"

    # Devices
    DEVICES_ACQUIRED = "device.acquired"
    DEVICE_WARNINGS = "device.warnings"

    # Notifications and prompts
    NOTIFICATION_SHOWN = "notification.shown"
    NOTIFICATION_DISMISSED = "notification.dismissed"
    PROMPT_CHANGED = "prompt.changed"

    # Input
    INPUT_SENT = "input.sent"
    INPUT_ERROR = "input.error"

    # System
    SYSTEM_START = "system.start"
    SYSTEM_STOP = "system.stop"
    SYSTEM_ERROR = "system.error"
