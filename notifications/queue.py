"""
Single-slot user notifications and the connect / reconnecting prompts
"""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any

from events import event_bus as default_event_bus, EventBus, EventTypes
from core.logging_config import get_logger


@dataclass
class Notification:
    """An alert waiting for the user to dismiss it"""
    title: str
    lines: List[str] = field(default_factory=list)
    resume_connect: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "lines": list(self.lines), "resume_connect": self.resume_connect}


@dataclass
class Prompts:
    """Visibility of the interactive prompts"""
    connect: bool = False
    reconnecting: bool = False
    reconnect_cancelled: bool = False


class NotificationQueue:
    """
    Holds at most one visible notification.

    A second show() before dismissal replaces the visible notification
    (last write wins). A pending "reopen the connect prompt" request from
    the replaced notification is kept.
    """

    def __init__(self, prompts: Optional[Prompts] = None, bus: Optional[EventBus] = None):
        self.logger = get_logger(__name__)
        self.bus = bus or default_event_bus
        self.prompts = prompts or Prompts()
        self.current: Optional[Notification] = None
        self.shown_count = 0
        self.replaced_count = 0

    @property
    def visible(self) -> bool:
        return self.current is not None

    def show(self, title: str, lines: List[Optional[str]], resume_connect: bool = False) -> Notification:
        """
        Display a notification.

        Args:
            title: Notification title
            lines: Message lines in display order; None entries are dropped
            resume_connect: Reopen the connect prompt when dismissed
        """
        if self.current is not None:
            self.replaced_count += 1
            self.logger.warning(f"Replacing unread notification '{self.current.title}' with '{title}'")
            resume_connect = resume_connect or self.current.resume_connect

        notification = Notification(title, [str(line) for line in lines if line is not None], resume_connect)
        self.current = notification
        self.shown_count += 1

        self.logger.info(f"{title}: {' | '.join(notification.lines)}")
        self.bus.emit(EventTypes.NOTIFICATION_SHOWN, notification.to_dict(), source="NotificationQueue")
        return notification

    def dismiss(self) -> Optional[Notification]:
        """Hide the notification and run its deferred action"""
        notification = self.current
        if notification is None:
            return None

        self.current = None
        self.bus.emit(EventTypes.NOTIFICATION_DISMISSED, notification.to_dict(), source="NotificationQueue")

        if notification.resume_connect:
            self.set_prompt(connect=True)
        return notification

    def set_prompt(self, **changes):
        """Update prompt visibility and publish the new state"""
        for name, value in changes.items():
            if not hasattr(self.prompts, name):
                raise AttributeError(f"Unknown prompt: {name}")
            setattr(self.prompts, name, value)

        self.bus.emit(EventTypes.PROMPT_CHANGED, {
            "connect": self.prompts.connect,
            "reconnecting": self.prompts.reconnecting
        }, source="NotificationQueue")
