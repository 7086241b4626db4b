"""
Routes control events from the panel surface to the relay
"""

from typing import Optional

from config import NOTIFICATION_TITLES, CLOSE_PANEL_KEYS
from core.logging_config import get_logger
from events import event_bus as default_event_bus, EventBus, EventTypes
from notifications import NotificationQueue
from relay.errors import InputSendError
from relay.models import InputAction, InputType
from .loader import PanelLoader


class InputRouter:
    """Decides which control events go to the relay and which stay local"""

    def __init__(self, client, loader: PanelLoader, notifications: NotificationQueue,
                 bus: Optional[EventBus] = None):
        self.logger = get_logger(__name__)
        self.client = client
        self.loader = loader
        self.notifications = notifications
        self.bus = bus or default_event_bus

    async def on_button_change(self, action: InputAction):
        kind = _input_type(action)

        if kind in (InputType.MACRO, InputType.COMMAND):
            # Fire on release
            if action.is_pressed:
                return
        elif kind == InputType.VIEW:
            if not action.is_pressed and action.view:
                self.loader.set_view(action.view)
            return

        await self.send_input(action)

    async def on_slider_change(self, action: InputAction):
        await self.send_input(action)

    def on_key(self, code: str):
        if code in CLOSE_PANEL_KEYS:
            self.loader.close_panel()

    async def send_input(self, action: InputAction) -> bool:
        try:
            result = await self.client.send_input(action)
        except InputSendError as e:
            self._report(e.message_lines())
            return False

        if not result.ok:
            self._report(InputSendError(result.message or "Unknown error").message_lines())
            return False

        self.bus.emit(EventTypes.INPUT_SENT, action.to_dict(), source="InputRouter")
        return True

    def _report(self, lines):
        self.bus.emit(EventTypes.INPUT_ERROR, {"lines": lines}, source="InputRouter")
        self.notifications.show(NOTIFICATION_TITLES["input_error"], lines)


def _input_type(action: InputAction) -> Optional[InputType]:
    if isinstance(action.type, InputType):
        return action.type
    try:
        return InputType(action.type)
    except ValueError:
        return None
