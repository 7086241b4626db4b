"""
Panel loading: fetch, build, acquire devices
"""

import logging
from typing import Optional

from config import NOTIFICATION_TITLES
from core.logging_config import get_logger, log_with_context
from events import event_bus as default_event_bus, EventBus, EventTypes
from notifications import NotificationQueue
from relay.errors import PanelFetchError, PanelBuildError, ProtocolError
from storage import SettingsStore, LAST_PANEL_KEY
from .builder import PanelContainer
from .devices import DeviceReconciler


class PanelLoader:
    """Owns the current panel and its load / close lifecycle"""

    def __init__(self,
                 client,
                 container: PanelContainer,
                 storage: SettingsStore,
                 notifications: NotificationQueue,
                 reconciler: DeviceReconciler,
                 bus: Optional[EventBus] = None):
        self.logger = get_logger(__name__)
        self.client = client
        self.container = container
        self.storage = storage
        self.notifications = notifications
        self.reconciler = reconciler
        self.bus = bus or default_event_bus

        self.current_panel: Optional[str] = None
        self.loads_started = 0
        self.loads_failed = 0

    async def load_panel(self, name: str) -> bool:
        """
        Load a panel by name.

        The previously built panel is removed before the fetch starts. The
        name is recorded as current (and persisted) as soon as the fetch
        succeeds; a failing build then closes the panel again.

        Returns:
            True if the panel was built, False otherwise
        """
        self.loads_started += 1
        self.container.remove_views()
        self.bus.emit(EventTypes.PANEL_LOAD_START, {"panel": name}, source="PanelLoader")

        try:
            descriptor = await self.client.get_panel(name)
        except (PanelFetchError, ProtocolError) as e:
            self.loads_failed += 1
            log_with_context(self.logger, logging.WARNING, f"Failed to fetch panel {name}",
                             panel=name, error_kind=e.kind, error_message=e.message)
            self.bus.emit(EventTypes.PANEL_LOAD_FAILED, {"panel": name, "stage": "fetch", "kind": e.kind},
                          source="PanelLoader")
            self.notifications.show(NOTIFICATION_TITLES["panel_error"], e.message_lines(),
                                    resume_connect=True)
            return False

        self.current_panel = name
        self.storage.set(LAST_PANEL_KEY, name)

        try:
            await self.container.build(descriptor)
        except PanelBuildError as e:
            self.loads_failed += 1
            log_with_context(self.logger, logging.WARNING, f"Failed to build panel {name}",
                             panel=name, error_kind=e.kind, error_message=e.message)
            self.bus.emit(EventTypes.PANEL_LOAD_FAILED, {"panel": name, "stage": "build", "kind": e.kind},
                          source="PanelLoader")
            self.notifications.show(NOTIFICATION_TITLES["panel_error"], e.message_lines(),
                                    resume_connect=True)
            self.close_panel()
            return False

        self.container.show()
        self.logger.info(f"Panel {name} loaded")
        self.bus.emit(EventTypes.PANEL_LOADED, {
            "panel": name,
            "devices": sorted(self.container.used_device_resources)
        }, source="PanelLoader")

        await self.reconciler.run(self.container.used_device_resources)
        return True

    async def reacquire_devices(self):
        """Acquire the active panel's devices again, e.g. after a reconnect"""
        if self.current_panel is None:
            return
        await self.reconciler.run(self.container.used_device_resources)

    def close_panel(self):
        """Forget the current panel and hide the surface; idempotent"""
        was_open = self.current_panel
        self.current_panel = None
        self.storage.remove(LAST_PANEL_KEY)
        self.container.hide()

        if was_open is not None:
            self.logger.info(f"Panel {was_open} closed")
            self.bus.emit(EventTypes.PANEL_CLOSED, {"panel": was_open}, source="PanelLoader")

    def set_view(self, view_id: str):
        if self.container.set_view(view_id):
            self.bus.emit(EventTypes.PANEL_VIEW_CHANGED, {"panel": self.current_panel, "view": view_id},
                          source="PanelLoader")

    def asset_path(self, file: str) -> Optional[str]:
        """Location of an asset belonging to the current panel"""
        return self.client.get_asset_path(self.current_panel, file)
