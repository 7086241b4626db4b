"""
PanelApp: wires the relay client, panel loader and notifications together
and serializes every state change through one command loop
"""

import asyncio
from typing import Optional, Dict, Any

from events import event_bus as default_event_bus, EventBus, EventTypes
from notifications import NotificationQueue, Prompts
from panels.builder import PanelContainer
from panels.devices import DeviceReconciler
from panels.input_router import InputRouter
from panels.loader import PanelLoader
from relay.assets import AssetChecker
from relay.client import RelayClient
from relay.models import Reconnecting, Reconnected, ConnectionClosed
from storage import SettingsStore, ADDRESS_KEY, PORT_KEY
from config import DEFAULT_PORT
from .commands import (
    Submit, Connect, Disconnect, CancelReconnect, RefreshPanels, LoadPanel,
    ClosePanel, DismissNotification, ButtonChange, SliderChange, KeyPress
)
from .connection import ConnectionController
from .logging_config import get_logger, log_error_with_context

_STOP = object()


class PanelApp:
    """
    Single owner of the client's state.

    User commands and transport lifecycle events are put on one queue and
    handled strictly one at a time, so a handler never observes another
    handler's half-finished work. Handlers must not call() back into the
    app; use post() instead.
    """

    def __init__(self,
                 client=None,
                 storage: Optional[SettingsStore] = None,
                 container: Optional[PanelContainer] = None,
                 asset_checker: Optional[AssetChecker] = None,
                 bus: Optional[EventBus] = None):
        self.logger = get_logger(__name__)
        self.bus = bus or default_event_bus
        self.client = client or RelayClient()
        self.storage = storage if storage is not None else SettingsStore()

        self.asset_checker = asset_checker
        if container is None:
            self.asset_checker = asset_checker or AssetChecker()
            container = PanelContainer(asset_check=self._check_asset)
        self.container = container

        self.notifications = NotificationQueue(Prompts(), self.bus)
        self.reconciler = DeviceReconciler(self.client, self.notifications, self.bus)
        self.loader = PanelLoader(self.client, self.container, self.storage,
                                  self.notifications, self.reconciler, self.bus)
        self.connection = ConnectionController(self.client, self.loader, self.storage,
                                               self.notifications, self.bus)
        self.input_router = InputRouter(self.client, self.loader, self.notifications, self.bus)

        self.commands: asyncio.Queue = asyncio.Queue()
        self.commands_processed = 0
        self._loop_task: Optional[asyncio.Task] = None

        self._handlers = {
            Submit: lambda c: self.connection.submit(c.address, c.port),
            Connect: lambda c: self.connection.connect(c.address, c.port),
            Disconnect: lambda c: self.connection.disconnect(),
            CancelReconnect: lambda c: self.connection.cancel_reconnect(),
            RefreshPanels: lambda c: self.connection.refresh_panels(),
            LoadPanel: lambda c: self.loader.load_panel(c.name),
            ClosePanel: lambda c: self.loader.close_panel(),
            DismissNotification: lambda c: self.notifications.dismiss(),
            ButtonChange: lambda c: self.input_router.on_button_change(c.action),
            SliderChange: lambda c: self.input_router.on_slider_change(c.action),
            KeyPress: lambda c: self.input_router.on_key(c.code),
            Reconnecting: self.connection.handle_event,
            Reconnected: self.connection.handle_event,
            ConnectionClosed: self.connection.handle_event,
        }

        self.client.subscribe(self.post)

    def post(self, command):
        """Queue a command or lifecycle event without waiting for it"""
        self.commands.put_nowait((command, None))

    async def call(self, command):
        """Queue a command and wait until it has been handled"""
        future = asyncio.get_running_loop().create_future()
        self.commands.put_nowait((command, future))
        return await future

    async def start(self, auto_connect: bool = True):
        """
        Start the command loop.

        Args:
            auto_connect: Reconnect to the remembered server, or show the
                connect prompt when there is none
        """
        if self._loop_task is None:
            self._loop_task = asyncio.create_task(self.run())

        address = self.storage.get(ADDRESS_KEY) if auto_connect else None
        if address:
            port = self.storage.get(PORT_KEY, DEFAULT_PORT)
            self.connection.address, self.connection.port = address, port
            self.post(Connect(address, port))
        elif auto_connect:
            self.notifications.set_prompt(connect=True)

        self.bus.emit(EventTypes.SYSTEM_START, {"auto_connect": bool(address)}, source="PanelApp")

    async def run(self):
        """Handle queued commands until stop()"""
        while True:
            command, future = await self.commands.get()
            try:
                if command is _STOP:
                    if future is not None and not future.done():
                        future.set_result(None)
                    return

                result = await self._dispatch(command)
                self.commands_processed += 1
                if future is not None and not future.done():
                    future.set_result(result)

            except Exception as e:
                log_error_with_context(self.logger, e, f"handling {type(command).__name__}")
                self.logger.debug("Command failure details", exc_info=True)
                self.bus.emit(EventTypes.SYSTEM_ERROR, {
                    "command": type(command).__name__, "error": str(e)
                }, source="PanelApp")
                if future is not None and not future.done():
                    future.set_exception(e)
            finally:
                self.commands.task_done()

    async def _dispatch(self, command):
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"Unsupported command {type(command).__name__}")

        result = handler(command)
        if asyncio.iscoroutine(result):
            result = await result
        return result

    async def _check_asset(self, file: str) -> Optional[str]:
        return await self.asset_checker.check(self.loader.asset_path(file))

    async def stop(self):
        """Drain the loop, close the session and release HTTP resources"""
        if self._loop_task is not None:
            self.commands.put_nowait((_STOP, None))
            await self._loop_task
            self._loop_task = None

        if self.client.session is not None:
            await self.client.disconnect()
        if self.asset_checker is not None:
            await self.asset_checker.close()

        self.bus.emit(EventTypes.SYSTEM_STOP, {"commands_processed": self.commands_processed}, source="PanelApp")

    def snapshot(self) -> Dict[str, Any]:
        """Read-only view of the state for observers"""
        notification = self.notifications.current
        prompts = self.notifications.prompts
        return {
            "connection_state": self.connection.state.value,
            "current_server": self.connection.current_server,
            "panels": list(self.connection.panels),
            "current_panel": self.loader.current_panel,
            "current_view": self.container.current_view,
            "notification": notification.to_dict() if notification else None,
            "prompts": {
                "connect": prompts.connect,
                "reconnecting": prompts.reconnecting
            }
        }
