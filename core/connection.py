"""
Connection controller: connect / disconnect flows and reactions to the
transport's lifecycle events
"""

from typing import Optional, List

from config import NOTIFICATION_TITLES, DEFAULT_PORT
from events import event_bus as default_event_bus, EventBus, EventTypes
from notifications import NotificationQueue
from relay.errors import RelayError, TransportConnectError
from relay.models import LifecycleEvent, Reconnecting, Reconnected, ConnectionClosed
from storage import SettingsStore, ADDRESS_KEY, PORT_KEY, LAST_PANEL_KEY
from .logging_config import get_logger
from .state import ConnectionState, ConnectionStateTracker


class ConnectionController:
    """
    Drives the connection state shown to the user.

    The transport is authoritative: after every step the exposed state is
    re-read from the client instead of being forced by this class.
    """

    def __init__(self,
                 client,
                 loader,
                 storage: SettingsStore,
                 notifications: NotificationQueue,
                 bus: Optional[EventBus] = None):
        self.logger = get_logger(__name__)
        self.client = client
        self.loader = loader
        self.storage = storage
        self.notifications = notifications
        self.bus = bus or default_event_bus

        self.tracker = ConnectionStateTracker(self.bus)

        # Connect form values
        self.address = ""
        self.port = DEFAULT_PORT

        self.current_server: Optional[str] = None
        self.panels: List[str] = []
        self.session_generation: Optional[int] = None

    @property
    def state(self) -> ConnectionState:
        return self.tracker.state

    @property
    def connected(self) -> bool:
        return self.state == ConnectionState.CONNECTED

    @property
    def connecting(self) -> bool:
        return self.state == ConnectionState.CONNECTING

    def sync_state(self, reason: str = ""):
        """Copy the transport's state into the tracker"""
        self.tracker.transition_to(self.client.connection_state, reason)

    async def submit(self, address: str, port: int):
        """Connect from the connect prompt and remember the server"""
        self.storage.set(ADDRESS_KEY, address)
        self.storage.set(PORT_KEY, port)
        self.address, self.port = address, port

        await self.connect(address, port)
        self.notifications.set_prompt(connect=False)

    async def connect(self, address: str, port: int) -> bool:
        """
        Open a session and restore the last panel.

        The state moves to CONNECTING before the attempt is awaited and is
        re-read from the transport once the attempt settles.

        Returns:
            True if the session is up
        """
        self.notifications.prompts.reconnect_cancelled = False

        attempt = self.client.connect(address, port)
        self.tracker.transition_to(ConnectionState.CONNECTING, f"connect {address}:{port}")
        try:
            await attempt
        except TransportConnectError as e:
            self.logger.warning(f"Unable to connect to {address}:{port}: {e.message}")
            if self.session_generation is not None and self.client.session is None:
                # The previous session was closed to make room for this attempt
                self._forget_session()
            self.bus.emit(EventTypes.CONNECTION_FAILED, {
                "address": address, "port": port, "error": e.message
            }, source="ConnectionController")
            self.notifications.show(NOTIFICATION_TITLES["connection_error"],
                                    [f"Unable to connect to server {address}:{port}.", e.message],
                                    resume_connect=True)
            return False
        finally:
            self.sync_state("connect attempt settled")

        self.session_generation = self.client.session.generation
        self.current_server = self.client.address
        self.bus.emit(EventTypes.CONNECTION_ESTABLISHED, {"server": self.current_server},
                      source="ConnectionController")

        await self.refresh_panels()

        last_panel = self.storage.get(LAST_PANEL_KEY)
        if last_panel:
            self.logger.info(f"Restoring last panel {last_panel}")
            await self.loader.load_panel(last_panel)
        return True

    async def refresh_panels(self):
        try:
            self.panels = await self.client.get_panels()
        except RelayError as e:
            self.notifications.show(NOTIFICATION_TITLES["connection_error"],
                                    ["Unable to list panels.", e.message])
            return

        self.bus.emit(EventTypes.PANELS_UPDATED, {"panels": list(self.panels)}, source="ConnectionController")

    async def disconnect(self):
        """
        Tear the session down.

        A user-requested disconnect is treated like a cancelled reconnect:
        the resulting close is not reported as a lost connection.
        """
        if self.client.session is not None:
            self.notifications.prompts.reconnect_cancelled = True
        await self.client.disconnect()
        self.sync_state("disconnect")

    async def cancel_reconnect(self):
        """The user gave up waiting for the transport to reconnect"""
        self.logger.info("Reconnect cancelled by user")
        self.notifications.set_prompt(reconnecting=False, reconnect_cancelled=True)
        self.bus.emit(EventTypes.RECONNECT_CANCELLED, {"server": self.current_server},
                      source="ConnectionController")
        await self.client.disconnect()
        self.sync_state("reconnect cancelled")

    async def handle_event(self, event: LifecycleEvent):
        """Apply a transport lifecycle event"""
        if event.session != self.session_generation:
            self.logger.debug(f"Ignoring {type(event).__name__} from stale session {event.session}")
            return

        if isinstance(event, Reconnecting):
            await self._on_reconnecting()
        elif isinstance(event, Reconnected):
            await self._on_reconnected()
        elif isinstance(event, ConnectionClosed):
            await self._on_closed(event.reason)
        else:
            self.logger.warning(f"Unknown lifecycle event {event!r}")

    async def _on_reconnecting(self):
        self.sync_state("transport reconnecting")
        self.notifications.set_prompt(reconnecting=True, reconnect_cancelled=False)

    async def _on_reconnected(self):
        self.sync_state("transport reconnected")
        self.notifications.set_prompt(reconnecting=False)
        # Device handles do not survive a dropped session
        await self.loader.reacquire_devices()

    def _forget_session(self):
        """Drop everything tied to the session that just ended"""
        self.loader.close_panel()
        self.session_generation = None
        self.current_server = None

    async def _on_closed(self, reason: Optional[str]):
        self.sync_state("transport closed")
        self._forget_session()

        if self.notifications.prompts.reconnect_cancelled:
            self.notifications.set_prompt(reconnecting=False, reconnect_cancelled=False)
            return

        self.notifications.set_prompt(reconnecting=False)
        self.bus.emit(EventTypes.CONNECTION_LOST, {"reason": reason}, source="ConnectionController")
        self.notifications.show(NOTIFICATION_TITLES["connection_error"],
                                ["Server connection lost.", reason],
                                resume_connect=True)
