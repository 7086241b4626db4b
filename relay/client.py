"""
Websocket transport to the relay server
"""

import asyncio
import json
from typing import Optional, Dict, Any, List, Callable

import websockets
from websockets.exceptions import ConnectionClosed as SocketClosed, WebSocketException

from config import RELAY_CONFIG, ASSET_CONFIG
from core.logging_config import get_logger
from core.state import ConnectionState
from .errors import (
    TransportConnectError, ProtocolError, PanelParseError, PanelNetworkError,
    RequestTimeoutError, NotConnectedError, DeviceAcquisitionError, InputSendError
)
from .models import (
    PanelDescriptor, DeviceAcquisitionResult, InputAction, SendResult,
    LifecycleEvent, Reconnecting, Reconnected, ConnectionClosed
)

# Errors that mean the socket could not be opened
CONNECT_ERRORS = (OSError, asyncio.TimeoutError, WebSocketException)


class RelaySession:
    """A live connection to one relay; survives transparent reconnects"""

    def __init__(self, generation: int, address: str, port: int, websocket):
        self.generation = generation
        self.address = address
        self.port = port
        self.websocket = websocket
        self.reconnects = 0

    @property
    def url(self) -> str:
        return f"ws://{self.address}:{self.port}/"


class RelayClient:
    """
    Session client for the relay server.

    Owns the websocket, matches RPC responses to requests and runs the
    reconnect loop when the socket drops. Lifecycle changes are pushed to
    subscribers as Reconnecting / Reconnected / ConnectionClosed events.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        self.logger = get_logger(__name__)
        self.config = config or RELAY_CONFIG

        self.connection_state = ConnectionState.DISCONNECTED
        self.session: Optional[RelaySession] = None
        self._generation = 0

        self._pending: Dict[int, asyncio.Future] = {}
        self._request_counter = 0
        self._reader_task: Optional[asyncio.Task] = None

        self._subscribers: List[Callable[[LifecycleEvent], None]] = []

        self.messages_sent = 0
        self.messages_received = 0

    @property
    def address(self) -> Optional[str]:
        """Address of the live session, None while disconnected"""
        if self.session is None:
            return None
        return f"{self.session.address}:{self.session.port}"

    def subscribe(self, sink: Callable[[LifecycleEvent], None]):
        """Register a receiver for lifecycle events"""
        self._subscribers.append(sink)

    async def connect(self, address: str, port: int):
        """
        Open a new session, replacing any existing one.

        Raises:
            TransportConnectError: If the websocket cannot be opened
        """
        if self.session is not None:
            self.logger.info("Replacing existing session before connecting")
            await self._close_session(self.session)

        self._generation += 1
        generation = self._generation
        self.connection_state = ConnectionState.CONNECTING

        url = f"ws://{address}:{port}/"
        self.logger.info(f"Connecting to relay at {url}")

        try:
            websocket = await self._open(url)
        except CONNECT_ERRORS as e:
            if generation == self._generation:
                self.connection_state = ConnectionState.DISCONNECTED
            raise TransportConnectError(address, port, str(e) or type(e).__name__) from e

        if generation != self._generation:
            # Superseded by another connect() while the handshake was in flight
            await websocket.close()
            raise TransportConnectError(address, port, "Connection attempt superseded")

        self.session = RelaySession(generation, address, port, websocket)
        self.connection_state = ConnectionState.CONNECTED
        self._reader_task = asyncio.create_task(self._read_loop(self.session))
        self.logger.info(f"Connected to relay {self.address} (session {generation})")

    async def disconnect(self):
        """Tear down the session; subscribers receive ConnectionClosed"""
        session = self.session
        self.connection_state = ConnectionState.DISCONNECTED
        if session is None:
            return

        await self._close_session(session)
        self._emit(ConnectionClosed(session.generation, "Disconnected"))

    async def get_panels(self) -> List[str]:
        response = await self._request("getPanels")
        if not response.get("ok"):
            raise PanelNetworkError(self._error_message(response))

        panels = response.get("data") or []
        if not isinstance(panels, list):
            raise ProtocolError(f"Expected a list of panels, got {type(panels).__name__}")
        return [str(name) for name in panels]

    async def get_panel(self, name: str) -> PanelDescriptor:
        """
        Fetch a panel descriptor.

        Raises:
            PanelParseError: The relay could not parse the panel file
            PanelNetworkError: The request failed for any other reason
        """
        response = await self._request("getPanel", {"name": name})
        if response.get("ok"):
            return PanelDescriptor(name, response.get("data"))

        error = self._error_details(response)
        if error.get("kind") == "parse":
            raise PanelParseError(self._error_message(response),
                                  _position(error.get("line")), _position(error.get("column")))
        raise PanelNetworkError(self._error_message(response))

    async def acquire_device(self, device_id: int) -> DeviceAcquisitionResult:
        response = await self._request("acquireDevice", {"device": device_id})
        if not response.get("ok"):
            raise DeviceAcquisitionError(device_id, self._error_message(response))
        data = response.get("data") or {}
        if not isinstance(data, dict):
            raise ProtocolError(f"Expected an object for device {device_id}, got {type(data).__name__}")
        return DeviceAcquisitionResult.from_dict(device_id, data)

    async def send_input(self, action: InputAction) -> SendResult:
        try:
            response = await self._request("sendInput", {"action": action.to_dict()})
        except PanelNetworkError as e:
            raise InputSendError(e.message) from e

        if not response.get("ok"):
            return SendResult(ok=False, message=self._error_message(response))
        return SendResult.from_dict(response.get("data") or {"ok": True})

    def get_asset_path(self, panel: Optional[str], file: str) -> Optional[str]:
        """HTTP location of a panel asset, None without a session or panel"""
        if self.session is None or not panel:
            return None
        return ASSET_CONFIG["asset_url"].format(
            address=self.session.address, port=self.session.port, panel=panel, file=file
        )

    async def _open(self, url: str):
        return await websockets.connect(
            url,
            open_timeout=self.config.get("connect_timeout", 10.0),
            ping_interval=self.config.get("ping_interval", 20.0)
        )

    async def _request(self, request_type: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Send one RPC; the correlation id and type always win over params"""
        session = self.session
        if session is None or self.connection_state != ConnectionState.CONNECTED:
            raise NotConnectedError(request_type)

        self._request_counter += 1
        request_id = self._request_counter
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        timeout = self.config.get("request_timeout", 15.0)
        try:
            await session.websocket.send(json.dumps({**(params or {}), "id": request_id, "type": request_type}))
            self.messages_sent += 1
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError as e:
            raise RequestTimeoutError(request_type, timeout) from e
        except SocketClosed as e:
            raise PanelNetworkError(f"Connection closed during {request_type}") from e
        finally:
            self._pending.pop(request_id, None)

    async def _read_loop(self, session: RelaySession):
        reason = None
        try:
            async for raw in session.websocket:
                self._handle_message(raw)
        except SocketClosed as e:
            reason = str(e)

        if session is not self.session:
            return

        reason = reason or getattr(session.websocket, "close_reason", None) or "Connection closed by server"
        self.logger.warning(f"Relay connection dropped: {reason}")
        self._fail_pending(PanelNetworkError(f"Connection lost: {reason}"))
        await self._reconnect(session, reason)

    async def _reconnect(self, session: RelaySession, reason: str):
        """Retry the session with exponential backoff, then give up"""
        settings = self.config.get("reconnect", {})
        max_attempts = settings.get("max_attempts", 3)
        delay = settings.get("initial_delay", 2.0)
        backoff = settings.get("backoff", 2.0)

        self.connection_state = ConnectionState.RECONNECTING
        self._emit(Reconnecting(session.generation))

        for attempt in range(max_attempts):
            await asyncio.sleep(delay)
            if session is not self.session:
                return

            self.logger.info(f"Reconnection attempt {attempt + 1}/{max_attempts}")
            try:
                websocket = await self._open(session.url)
            except CONNECT_ERRORS as e:
                reason = str(e) or type(e).__name__
                self.logger.warning(f"Reconnection failed: {reason}")
                delay *= backoff
                continue

            if session is not self.session:
                await websocket.close()
                return

            session.websocket = websocket
            session.reconnects += 1
            self.connection_state = ConnectionState.CONNECTED
            self._reader_task = asyncio.create_task(self._read_loop(session))
            self.logger.info("Relay connection re-established")
            self._emit(Reconnected(session.generation))
            return

        self.logger.error(f"Failed to reconnect after {max_attempts} attempts")
        self.session = None
        self.connection_state = ConnectionState.DISCONNECTED
        self._emit(ConnectionClosed(session.generation, reason))

    async def _close_session(self, session: RelaySession):
        self.session = None
        task = self._reader_task
        self._reader_task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

        self._fail_pending(NotConnectedError("pending request"))
        try:
            await session.websocket.close()
        except (OSError, WebSocketException) as e:
            self.logger.debug(f"Error closing websocket: {e}")

    def _handle_message(self, raw):
        self.messages_received += 1
        try:
            message = json.loads(raw)
        except (TypeError, ValueError):
            self.logger.warning("Discarding non-JSON message from relay")
            return

        if not isinstance(message, dict):
            self.logger.warning("Discarding malformed message from relay")
            return

        future = self._pending.get(message.get("id"))
        if future is None:
            self.logger.debug(f"Unsolicited message from relay: {message.get('type')}")
            return
        if not future.done():
            future.set_result(message)

    def _fail_pending(self, error: Exception):
        for future in self._pending.values():
            if not future.done():
                future.set_exception(error)
        self._pending.clear()

    def _emit(self, event: LifecycleEvent):
        for sink in self._subscribers:
            try:
                sink(event)
            except Exception:
                self.logger.error(f"Error delivering {type(event).__name__}", exc_info=True)

    @staticmethod
    def _error_details(response: Dict[str, Any]) -> Dict[str, Any]:
        """The error object of a failed response; a bare string becomes its message"""
        error = response.get("error")
        if isinstance(error, dict):
            return error
        return {"message": str(error)} if error else {}

    @classmethod
    def _error_message(cls, response: Dict[str, Any]) -> str:
        return str(cls._error_details(response).get("message") or "Unknown error")

    def get_stats(self) -> Dict[str, Any]:
        return {
            "connection_state": self.connection_state.value,
            "address": self.address,
            "session": self.session.generation if self.session else None,
            "reconnects": self.session.reconnects if self.session else 0,
            "pending_requests": len(self._pending),
            "messages_sent": self.messages_sent,
            "messages_received": self.messages_received
        }


def _position(value) -> int:
    """Line or column from a parse error; missing or malformed values become 0"""
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
