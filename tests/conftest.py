"""
Shared fixtures: an in-memory relay transport and a wired PanelApp
"""

import asyncio

import pytest

from core.app import PanelApp
from core.state import ConnectionState
from events import EventBus
from panels.builder import PanelContainer
from relay.errors import TransportConnectError, PanelNetworkError, DeviceAcquisitionError
from relay.models import (
    PanelDescriptor, SendResult,
    Reconnecting, Reconnected, ConnectionClosed
)
from storage import MemorySettingsStore


class FakeSession:
    def __init__(self, generation, address, port):
        self.generation = generation
        self.address = address
        self.port = port


class FakeRelayClient:
    """
    Scriptable stand-in for RelayClient.

    panels maps a name to descriptor data or to an exception to raise.
    devices maps a device id to a DeviceAcquisitionResult or an exception;
    device_delays holds per-device sleep times.
    """

    def __init__(self, log=None):
        self.connection_state = ConnectionState.DISCONNECTED
        self.session = None
        self._generation = 0
        self._subscribers = []

        self.connect_error = None
        self.connect_gate = None
        self.panels = {}
        self.devices = {}
        self.device_delays = {}
        self.send_result = SendResult(ok=True)
        self.send_error = None
        self.sent = []
        self.log = log if log is not None else []

    @property
    def address(self):
        if self.session is None:
            return None
        return f"{self.session.address}:{self.session.port}"

    def subscribe(self, sink):
        self._subscribers.append(sink)

    def _emit(self, event):
        for sink in self._subscribers:
            sink(event)

    async def connect(self, address, port):
        self.log.append(("connect", address, port))
        # A new attempt replaces the current session without a close event
        self.session = None
        self.connection_state = ConnectionState.CONNECTING
        if self.connect_gate is not None:
            await self.connect_gate.wait()
        await asyncio.sleep(0)

        if self.connect_error:
            self.connection_state = ConnectionState.DISCONNECTED
            raise TransportConnectError(address, port, self.connect_error)

        self._generation += 1
        self.session = FakeSession(self._generation, address, port)
        self.connection_state = ConnectionState.CONNECTED

    async def disconnect(self):
        self.log.append(("disconnect",))
        session = self.session
        self.connection_state = ConnectionState.DISCONNECTED
        if session is None:
            return
        self.session = None
        self._emit(ConnectionClosed(session.generation, "Disconnected"))

    async def get_panels(self):
        return sorted(self.panels)

    async def get_panel(self, name):
        self.log.append(("get_panel", name))
        await asyncio.sleep(0)
        data = self.panels.get(name)
        if isinstance(data, Exception):
            raise data
        if data is None:
            raise PanelNetworkError(f"Panel {name} not found")
        return PanelDescriptor(name, data)

    async def acquire_device(self, device_id):
        self.log.append(("acquire", device_id))
        await asyncio.sleep(self.device_delays.get(device_id, 0))
        result = self.devices.get(device_id)
        if isinstance(result, Exception):
            raise result
        if result is None:
            raise DeviceAcquisitionError(device_id, "No such device")
        return result

    async def send_input(self, action):
        self.sent.append(action)
        if self.send_error is not None:
            raise self.send_error
        return self.send_result

    def get_asset_path(self, panel, file):
        if self.session is None or not panel:
            return None
        return f"http://{self.session.address}:{self.session.port}/panels/{panel}/{file}"

    # Transport-side lifecycle simulation

    def drop(self):
        self.connection_state = ConnectionState.RECONNECTING
        self._emit(Reconnecting(self.session.generation))

    def restore(self):
        self.connection_state = ConnectionState.CONNECTED
        self._emit(Reconnected(self.session.generation))

    def give_up(self, reason="Connection refused"):
        session = self.session
        self.session = None
        self.connection_state = ConnectionState.DISCONNECTED
        self._emit(ConnectionClosed(session.generation, reason))


class LoggingContainer(PanelContainer):
    """PanelContainer that records teardown in a shared call log"""

    def __init__(self, log, asset_check=None):
        super().__init__(asset_check=asset_check)
        self.log = log

    def remove_views(self):
        self.log.append(("remove_views", len(self.views)))
        super().remove_views()


def panel_data(*controls, assets=(), view_id="main"):
    return {"views": [{"id": view_id, "controls": list(controls)}], "assets": list(assets)}


def button(device, number, **extra):
    return {"type": "button", "device": device, "button": number, **extra}


def slider(device, axis, **extra):
    return {"type": "slider", "device": device, "axis": axis, **extra}


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def call_log():
    return []


@pytest.fixture
def client(call_log):
    return FakeRelayClient(call_log)


@pytest.fixture
def storage():
    return MemorySettingsStore()


@pytest.fixture
def missing_assets():
    """Asset files the fake HTTP check reports as missing"""
    return set()


@pytest.fixture
def container(call_log, missing_assets):
    async def asset_check(file):
        return "HTTP 404" if file in missing_assets else None

    return LoggingContainer(call_log, asset_check=asset_check)


@pytest.fixture
def app(client, storage, container, bus):
    return PanelApp(client=client, storage=storage, container=container, bus=bus)


@pytest.fixture
async def running_app(app):
    await app.start(auto_connect=False)
    yield app
    await app.stop()


@pytest.fixture
def events_of(bus):
    def collect(event_type):
        return [e.data for e in bus.event_history if e.type == event_type]
    return collect


async def settle(app):
    """Wait until every queued command, including follow-up events, is handled"""
    await app.commands.join()
