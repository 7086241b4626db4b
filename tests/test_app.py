"""
PanelApp command loop
"""

import pytest

from conftest import panel_data, settle
from core.app import PanelApp
from core.commands import Connect, LoadPanel, DismissNotification
from events import EventTypes
from storage import MemorySettingsStore, ADDRESS_KEY, PORT_KEY


async def test_failing_handler_does_not_stop_loop(running_app, client, monkeypatch, events_of):
    async def broken():
        raise RuntimeError("boom")

    monkeypatch.setattr(running_app.connection, "refresh_panels", broken)

    with pytest.raises(RuntimeError):
        await running_app.call(Connect("10.0.0.2", 32155))

    assert events_of(EventTypes.SYSTEM_ERROR) == [{"command": "Connect", "error": "boom"}]
    client.panels["deck"] = panel_data()
    assert await running_app.call(LoadPanel("deck"))


async def test_unknown_command_rejected(running_app):
    with pytest.raises(TypeError):
        await running_app.call("not a command")


async def test_commands_handled_in_order(running_app, client, call_log):
    client.panels["a"] = panel_data()
    client.panels["b"] = panel_data()

    running_app.post(LoadPanel("a"))
    running_app.post(LoadPanel("b"))
    running_app.post(DismissNotification())
    await settle(running_app)

    fetches = [entry for entry in call_log if entry[0] == "get_panel"]
    assert fetches == [("get_panel", "a"), ("get_panel", "b")]
    assert running_app.loader.current_panel == "b"
    assert running_app.commands_processed == 3


async def test_start_connects_to_remembered_server(client, container, bus):
    storage = MemorySettingsStore({ADDRESS_KEY: "10.0.0.2", PORT_KEY: 4000})
    app = PanelApp(client=client, storage=storage, container=container, bus=bus)

    await app.start()
    await settle(app)

    assert client.log[0] == ("connect", "10.0.0.2", 4000)
    assert app.connection.address == "10.0.0.2"
    assert not app.notifications.prompts.connect
    await app.stop()


async def test_snapshot(running_app, client):
    client.panels["deck"] = panel_data()
    await running_app.call(Connect("10.0.0.2", 32155))
    await running_app.call(LoadPanel("deck"))

    assert running_app.snapshot() == {
        "connection_state": "connected",
        "current_server": "10.0.0.2:32155",
        "panels": ["deck"],
        "current_panel": "deck",
        "current_view": "main",
        "notification": None,
        "prompts": {"connect": False, "reconnecting": False},
    }


async def test_stop_disconnects(app, client, bus, events_of):
    await app.start(auto_connect=False)
    await app.call(Connect("10.0.0.2", 32155))

    await app.stop()

    assert client.session is None
    assert ("disconnect",) in client.log
    assert len(events_of(EventTypes.SYSTEM_STOP)) == 1
