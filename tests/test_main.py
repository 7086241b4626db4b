"""
Headless entry point helpers
"""

import logging

from conftest import settle
from core.commands import Connect, Submit, LoadPanel
from main import parse_args, startup_commands, attach_console_reporter
from storage import MemorySettingsStore, LAST_PANEL_KEY


def test_remembered_panel_is_not_loaded_twice():
    storage = MemorySettingsStore({LAST_PANEL_KEY: "deck"})

    commands = startup_commands(parse_args(["--panel", "deck"]), storage)

    assert commands == []


def test_address_and_new_panel_are_posted_in_order():
    storage = MemorySettingsStore({LAST_PANEL_KEY: "deck"})

    commands = startup_commands(parse_args(["--address", "10.0.0.2", "--port", "4000", "--panel", "mixer"]), storage)

    assert commands == [Submit("10.0.0.2", 4000), LoadPanel("mixer")]


async def test_notifications_are_acknowledged(running_app, client):
    attach_console_reporter(running_app)

    running_app.post(LoadPanel("missing"))
    await settle(running_app)

    assert running_app.notifications.shown_count == 1
    assert running_app.notifications.current is None


async def test_lost_connection_asks_for_address(running_app, client, caplog):
    attach_console_reporter(running_app)
    await running_app.call(Connect("10.0.0.2", 32155))

    with caplog.at_level(logging.WARNING, logger="main"):
        client.give_up("Connection refused")
        await settle(running_app)

    assert running_app.notifications.current is None
    assert running_app.notifications.prompts.connect
    assert "restart with --address" in caplog.text
