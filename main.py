#!/usr/bin/env python3
"""
Main application - runs the panel relay client headless, reporting
notifications through the log
"""

import argparse
import asyncio
import signal
import sys

from config import RELAY_CONFIG, STORAGE_CONFIG, LOGGING_CONFIG, ASSET_CONFIG
from core.logging_config import setup_logging, get_logger
from core.config_validator import validate_startup_config, ConfigValidationError
from core.app import PanelApp
from core.commands import Submit, LoadPanel, DismissNotification
from events import event_bus, EventTypes
from storage import SettingsStore, MemorySettingsStore, LAST_PANEL_KEY


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Panel relay client")
    parser.add_argument("--address", help="Relay server address (overrides the remembered one)")
    parser.add_argument("--port", type=int, default=RELAY_CONFIG["default_port"], help="Relay server port")
    parser.add_argument("--panel", help="Panel to load once connected")
    parser.add_argument("--no-persist", action="store_true", help="Do not read or write saved settings")
    return parser.parse_args(argv)


def startup_commands(args, storage) -> list:
    """
    Commands to post once the loop runs.

    Connecting already restores the remembered panel, so --panel only adds
    a load when it names a different one.
    """
    commands = []
    if args.address:
        commands.append(Submit(args.address, args.port))
    if args.panel and args.panel != storage.get(LAST_PANEL_KEY):
        commands.append(LoadPanel(args.panel))
    return commands


def attach_console_reporter(app):
    """
    Headless stand-in for the notification dialog: every notification is
    already logged when shown, so it is acknowledged right away and its
    deferred connect prompt request becomes a log line.
    """
    logger = get_logger(__name__)

    def on_notification(event):
        app.post(DismissNotification())

    def on_prompt(event):
        if event.data["connect"] and not app.connection.connected:
            logger.warning("Not connected; restart with --address to choose a server")

    app.bus.on(EventTypes.NOTIFICATION_SHOWN, on_notification)
    app.bus.on(EventTypes.PROMPT_CHANGED, on_prompt)


async def run_client(args) -> int:
    logger = get_logger(__name__)

    storage = MemorySettingsStore() if args.no_persist else SettingsStore(STORAGE_CONFIG["path"])
    app = PanelApp(storage=storage)

    def on_state_change(event):
        logger.info(f"Connection {event.data['from_state']} → {event.data['to_state']}")

    event_bus.on(EventTypes.CONNECTION_STATE_CHANGED, on_state_change)
    attach_console_reporter(app)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # add_signal_handler is unavailable on Windows event loops
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(stop_event.set))

    await app.start(auto_connect=not args.address)
    if not args.address and not app.connection.address:
        logger.error("No remembered server; pass --address to connect")
        await app.stop()
        return 1

    for command in startup_commands(args, storage):
        app.post(command)

    await stop_event.wait()

    logger.info("Shutting down gracefully...")
    await app.stop()
    return 0


def main(argv=None) -> int:
    # Validate configuration first (before logging setup)
    try:
        for warning in validate_startup_config(RELAY_CONFIG, STORAGE_CONFIG, LOGGING_CONFIG, ASSET_CONFIG):
            print(f"Configuration warning: {warning}")
    except ConfigValidationError as e:
        print(f"Configuration validation failed: {e}")
        print("Please fix the configuration errors and try again.")
        return 1

    setup_logging(LOGGING_CONFIG)
    logger = get_logger(__name__)
    logger.info("Starting panel relay client")

    args = parse_args(argv)
    try:
        return asyncio.run(run_client(args))
    except Exception as e:
        logger.error("Panel relay client failed", exc_info=True, extra={
            "extra_data": {"error_type": type(e).__name__, "error_message": str(e)}
        })
        return 1


if __name__ == "__main__":
    sys.exit(main())
