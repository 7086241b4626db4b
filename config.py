"""
Centralized configuration for the relay connection, storage and logging
"""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Relay transport settings
DEFAULT_PORT = 32155

RELAY_CONFIG = {
    "default_port": int(os.getenv("RELAY_PORT", str(DEFAULT_PORT))),
    "connect_timeout": float(os.getenv("RELAY_CONNECT_TIMEOUT", "10.0")),  # seconds
    "request_timeout": float(os.getenv("RELAY_REQUEST_TIMEOUT", "15.0")),  # seconds
    "ping_interval": 20.0,  # websocket keepalive
    "reconnect": {
        "max_attempts": int(os.getenv("RELAY_RECONNECT_ATTEMPTS", "3")),
        "initial_delay": 2.0,  # Wait before the first reconnect attempt
        "backoff": 2.0         # Delay multiplier between attempts
    }
}

# Asset checks performed while building a panel
ASSET_CONFIG = {
    "enabled": os.getenv("CHECK_PANEL_ASSETS", "true").lower() == "true",
    "timeout": 5.0,  # seconds per HEAD request
    "asset_url": "http://{address}:{port}/panels/{panel}/{file}"
}

# Persisted client settings (address, port, lastPanel)
STORAGE_CONFIG = {
    "path": os.getenv(
        "PANEL_RELAY_SETTINGS",
        str(Path.home() / ".config" / "panel-relay" / "settings.json")
    )
}

# Keyboard codes that close the current panel
CLOSE_PANEL_KEYS = ("Escape", "Backspace")

# Notification titles shown to the user
NOTIFICATION_TITLES = {
    "connection_error": "Connection error",
    "panel_error": "Failed to load panel",
    "device_info": "Device info",
    "input_error": "Input error"
}

# Logging configuration
LOGGING_CONFIG = {
    "log_level": os.getenv("LOG_LEVEL", "INFO"),
    "log_dir": os.getenv("LOG_DIR", "./logs"),
    "enable_file_logging": os.getenv("ENABLE_FILE_LOGGING", "true").lower() == "true",
    "enable_console_logging": os.getenv("ENABLE_CONSOLE_LOGGING", "true").lower() == "true",
    "structured_logging": os.getenv("ENVIRONMENT", "development").lower() == "production",
    "max_log_size_mb": int(os.getenv("MAX_LOG_SIZE_MB", "10")),
    "backup_count": int(os.getenv("LOG_BACKUP_COUNT", "5")),
}
