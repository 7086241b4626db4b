"""
Configuration validation run once at startup.

Catches misconfiguration (bad ports, impossible reconnect settings,
unwritable settings location) before the client opens any connection.
"""

import logging
import os
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple


class ConfigValidationError(Exception):
    """Raised when configuration validation fails"""
    pass


class ConfigValidator:
    """Validates the relay client configuration"""

    def __init__(self, relay_config: Dict[str, Any], storage_config: Dict[str, Any],
                 logging_config: Dict[str, Any], asset_config: Optional[Dict[str, Any]] = None):
        self.relay_config = relay_config
        self.storage_config = storage_config
        self.logging_config = logging_config
        self.asset_config = asset_config or {}
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def validate_all(self) -> Tuple[bool, List[str], List[str]]:
        """
        Validate all configuration settings.

        Returns:
            Tuple of (is_valid, errors, warnings)
        """
        self.errors.clear()
        self.warnings.clear()

        self._validate_relay_config()
        self._validate_asset_config()
        self._validate_storage_config()
        self._validate_logging_config()

        return len(self.errors) == 0, self.errors.copy(), self.warnings.copy()

    def _validate_relay_config(self):
        port = self.relay_config.get("default_port")
        if not isinstance(port, int) or not 1 <= port <= 65535:
            self.errors.append(f"Invalid relay port: {port}. Must be between 1 and 65535")

        for key in ("connect_timeout", "request_timeout"):
            value = self.relay_config.get(key, 0)
            if not isinstance(value, (int, float)) or value <= 0:
                self.errors.append(f"{key} must be a positive number of seconds, got {value}")
            elif value > 120:
                self.warnings.append(f"{key} of {value}s is unusually long")

        reconnect = self.relay_config.get("reconnect", {})
        attempts = reconnect.get("max_attempts", 0)
        if not isinstance(attempts, int) or attempts < 0:
            self.errors.append(f"reconnect.max_attempts must be a non-negative integer, got {attempts}")
        elif attempts == 0:
            self.warnings.append("Automatic reconnection is disabled (reconnect.max_attempts = 0)")

        if reconnect.get("initial_delay", 0) <= 0:
            self.errors.append("reconnect.initial_delay must be positive")
        if reconnect.get("backoff", 0) < 1:
            self.errors.append("reconnect.backoff must be at least 1")

    def _validate_asset_config(self):
        url = self.asset_config.get("asset_url")
        if url is None:
            return
        for placeholder in ("{address}", "{port}", "{panel}", "{file}"):
            if placeholder not in url:
                self.errors.append(f"asset_url is missing the {placeholder} placeholder")

    def _validate_storage_config(self):
        path = Path(self.storage_config.get("path", "")).expanduser()
        if not str(path) or path.is_dir():
            self.errors.append(f"Settings path must be a file: {path}")
            return

        # First existing ancestor must be writable
        parent = path.parent
        while not parent.exists() and parent != parent.parent:
            parent = parent.parent
        if not os.access(parent, os.W_OK):
            self.warnings.append(f"Settings directory {parent} is not writable; settings will not persist")

    def _validate_logging_config(self):
        level = str(self.logging_config.get("log_level", "INFO")).upper()
        if not isinstance(logging.getLevelName(level), int):
            self.errors.append(f"Unknown log level: {level}")

        if self.logging_config.get("max_log_size_mb", 1) <= 0:
            self.errors.append("max_log_size_mb must be positive")


def validate_startup_config(relay_config: Dict[str, Any], storage_config: Dict[str, Any],
                            logging_config: Dict[str, Any],
                            asset_config: Optional[Dict[str, Any]] = None) -> List[str]:
    """
    Validate configuration before starting the client.

    Returns:
        Warnings worth logging

    Raises:
        ConfigValidationError: If any setting is invalid
    """
    validator = ConfigValidator(relay_config, storage_config, logging_config, asset_config)
    is_valid, errors, warnings = validator.validate_all()
    if not is_valid:
        raise ConfigValidationError("; ".join(errors))
    return warnings
