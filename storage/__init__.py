"""
Persisted client settings
"""

from .settings import SettingsStore, MemorySettingsStore, ADDRESS_KEY, PORT_KEY, LAST_PANEL_KEY

__all__ = ["SettingsStore", "MemorySettingsStore", "ADDRESS_KEY", "PORT_KEY", "LAST_PANEL_KEY"]
