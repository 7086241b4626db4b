"""
Persisted client settings (last server, last panel)
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Dict, Any, Optional

from config import STORAGE_CONFIG
from core.logging_config import get_logger

# Keys written by the client
ADDRESS_KEY = "address"
PORT_KEY = "port"
LAST_PANEL_KEY = "lastPanel"


class SettingsStore:
    """
    Small key-value store backed by a JSON file.

    Every write rewrites the whole file through a temporary file and an
    atomic replace, so a crash never leaves a truncated file behind.
    """

    def __init__(self, path: Optional[str] = None):
        self.logger = get_logger(__name__)
        self.path = Path(path or STORAGE_CONFIG["path"]).expanduser()
        self._values: Dict[str, Any] = self._load()

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any):
        self._values[key] = value
        self._save()

    def remove(self, key: str):
        if key in self._values:
            del self._values[key]
            self._save()

    def items(self) -> Dict[str, Any]:
        return dict(self._values)

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.warning(f"Ignoring unreadable settings file {self.path}: {e}")
            return {}

        if not isinstance(data, dict):
            self.logger.warning(f"Ignoring settings file {self.path}: not a JSON object")
            return {}
        return data

    def _save(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(prefix=".settings-", suffix=".json", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._values, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError:
            self.logger.error(f"Error saving settings to {self.path}", exc_info=True)
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


class MemorySettingsStore(SettingsStore):
    """Settings kept in memory only, for tests and --no-persist runs"""

    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self.logger = get_logger(__name__)
        self.path = None
        self._values = dict(values or {})

    def _save(self):
        pass
