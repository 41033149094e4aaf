import os
import threading
from pathlib import Path
from typing import Any

import yaml

from core.errors import LocalStorageUnavailable

# Keys persisted on the device.
DEVICE_UUID_KEY = "device_uuid"
INSTALLATION_DATE_KEY = "installation_date"
FIRST_USERNAME_KEY = "firstUsername"
FIRST_PASSWORD_KEY = "firstPassword"


def get_preferences_path() -> Path:
    """Returns the path to the preferences.yaml file."""
    from config import get_config

    return Path(get_config()["PREFERENCES_PATH"])


class PreferencesStore:
    """
    String-keyed key-value persistence backed by a YAML file.

    Unlike runtime settings, a corrupt or unreadable file is an error here:
    the values stored (device identity, primary account) must never be
    replaced by fresh ones just because the file could not be parsed.
    """

    def __init__(self, path: str | Path | None = None):
        self._path = Path(path) if path is not None else get_preferences_path()
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            raw = self._path.read_text(encoding="utf-8").strip()
        except OSError as e:
            raise LocalStorageUnavailable(f"Cannot read {self._path}: {e}") from e
        if not raw:
            return {}
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise LocalStorageUnavailable(f"Corrupt preferences file {self._path}") from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise LocalStorageUnavailable(f"Corrupt preferences file {self._path}")
        return data

    def _save(self, data: dict[str, Any]) -> None:
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as handle:
                yaml.safe_dump(data, handle, sort_keys=True)
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise LocalStorageUnavailable(f"Cannot write {self._path}: {e}") from e

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._load()
            data[key] = value
            self._save(data)

    def set_many(self, values: dict[str, Any]) -> None:
        """Writes several keys in one file rewrite."""
        with self._lock:
            data = self._load()
            data.update(values)
            self._save(data)

    def remove(self, *keys: str) -> None:
        with self._lock:
            data = self._load()
            if not any(key in data for key in keys):
                return
            for key in keys:
                data.pop(key, None)
            self._save(data)
