"""Durable key-value settings stores shared by the proxy and the dashboard."""

import asyncio
import copy
import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from navfilter.errors import StoreError


class SettingsStore:
    """Async key-value interface: ``get(keys)`` and ``set(mapping)``."""

    async def get(self, keys: Iterable[str]) -> Dict[str, Any]:
        raise NotImplementedError

    async def set(self, values: Dict[str, Any]) -> None:
        raise NotImplementedError


class MemorySettingsStore(SettingsStore):
    """Keeps settings in a process-local dict."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = copy.deepcopy(initial or {})
        self._lock = threading.Lock()

    async def get(self, keys: Iterable[str]) -> Dict[str, Any]:
        with self._lock:
            return {key: copy.deepcopy(self._data[key]) for key in keys if key in self._data}

    async def set(self, values: Dict[str, Any]) -> None:
        with self._lock:
            self._data.update(copy.deepcopy(values))


class JsonFileSettingsStore(SettingsStore):
    """Stores settings as a single JSON object on disk.

    Writes go to a temporary file that replaces the document, so a reader in
    another process never sees a half-written file.
    """

    def __init__(self, path: str) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    async def get(self, keys: Iterable[str]) -> Dict[str, Any]:
        wanted = list(keys)
        data = await asyncio.to_thread(self._read_locked)
        return {key: data[key] for key in wanted if key in data}

    async def set(self, values: Dict[str, Any]) -> None:
        await asyncio.to_thread(self._update_locked, dict(values))

    def _read_locked(self) -> Dict[str, Any]:
        with self._lock:
            return self._read()

    def _update_locked(self, values: Dict[str, Any]) -> None:
        with self._lock:
            data = self._read()
            data.update(values)
            self._write(data)

    def _read(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, ValueError) as exc:
            raise StoreError("read", f"{self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StoreError("read", f"{self.path}: expected a JSON object")
        return data

    def _write(self, data: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as tmp_file:
                    json.dump(data, tmp_file, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as exc:
            raise StoreError("write", f"{self.path}: {exc}") from exc
