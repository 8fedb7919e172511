"""Key-value backends for persisted snapshots.

The durable backend is an external collaborator; anything with a
``get``/``set`` pair keyed by string tuples satisfies :class:`KeyValueStore`.
Each ``set`` must replace the whole value atomically.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Protocol

_logger = logging.getLogger(__name__)

Key = tuple[str, ...]


class KeyValueStore(Protocol):
    def get(self, key: Key) -> Any | None:
        ...

    def set(self, key: Key, value: Any) -> None:
        ...


class MemoryKeyValueStore:
    """In-process store. Values are deep-copied in and out."""

    def __init__(self) -> None:
        self._values: dict[Key, Any] = {}
        self._lock = threading.Lock()

    def get(self, key: Key) -> Any | None:
        with self._lock:
            value = self._values.get(key)
        return copy.deepcopy(value)

    def set(self, key: Key, value: Any) -> None:
        stored = copy.deepcopy(value)
        with self._lock:
            self._values[key] = stored


class JsonFileKeyValueStore:
    """One JSON document per key under *root*.

    Writes go to a temp file that then replaces the target, so readers see
    either the previous or the new document, never a partial one.

    File I/O is blocking and runs on the event loop when used from
    :meth:`RefreshOrchestrator.refresh`. Snapshots are small, which keeps
    this cheap on local disk. Slow or network filesystems call for a store
    that offloads to :func:`asyncio.to_thread`.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)

    def _path(self, key: Key) -> Path:
        if not key or any(not part or "/" in part or part in {".", ".."} for part in key):
            raise ValueError(f"invalid key: {key!r}")
        return self.root.joinpath(*key[:-1]) / f"{key[-1]}.json"

    def get(self, key: Key) -> Any | None:
        path = self._path(key)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            _logger.warning("Ignoring corrupt snapshot file %s", path)
            return None

    def set(self, key: Key, value: Any) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(f"{path.name}.{os.getpid()}.{threading.get_ident()}.tmp")
        data = json.dumps(value, sort_keys=True, ensure_ascii=True, separators=(",", ":"))
        tmp_path.write_text(data + "\n", encoding="utf-8")
        os.replace(tmp_path, path)
