"""State/store layer.

Persists the last-known-good position snapshots and the latest
assignment set behind an opaque key-value backend.
"""

from fleetpairs.state.kv import JsonFileKeyValueStore, KeyValueStore, MemoryKeyValueStore
from fleetpairs.state.store import SnapshotStore

__all__ = ["JsonFileKeyValueStore", "KeyValueStore", "MemoryKeyValueStore", "SnapshotStore"]
