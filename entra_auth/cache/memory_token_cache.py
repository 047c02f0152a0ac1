"""In-memory store for serialized MSAL token caches and secrets.

Credentials only carry a key into this cache, so token material never ends up in
serialized settings or credential metadata.
"""

import threading


class MemoryTokenCache:
    """Thread-safe key -> opaque string map. Each call is atomic on its own; there is no eviction."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, str] = {}

    def put(self, key: str, value: str) -> None:
        with self._lock:
            self._entries[key] = value

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._entries.get(key)

    def remove(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def contains_key(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
