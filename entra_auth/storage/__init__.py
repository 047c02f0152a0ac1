"""Token cache storage backends (memory, file, settings)."""

from entra_auth.storage.base import StorageType, TokenCacheStorage
from entra_auth.storage.file import FileStorage
from entra_auth.storage.memory import MemoryStorage
from entra_auth.storage.settings import SettingsStorage
from entra_auth.storage.storage_settings import StorageSettings

__all__ = [
    "StorageType",
    "TokenCacheStorage",
    "FileStorage",
    "MemoryStorage",
    "SettingsStorage",
    "StorageSettings",
]
