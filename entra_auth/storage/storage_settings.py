"""Storage selection: the three backends of one provider plus the storageType selector."""

from __future__ import annotations

from typing import Any, Mapping

from entra_auth.cache.memory_token_cache import MemoryTokenCache
from entra_auth.errors import ConfigError
from entra_auth.models.login_status import LoginStatus
from entra_auth.storage.base import StorageType, TokenCacheStorage
from entra_auth.storage.file import FileStorage
from entra_auth.storage.memory import MemoryStorage
from entra_auth.storage.settings import SettingsStorage
from entra_auth.utils.logger import get_logger

logger = get_logger("entra_auth.storage.settings")

KEY_STORAGE_TYPE = "storageType"
KEY_MEMORY = "memory"
KEY_FILE = "file"
KEY_SETTINGS = "settings"


class StorageSettings:
    """Dispatches token cache operations to the currently selected backend.

    Each backend keeps its own blob: switching storage_type neither migrates nor
    clears the previously selected backend.
    """

    def __init__(
        self,
        token_cache: MemoryTokenCache,
        instance_id: str,
        storage_type: StorageType = StorageType.MEMORY,
    ):
        self.storage_type = storage_type
        self.memory = MemoryStorage(token_cache, f"memory-{instance_id}")
        self.file = FileStorage(token_cache, f"file-{instance_id}")
        self.settings = SettingsStorage(token_cache, f"settings-{instance_id}")

    def backend(self, storage_type: StorageType | None = None) -> TokenCacheStorage:
        selected = storage_type or self.storage_type
        if selected == StorageType.MEMORY:
            return self.memory
        if selected == StorageType.FILE:
            return self.file
        if selected == StorageType.SETTINGS:
            return self.settings
        raise ConfigError(f"Unknown storage type: {selected!r}")

    @property
    def current(self) -> TokenCacheStorage:
        return self.backend()

    def write_token_cache(self, token_cache: str) -> None:
        self.current.write_token_cache(token_cache)
        logger.info("storage.token_cache_written", storage=self.storage_type.value)

    def read_token_cache(self) -> str | None:
        return self.current.read_token_cache()

    def get_login_status(self) -> LoginStatus:
        return self.current.get_login_status()

    def is_logged_in(self) -> bool:
        return self.get_login_status().is_logged_in

    def clear_current_storage(self) -> None:
        self.current.clear()

    def clear_all(self) -> None:
        for storage in (self.memory, self.file, self.settings):
            storage.clear()

    def clear_memory_token_cache(self) -> None:
        for storage in (self.memory, self.file, self.settings):
            storage.clear_memory_token_cache()

    def validate(self) -> None:
        self.current.validate()

    def save_settings_to(self, settings: dict[str, Any]) -> None:
        settings[KEY_STORAGE_TYPE] = self.storage_type.value
        for key, storage in ((KEY_MEMORY, self.memory), (KEY_FILE, self.file), (KEY_SETTINGS, self.settings)):
            block: dict[str, Any] = {}
            storage.save_settings_to(block)
            settings[key] = block

    def load_settings_from(self, settings: Mapping[str, Any]) -> None:
        self.storage_type = StorageType.parse(settings.get(KEY_STORAGE_TYPE, StorageType.MEMORY.value))
        for key, storage in ((KEY_MEMORY, self.memory), (KEY_FILE, self.file), (KEY_SETTINGS, self.settings)):
            storage.load_settings_from(settings.get(key) or {})
