"""Token cache embedded (encrypted) in the owning provider's persisted settings."""

from __future__ import annotations

from typing import Any, Mapping

from entra_auth.storage.base import RELOGIN_HINT, StorageType, TokenCacheStorage
from entra_auth.utils import crypto

KEY_TOKEN_CACHE = "tokenCache"


class SettingsStorage(TokenCacheStorage):
    """The blob lives in a settings field and is mirrored into the MemoryTokenCache.

    The encrypted field is only touched when settings are saved or loaded; in
    between, credentials read the memory mirror.
    """

    storage_type = StorageType.SETTINGS

    def __init__(self, token_cache, cache_key: str):
        super().__init__(token_cache, cache_key)
        self._value = ""

    def write_token_cache(self, token_cache: str) -> None:
        self._value = token_cache
        self._token_cache.put(self.cache_key, token_cache)

    def read_token_cache(self) -> str | None:
        # The mirror is newer once a silent refresh has rotated it
        mirrored = self._token_cache.get(self.cache_key)
        if mirrored:
            self._value = mirrored
            return mirrored
        if not self._value:
            return None
        # Restores the mirror after clear_memory_token_cache()
        self._token_cache.put(self.cache_key, self._value)
        return self._value

    def clear(self) -> None:
        self._value = ""
        self._token_cache.remove(self.cache_key)

    def not_logged_in_message(self) -> str:
        return f"No token cache stored in the settings. {RELOGIN_HINT}"

    def save_settings_to(self, settings: dict[str, Any]) -> None:
        # The mirror holds the newest blob once a silent refresh has rotated it
        self._value = self._token_cache.get(self.cache_key) or self._value
        settings[KEY_TOKEN_CACHE] = crypto.encrypt_string(self._value)

    def load_settings_from(self, settings: Mapping[str, Any]) -> None:
        self._value = crypto.decrypt_string(str(settings.get(KEY_TOKEN_CACHE) or ""))
        if self._value:
            self._token_cache.put(self.cache_key, self._value)
