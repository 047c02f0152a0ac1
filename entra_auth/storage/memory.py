"""Token cache kept only in process memory."""

from entra_auth.storage.base import RELOGIN_HINT, StorageType, TokenCacheStorage


class MemoryStorage(TokenCacheStorage):
    """Lost on process restart; the user then has to log in again."""

    storage_type = StorageType.MEMORY
    missing_token_hint = RELOGIN_HINT

    def write_token_cache(self, token_cache: str) -> None:
        self._token_cache.put(self.cache_key, token_cache)

    def read_token_cache(self) -> str | None:
        return self._token_cache.get(self.cache_key)

    def clear(self) -> None:
        self._token_cache.remove(self.cache_key)

    def not_logged_in_message(self) -> str:
        return f"Access token not available anymore. {RELOGIN_HINT}"
