"""Token cache storage interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Mapping

from entra_auth.cache.memory_token_cache import MemoryTokenCache
from entra_auth.errors import ConfigError
from entra_auth.models.login_status import NOT_LOGGED_IN, LoginStatus
from entra_auth.utils.logger import get_logger

logger = get_logger("entra_auth.storage")

RELOGIN_HINT = "Please log in again."
REEXECUTE_HINT = "Please re-execute the authentication to reload it from storage."


class StorageType(str, Enum):
    """Where the serialized token cache of an interactive login is kept."""

    MEMORY = "MEMORY"
    FILE = "FILE"
    SETTINGS = "SETTINGS"

    @classmethod
    def parse(cls, value: str | StorageType) -> StorageType:
        try:
            return cls(value.upper() if isinstance(value, str) else value)
        except ValueError as e:
            raise ConfigError(f"Unknown storage type: {value!r}. Expected one of {[t.value for t in cls]}") from e


class TokenCacheStorage(ABC):
    """Persists one opaque token cache blob.

    Every backend mirrors the blob into the MemoryTokenCache under ``cache_key``;
    token suppliers only ever read from there.
    """

    storage_type: StorageType
    # Appended to "No access token found." when the memory entry is gone
    missing_token_hint: str = REEXECUTE_HINT

    def __init__(self, token_cache: MemoryTokenCache, cache_key: str):
        self._token_cache = token_cache
        self.cache_key = cache_key

    @abstractmethod
    def write_token_cache(self, token_cache: str) -> None:
        """Persist the blob. Raises OSError on failure."""

    @abstractmethod
    def read_token_cache(self) -> str | None:
        """Return the stored blob, or None if nothing is stored yet."""

    @abstractmethod
    def clear(self) -> None:
        """Remove the stored blob and the memory mirror. Idempotent."""

    def not_logged_in_message(self) -> str:
        """Raised to the user when a credential is requested but nothing is stored."""
        return f"No stored login found. {RELOGIN_HINT}"

    def clear_memory_token_cache(self) -> None:
        self._token_cache.remove(self.cache_key)

    def get_login_status(self) -> LoginStatus:
        """Parse the stored blob; NOT_LOGGED_IN if nothing is stored or it cannot be read."""
        try:
            token_cache = self.read_token_cache()
        except OSError as e:
            logger.warning("storage.read_failed", storage=self.storage_type.value, error=str(e))
            return NOT_LOGGED_IN
        if token_cache is None:
            return NOT_LOGGED_IN
        try:
            return LoginStatus.parse_from_token_cache(token_cache)
        except OSError:
            logger.warning("storage.unparseable_token_cache", storage=self.storage_type.value)
            return NOT_LOGGED_IN

    def validate(self) -> None:
        """Check settings completeness. Raises ConfigError."""

    def save_settings_to(self, settings: dict[str, Any]) -> None:
        """Write this backend's settings block."""

    def load_settings_from(self, settings: Mapping[str, Any]) -> None:
        """Read this backend's settings block."""
