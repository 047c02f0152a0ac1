"""Token cache stored as raw UTF-8 text in a user-chosen file."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from entra_auth import config
from entra_auth.errors import ConfigError
from entra_auth.storage.base import RELOGIN_HINT, StorageType, TokenCacheStorage
from entra_auth.utils.logger import get_logger

logger = get_logger("entra_auth.storage.file")

KEY_FILE_PATH = "filePath"


class FileStorage(TokenCacheStorage):
    """Survives restarts. Reads and writes also refresh the memory mirror."""

    storage_type = StorageType.FILE

    def __init__(self, token_cache, cache_key: str, file_path: str | Path | None = None):
        super().__init__(token_cache, cache_key)
        self.file_path: str = str(file_path) if file_path else ""

    def _resolve_path(self) -> Path:
        if not self.file_path.strip():
            raise OSError("File path is not set")
        try:
            return Path(self.file_path).expanduser().resolve()
        except (OSError, RuntimeError, ValueError) as e:
            raise OSError(f"Invalid token cache file path {self.file_path!r}: {e}") from e

    def write_token_cache(self, token_cache: str) -> None:
        path = self._resolve_path()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(token_cache.encode("utf-8"))
        except OSError as e:
            logger.error("file_storage.write_failed", path=str(path), error=str(e))
            raise OSError(f"Could not write token cache to {path}: {e.strerror or e}") from e
        self._token_cache.put(self.cache_key, token_cache)
        logger.debug("file_storage.written", path=str(path))

    def read_token_cache(self) -> str | None:
        path = self._resolve_path()
        try:
            if not path.exists() or path.is_dir():
                return None
            size = path.stat().st_size
            if size > config.MAX_TOKEN_CACHE_FILE_BYTES:
                raise OSError(f"File {path} is too large to plausibly store a token.")
            token_cache = path.read_bytes().decode("utf-8")
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            raise OSError(f"File {path} does not contain a UTF-8 token cache") from e
        self._token_cache.put(self.cache_key, token_cache)
        return token_cache

    def clear(self) -> None:
        """Delete the file and the mirror. Never raises; a file that cannot be removed is logged."""
        self._token_cache.remove(self.cache_key)
        if not self.file_path.strip():
            return
        try:
            path = self._resolve_path()
            if path.is_file():
                path.unlink()
                logger.info("file_storage.cleared", path=str(path))
        except OSError as e:
            logger.warning("file_storage.clear_failed", path=self.file_path, error=str(e))

    def not_logged_in_message(self) -> str:
        return f"No token cache found in file {self.file_path!r}. {RELOGIN_HINT}"

    def validate(self) -> None:
        if not self.file_path.strip():
            raise ConfigError("File path is not set")

    def save_settings_to(self, settings: dict[str, Any]) -> None:
        settings[KEY_FILE_PATH] = self.file_path

    def load_settings_from(self, settings: Mapping[str, Any]) -> None:
        self.file_path = str(settings.get(KEY_FILE_PATH) or "")
