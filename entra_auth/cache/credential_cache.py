"""Session-scoped registry handing live credentials from producer to consumer."""

from __future__ import annotations

import threading
import uuid
from typing import TYPE_CHECKING

from entra_auth.utils.logger import get_logger

if TYPE_CHECKING:
    from entra_auth.models.credentials import Credential

logger = get_logger("entra_auth.cache.credential_cache")


class CredentialCache:
    """Maps opaque keys to resolved Credential objects. Never persisted."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._credentials: dict[str, Credential] = {}

    def store(self, credential: Credential) -> str:
        """Register a credential and return the key to look it up again."""
        key = uuid.uuid4().hex
        with self._lock:
            self._credentials[key] = credential
        logger.debug("credential_cache.store", key=key, kind=credential.kind.value)
        return key

    def get(self, key: str | None) -> Credential | None:
        if not key:
            return None
        with self._lock:
            return self._credentials.get(key)

    def delete(self, key: str | None) -> None:
        if not key:
            return
        with self._lock:
            removed = self._credentials.pop(key, None)
        if removed is not None:
            logger.debug("credential_cache.delete", key=key)

    def clear(self) -> None:
        with self._lock:
            self._credentials.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._credentials)
