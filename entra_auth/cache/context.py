"""Process/session context owning the shared caches."""

from entra_auth.cache.credential_cache import CredentialCache
from entra_auth.cache.memory_token_cache import MemoryTokenCache
from entra_auth.utils.logger import get_logger

logger = get_logger("entra_auth.cache.context")


class AuthContext:
    """Owns one MemoryTokenCache and one CredentialCache.

    Every provider, storage backend and token supplier receives the context it
    belongs to; dispose() tears down all token material held by the session.
    """

    def __init__(
        self,
        token_cache: MemoryTokenCache | None = None,
        credential_cache: CredentialCache | None = None,
    ):
        self.token_cache = token_cache if token_cache is not None else MemoryTokenCache()
        self.credential_cache = credential_cache if credential_cache is not None else CredentialCache()

    def dispose(self) -> None:
        logger.info(
            "auth_context.dispose",
            token_entries=len(self.token_cache),
            credentials=len(self.credential_cache),
        )
        self.token_cache.clear()
        self.credential_cache.clear()

    def __enter__(self) -> "AuthContext":
        return self

    def __exit__(self, *exc_info) -> None:
        self.dispose()
