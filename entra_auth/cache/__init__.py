"""In-process caches for token material and resolved credentials."""

from entra_auth.cache.context import AuthContext
from entra_auth.cache.credential_cache import CredentialCache
from entra_auth.cache.memory_token_cache import MemoryTokenCache

__all__ = [
    "AuthContext",
    "CredentialCache",
    "MemoryTokenCache",
]
