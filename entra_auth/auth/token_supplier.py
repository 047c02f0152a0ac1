"""Silent access token refresh from a token cache held in the MemoryTokenCache."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

import msal
from azure.core.credentials import AccessToken

from entra_auth.auth import msal_util
from entra_auth.cache.memory_token_cache import MemoryTokenCache
from entra_auth.errors import LoginCanceledError, to_io_error
from entra_auth.storage.base import REEXECUTE_HINT
from entra_auth.utils.cancellation import run_cancellable
from entra_auth.utils.logger import get_logger

logger = get_logger("entra_auth.auth.token_supplier")


class AccessTokenSupplier(ABC):
    """Mints access tokens from the serialized token cache stored under ``cache_key``.

    The supplier holds no token material itself; if the memory entry is gone
    (process restart, context disposed) the caller gets an OSError telling the
    user how to get it back.
    """

    def __init__(
        self,
        token_cache: MemoryTokenCache,
        cache_key: str,
        endpoint: str,
        app_id: str,
        missing_token_hint: str = REEXECUTE_HINT,
    ):
        self._token_cache = token_cache
        self.cache_key = cache_key
        self.endpoint = endpoint
        self.app_id = app_id
        self.missing_token_hint = missing_token_hint

    def _read_token_cache(self) -> str:
        serialized = self._token_cache.get(self.cache_key)
        if not serialized:
            raise OSError(f"No access token found. {self.missing_token_hint}")
        return serialized

    def get_access_token(
        self, scopes: Iterable[str], cancel_event: threading.Event | None = None
    ) -> AccessToken:
        """Return a valid access token for the scopes, refreshing silently when needed.

        Raises OSError for every failure, LoginCanceledError when canceled.
        """
        serialized = self._read_token_cache()
        request_scopes = msal_util.request_scopes(scopes)
        cache = msal_util.load_token_cache(serialized)
        try:
            result = run_cancellable(
                lambda: self._acquire(cache, request_scopes),
                cancel_event,
                name="entra-auth-refresh",
            )
        except LoginCanceledError:
            raise
        except Exception as e:
            logger.warning("token_supplier.refresh_failed", error=type(e).__name__, cache_key=self.cache_key)
            raise to_io_error(e)

        result = msal_util.check_result(result, f"No access token found. {self.missing_token_hint}")
        if cache.has_state_changed:
            self._token_cache.put(self.cache_key, cache.serialize())
            logger.debug("token_supplier.cache_rotated", cache_key=self.cache_key)
        return msal_util.to_access_token(result)

    @abstractmethod
    def _acquire(self, cache: msal.SerializableTokenCache, scopes: list[str]) -> dict[str, Any] | None:
        """Perform the silent MSAL call against the deserialized cache."""


class DelegatedPermissionsTokenSupplier(AccessTokenSupplier):
    """Refreshes tokens on behalf of the account stored in the cache."""

    def _acquire(self, cache: msal.SerializableTokenCache, scopes: list[str]) -> dict[str, Any] | None:
        app = msal_util.create_public_app(self.app_id, self.endpoint, cache)
        accounts = app.get_accounts()
        if not accounts:
            raise OSError(f"No access token found. {self.missing_token_hint}")
        return app.acquire_token_silent(scopes, account=accounts[0])


class ApplicationPermissionsTokenSupplier(AccessTokenSupplier):
    """Client-credentials tokens. The client secret is kept in the MemoryTokenCache as well."""

    def __init__(
        self,
        token_cache: MemoryTokenCache,
        cache_key: str,
        endpoint: str,
        app_id: str,
        secret_cache_key: str,
        missing_token_hint: str = REEXECUTE_HINT,
    ):
        super().__init__(token_cache, cache_key, endpoint, app_id, missing_token_hint)
        self.secret_cache_key = secret_cache_key

    def _read_secret(self) -> str:
        secret = self._token_cache.get(self.secret_cache_key)
        if not secret:
            raise OSError(f"No secret found. {self.missing_token_hint}")
        return secret

    def get_access_token(
        self, scopes: Iterable[str], cancel_event: threading.Event | None = None
    ) -> AccessToken:
        self._read_token_cache()
        self._read_secret()
        return super().get_access_token(scopes, cancel_event)

    def _acquire(self, cache: msal.SerializableTokenCache, scopes: list[str]) -> dict[str, Any] | None:
        app = msal_util.create_confidential_app(self.app_id, self.endpoint, self._read_secret(), cache)
        # Served from the cache while the cached token is valid
        return app.acquire_token_for_client(scopes)
