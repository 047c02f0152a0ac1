"""Common contract of all authentication providers."""

from __future__ import annotations

import threading
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from enum import Enum
from typing import Any, ClassVar, Iterator, Mapping

from entra_auth.cache.context import AuthContext
from entra_auth.errors import ConfigError
from entra_auth.models.credentials import Credential
from entra_auth.models.external import CredentialsProvider, ExternalCredential
from entra_auth.utils.logger import get_logger

logger = get_logger("entra_auth.auth.providers")

KEY_USE_EXTERNAL_CREDENTIAL = "useExternalCredential"
KEY_EXTERNAL_CREDENTIAL_NAME = "externalCredentialName"


class AuthState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


def get_str(settings: Mapping[str, Any], key: str, default: str = "") -> str:
    value = settings.get(key)
    return default if value is None else str(value)


def get_bool(settings: Mapping[str, Any], key: str, default: bool = False) -> bool:
    value = settings.get(key)
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


def resolve_external_credential(
    credentials_provider: CredentialsProvider | None,
    name: str,
    missing_secret_message: str,
) -> ExternalCredential:
    """Look up a named external credential. Raises ConfigError if unknown, OSError if it has no secret."""
    if credentials_provider is None:
        raise ConfigError(f"Credentials {name!r} are selected but no credentials provider is available")
    try:
        credential = credentials_provider.get(name)
    except KeyError as e:
        raise ConfigError(f"Credentials {name!r} are not available") from e
    if not credential.secret:
        raise OSError(missing_secret_message)
    return credential


class AuthProvider(ABC):
    """One way of obtaining a Credential, configured through a flat settings block.

    authenticate() drives the state machine: UNAUTHENTICATED -> AUTHENTICATING ->
    AUTHENTICATED, falling back to UNAUTHENTICATED on failure or cancellation. A
    successful call registers the credential in the context's CredentialCache.
    """

    provider_type: ClassVar[str]
    title: ClassVar[str] = ""

    def __init__(self, context: AuthContext, instance_id: str | None = None):
        self.context = context
        # Never persisted; a provider loaded from settings gets fresh cache keys
        self.instance_id = instance_id or uuid.uuid4().hex
        self.state = AuthState.UNAUTHENTICATED
        self.credential_key: str | None = None
        self._state_lock = threading.Lock()
        self._log = logger.bind(provider=self.provider_type)

    def _set_state(self, state: AuthState) -> None:
        with self._state_lock:
            previous, self.state = self.state, state
        if previous != state:
            self._log.debug("provider.state_changed", previous=previous.value, state=state.value)

    @contextmanager
    def _authenticating(self) -> Iterator[None]:
        self._set_state(AuthState.AUTHENTICATING)
        try:
            yield
        except Exception:
            self._set_state(AuthState.UNAUTHENTICATED)
            raise

    def authenticate(
        self,
        credentials_provider: CredentialsProvider | None = None,
        cancel_event: threading.Event | None = None,
    ) -> Credential:
        """Validate the settings, produce a Credential and register it in the CredentialCache."""
        self.validate()
        with self._authenticating():
            credential = self._create_credential(credentials_provider, cancel_event)
        self.context.credential_cache.delete(self.credential_key)
        self.credential_key = self.context.credential_cache.store(credential)
        self._set_state(AuthState.AUTHENTICATED)
        self._log.info("provider.authenticated", credential=credential.summary())
        return credential

    @abstractmethod
    def _create_credential(
        self,
        credentials_provider: CredentialsProvider | None,
        cancel_event: threading.Event | None,
    ) -> Credential:
        """Perform whatever login the provider needs and build the credential."""

    def get_credential(self) -> Credential | None:
        """The credential registered by the last successful authenticate(), if still cached."""
        return self.context.credential_cache.get(self.credential_key)

    def clear_memory_token_cache(self) -> None:
        """Drop token material this provider put into the MemoryTokenCache."""

    def reset(self) -> None:
        self.context.credential_cache.delete(self.credential_key)
        self.credential_key = None
        self.clear_memory_token_cache()
        self._set_state(AuthState.UNAUTHENTICATED)

    @abstractmethod
    def validate(self) -> None:
        """Raise ConfigError if the settings are incomplete."""

    @abstractmethod
    def save_settings_to(self, settings: dict[str, Any]) -> None:
        pass

    @abstractmethod
    def load_settings_from(self, settings: Mapping[str, Any]) -> None:
        pass


class ExternalCredentialMixin:
    """Settings for providers whose secret can come from a named external credential."""

    use_external_credential: bool = False
    external_credential_name: str = ""

    def _validate_external_credential(self) -> None:
        if not self.external_credential_name.strip():
            raise ConfigError("Credentials are not selected")

    def _save_external_credential(self, settings: dict[str, Any]) -> None:
        settings[KEY_USE_EXTERNAL_CREDENTIAL] = self.use_external_credential
        settings[KEY_EXTERNAL_CREDENTIAL_NAME] = self.external_credential_name

    def _load_external_credential(self, settings: Mapping[str, Any]) -> None:
        self.use_external_credential = get_bool(settings, KEY_USE_EXTERNAL_CREDENTIAL)
        self.external_credential_name = get_str(settings, KEY_EXTERNAL_CREDENTIAL_NAME)
