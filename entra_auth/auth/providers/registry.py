"""Provider registry: settings hold one block per provider type plus the selected providerType."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Mapping

import yaml

from entra_auth import config
from entra_auth.auth.providers.azure_storage import AzureSasTokenAuthProvider, AzureSharedKeyAuthProvider
from entra_auth.auth.providers.base import AuthProvider
from entra_auth.auth.providers.client_secret import ClientSecretAuthProvider
from entra_auth.auth.providers.interactive import InteractiveAuthProvider
from entra_auth.auth.providers.username_password import UsernamePasswordAuthProvider
from entra_auth.cache.context import AuthContext
from entra_auth.errors import ConfigError
from entra_auth.models.credentials import Credential
from entra_auth.models.external import CredentialsProvider
from entra_auth.utils.logger import get_logger

logger = get_logger("entra_auth.auth.registry")

KEY_PROVIDER_TYPE = "providerType"

PROVIDER_TYPES: dict[str, type[AuthProvider]] = {
    cls.provider_type: cls
    for cls in (
        InteractiveAuthProvider,
        UsernamePasswordAuthProvider,
        ClientSecretAuthProvider,
        AzureSharedKeyAuthProvider,
        AzureSasTokenAuthProvider,
    )
}

DEFAULT_PROVIDER_TYPE = InteractiveAuthProvider.provider_type


def get_provider_class(provider_type: str) -> type[AuthProvider]:
    try:
        return PROVIDER_TYPES[provider_type]
    except KeyError:
        raise ConfigError(
            f"Unknown provider type {provider_type!r}. Known: {list(PROVIDER_TYPES)}"
        ) from None


class AuthenticatorSettings:
    """All provider configurations of one authenticator, with one of them selected.

    Every provider keeps its own settings block (and its own instance id), so
    switching providerType back and forth does not lose configuration.
    """

    def __init__(self, context: AuthContext, provider_type: str = DEFAULT_PROVIDER_TYPE):
        get_provider_class(provider_type)
        self.context = context
        self.provider_type = provider_type
        self.providers: dict[str, AuthProvider] = {t: cls(context) for t, cls in PROVIDER_TYPES.items()}

    @property
    def current(self) -> AuthProvider:
        return self.providers[self.provider_type]

    def select(self, provider_type: str) -> AuthProvider:
        get_provider_class(provider_type)
        self.provider_type = provider_type
        return self.current

    def validate(self) -> None:
        self.current.validate()

    def authenticate(
        self,
        credentials_provider: CredentialsProvider | None = None,
        cancel_event: threading.Event | None = None,
    ) -> Credential:
        return self.current.authenticate(credentials_provider, cancel_event)

    def reset(self) -> None:
        for provider in self.providers.values():
            provider.reset()

    def save_settings_to(self, settings: dict[str, Any]) -> None:
        settings[KEY_PROVIDER_TYPE] = self.provider_type
        for provider_type, provider in self.providers.items():
            block: dict[str, Any] = {}
            provider.save_settings_to(block)
            settings[provider_type] = block

    def load_settings_from(self, settings: Mapping[str, Any]) -> None:
        provider_type = str(settings.get(KEY_PROVIDER_TYPE) or DEFAULT_PROVIDER_TYPE)
        get_provider_class(provider_type)
        for key, provider in self.providers.items():
            block = settings.get(key) or {}
            if not isinstance(block, Mapping):
                raise ConfigError(f"Settings block {key!r} must be a mapping, got {type(block).__name__}")
            provider.load_settings_from(block)
        self.provider_type = provider_type

    def to_dict(self) -> dict[str, Any]:
        settings: dict[str, Any] = {}
        self.save_settings_to(settings)
        return settings

    def save(self, path: Path | None = None) -> Path:
        """Write the settings as YAML (secret fields encrypted)."""
        path = path or config.SETTINGS_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, allow_unicode=True, sort_keys=False)
        logger.info("settings.saved", path=str(path), provider_type=self.provider_type)
        return path

    @classmethod
    def load(cls, context: AuthContext, path: Path | None = None) -> AuthenticatorSettings:
        """Read settings written by save(); a missing file yields the defaults."""
        path = path or config.SETTINGS_PATH
        settings = cls(context)
        if not path.exists():
            logger.info("settings.defaults", path=str(path))
            return settings
        try:
            raw = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in settings file {path}: {e}") from e
        if raw is None:
            return settings
        if not isinstance(raw, dict):
            raise ConfigError(f"Settings file must be a YAML object (dict), got {type(raw).__name__}")
        settings.load_settings_from(raw)
        logger.info("settings.loaded", path=str(path), provider_type=settings.provider_type)
        return settings
