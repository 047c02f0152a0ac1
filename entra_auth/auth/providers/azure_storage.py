"""Azure Storage credentials that are not OAuth2: shared account key and SAS URL."""

from __future__ import annotations

import threading
from typing import Any, Mapping
from urllib.parse import urlsplit

from entra_auth.auth.providers.base import (
    AuthProvider,
    ExternalCredentialMixin,
    get_str,
    resolve_external_credential,
)
from entra_auth.errors import ConfigError
from entra_auth.models.credentials import AzureSasTokenCredential, AzureSharedKeyCredential
from entra_auth.models.external import CredentialsProvider
from entra_auth.utils import crypto

KEY_ACCOUNT = "account"
KEY_SECRET_KEY = "secretKey"
KEY_SAS_URL = "sasUrl"


def validate_sas_url(sas_url: str) -> None:
    """A SAS URL must use https and carry the signature in its query string."""
    try:
        parts = urlsplit(sas_url.strip())
    except ValueError as e:
        raise ConfigError(str(e)) from e
    if parts.scheme != "https":
        raise ConfigError(f"Invalid protocol: {parts.scheme or '<none>'}. Expected 'https'.")
    if not parts.netloc:
        raise ConfigError("Host part of the URL is missing")
    if not parts.query:
        raise ConfigError("Query part of the URL is missing")


class AzureSharedKeyAuthProvider(ExternalCredentialMixin, AuthProvider):
    """Storage account name plus account key."""

    provider_type = "azureSharedKey"
    title = "Shared key (Azure Storage only)"

    def __init__(self, context, instance_id: str | None = None):
        super().__init__(context, instance_id)
        self.account = ""
        self.secret_key = ""
        self.use_external_credential = False
        self.external_credential_name = ""

    def _create_credential(
        self,
        credentials_provider: CredentialsProvider | None,
        cancel_event: threading.Event | None,
    ) -> AzureSharedKeyCredential:
        if self.use_external_credential:
            external = resolve_external_credential(
                credentials_provider,
                self.external_credential_name,
                "The selected credentials do not provide a secret key",
            )
            return AzureSharedKeyCredential(external.login, external.secret)
        return AzureSharedKeyCredential(self.account.strip(), self.secret_key)

    def validate(self) -> None:
        if self.use_external_credential:
            self._validate_external_credential()
            return
        if not self.account.strip():
            raise ConfigError("Storage account cannot be empty")
        if not self.secret_key:
            raise ConfigError("Secret key cannot be empty")

    def save_settings_to(self, settings: dict[str, Any]) -> None:
        settings[KEY_ACCOUNT] = self.account
        settings[KEY_SECRET_KEY] = crypto.encrypt_string(self.secret_key)
        self._save_external_credential(settings)

    def load_settings_from(self, settings: Mapping[str, Any]) -> None:
        self.account = get_str(settings, KEY_ACCOUNT)
        self.secret_key = crypto.decrypt_string(get_str(settings, KEY_SECRET_KEY))
        self._load_external_credential(settings)


class AzureSasTokenAuthProvider(ExternalCredentialMixin, AuthProvider):
    """Shared access signature URL, entered directly or taken from an external credential's secret."""

    provider_type = "azureSasToken"
    title = "Shared access signature (SAS) (Azure Storage only)"

    def __init__(self, context, instance_id: str | None = None):
        super().__init__(context, instance_id)
        self.sas_url = ""
        self.use_external_credential = False
        self.external_credential_name = ""

    def _create_credential(
        self,
        credentials_provider: CredentialsProvider | None,
        cancel_event: threading.Event | None,
    ) -> AzureSasTokenCredential:
        sas_url = self.sas_url.strip()
        if self.use_external_credential:
            sas_url = resolve_external_credential(
                credentials_provider,
                self.external_credential_name,
                "The selected credentials do not provide a SAS URL",
            ).secret.strip()
            validate_sas_url(sas_url)
        return AzureSasTokenCredential(sas_url)

    def validate(self) -> None:
        if self.use_external_credential:
            self._validate_external_credential()
            return
        if not self.sas_url.strip():
            raise ConfigError("SAS URL cannot be empty")
        validate_sas_url(self.sas_url)

    def save_settings_to(self, settings: dict[str, Any]) -> None:
        settings[KEY_SAS_URL] = crypto.encrypt_string(self.sas_url)
        self._save_external_credential(settings)

    def load_settings_from(self, settings: Mapping[str, Any]) -> None:
        self.sas_url = crypto.decrypt_string(get_str(settings, KEY_SAS_URL))
        self._load_external_credential(settings)
