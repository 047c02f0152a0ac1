"""Client credentials grant with application permissions."""

from __future__ import annotations

import threading
from typing import Any, Mapping

from entra_auth import config
from entra_auth.auth import msal_util
from entra_auth.auth.providers.base import ExternalCredentialMixin, get_str, resolve_external_credential
from entra_auth.auth.providers.oauth2 import ApplicationOAuth2Provider
from entra_auth.auth.token_supplier import ApplicationPermissionsTokenSupplier
from entra_auth.errors import ConfigError
from entra_auth.models.credentials import OAuth2Credential
from entra_auth.models.external import CredentialsProvider
from entra_auth.scopes import PermissionKind
from entra_auth.utils import crypto

KEY_TENANT_ID = "tenantId"
KEY_CLIENT_ID = "clientId"
KEY_SECRET = "secret"


class ClientSecretAuthProvider(ExternalCredentialMixin, ApplicationOAuth2Provider):
    """The application authenticates as itself with a client id and secret.

    The secret and the resulting token cache only ever live in the MemoryTokenCache.
    """

    provider_type = "clientSecret"
    title = "Client secret"

    def __init__(self, context, instance_id: str | None = None):
        super().__init__(context, instance_id)
        self.tenant_id = ""
        self.client_id = ""
        self.secret = ""
        self.use_external_credential = False
        self.external_credential_name = ""
        self.token_cache_key = f"memory-{self.instance_id}"
        self.secret_cache_key = f"secret-{self.instance_id}"

    @property
    def endpoint(self) -> str:
        return f"{config.AUTHORITY_HOST}/{self.tenant_id.strip()}"

    @property
    def app_id(self) -> str:
        return self.client_id.strip()

    def _resolve_client_credentials(self, credentials_provider: CredentialsProvider | None) -> tuple[str, str]:
        if self.use_external_credential:
            external = resolve_external_credential(
                credentials_provider,
                self.external_credential_name,
                "The selected credentials do not provide a secret",
            )
            return external.login, external.secret
        return self.client_id.strip(), self.secret

    def _create_credential(
        self,
        credentials_provider: CredentialsProvider | None,
        cancel_event: threading.Event | None,
    ) -> OAuth2Credential:
        client_id, secret = self._resolve_client_credentials(credentials_provider)
        scope_list = self.scope_list()
        cache = msal_util.load_token_cache()
        app = msal_util.create_confidential_app(client_id, self.endpoint, secret, cache)
        msal_util.do_login(
            lambda: app.acquire_token_for_client(msal_util.request_scopes(scope_list.scopes)),
            cancel_event,
            fallback_message="Client credentials login failed",
        )
        self.context.token_cache.put(self.token_cache_key, cache.serialize())
        self.context.token_cache.put(self.secret_cache_key, secret)
        supplier = ApplicationPermissionsTokenSupplier(
            self.context.token_cache,
            self.token_cache_key,
            self.endpoint,
            client_id,
            self.secret_cache_key,
        )
        return OAuth2Credential(supplier, None, scope_list, self.endpoint, client_id, PermissionKind.APPLICATION)

    def clear_memory_token_cache(self) -> None:
        self.context.token_cache.remove(self.token_cache_key)
        self.context.token_cache.remove(self.secret_cache_key)

    def validate(self) -> None:
        super().validate()
        if not self.tenant_id.strip():
            raise ConfigError("Tenant ID/Domain cannot be empty")
        if self.use_external_credential:
            self._validate_external_credential()
        else:
            if not self.client_id.strip():
                raise ConfigError("Client/Application ID cannot be empty")
            if not self.secret:
                raise ConfigError("Secret cannot be empty")

    def save_settings_to(self, settings: dict[str, Any]) -> None:
        super().save_settings_to(settings)
        settings[KEY_TENANT_ID] = self.tenant_id
        settings[KEY_CLIENT_ID] = self.client_id
        settings[KEY_SECRET] = crypto.encrypt_string(self.secret)
        self._save_external_credential(settings)

    def load_settings_from(self, settings: Mapping[str, Any]) -> None:
        super().load_settings_from(settings)
        self.tenant_id = get_str(settings, KEY_TENANT_ID)
        self.client_id = get_str(settings, KEY_CLIENT_ID)
        self.secret = crypto.decrypt_string(get_str(settings, KEY_SECRET))
        self._load_external_credential(settings)
