"""Resource owner password credentials grant with delegated permissions."""

from __future__ import annotations

import threading
from typing import Any, Mapping

from entra_auth import config
from entra_auth.auth import msal_util
from entra_auth.auth.providers.base import ExternalCredentialMixin, get_str, resolve_external_credential
from entra_auth.auth.providers.oauth2 import DelegatedOAuth2Provider
from entra_auth.auth.token_supplier import DelegatedPermissionsTokenSupplier
from entra_auth.errors import ConfigError
from entra_auth.models.credentials import OAuth2Credential
from entra_auth.models.external import CredentialsProvider
from entra_auth.models.login_status import LoginStatus
from entra_auth.scopes import PermissionKind
from entra_auth.storage.base import RELOGIN_HINT
from entra_auth.utils import crypto

KEY_USERNAME = "username"
KEY_PASSWORD = "password"


class UsernamePasswordAuthProvider(ExternalCredentialMixin, DelegatedOAuth2Provider):
    """Logs in with a username and password; the token cache stays in memory only."""

    provider_type = "usernamePassword"
    title = "Username/password"
    default_endpoint = config.ORGANIZATIONS_ENDPOINT

    def __init__(self, context, instance_id: str | None = None):
        super().__init__(context, instance_id)
        self.username = ""
        self.password = ""
        self.use_external_credential = False
        self.external_credential_name = ""
        self.cache_key = f"userpass-{self.instance_id}"

    def _resolve_user_credentials(self, credentials_provider: CredentialsProvider | None) -> tuple[str, str]:
        if self.use_external_credential:
            external = resolve_external_credential(
                credentials_provider,
                self.external_credential_name,
                "The selected credentials do not provide a password",
            )
            return external.login, external.secret
        return self.username.strip(), self.password

    def _create_credential(
        self,
        credentials_provider: CredentialsProvider | None,
        cancel_event: threading.Event | None,
    ) -> OAuth2Credential:
        username, password = self._resolve_user_credentials(credentials_provider)
        scope_list = self.scope_list()
        cache = msal_util.load_token_cache()
        app = msal_util.create_public_app(self.app_id, self.endpoint, cache)
        result = msal_util.do_login(
            lambda: app.acquire_token_by_username_password(
                username, password, scopes=msal_util.request_scopes(scope_list.scopes)
            ),
            cancel_event,
            fallback_message="Username/password login failed",
        )
        self.context.token_cache.put(self.cache_key, cache.serialize())
        status = LoginStatus.from_auth_result(result)
        supplier = DelegatedPermissionsTokenSupplier(
            self.context.token_cache,
            self.cache_key,
            self.endpoint,
            self.app_id,
            missing_token_hint=RELOGIN_HINT,
        )
        return OAuth2Credential(
            supplier,
            status.username or username,
            scope_list,
            self.endpoint,
            self.app_id,
            PermissionKind.DELEGATED,
        )

    def clear_memory_token_cache(self) -> None:
        self.context.token_cache.remove(self.cache_key)

    def validate(self) -> None:
        super().validate()
        if self.use_external_credential:
            self._validate_external_credential()
        else:
            if not self.username.strip():
                raise ConfigError("Username cannot be empty")
            if not self.password:
                raise ConfigError("Password cannot be empty")

    def save_settings_to(self, settings: dict[str, Any]) -> None:
        super().save_settings_to(settings)
        settings[KEY_USERNAME] = self.username
        settings[KEY_PASSWORD] = crypto.encrypt_string(self.password)
        self._save_external_credential(settings)

    def load_settings_from(self, settings: Mapping[str, Any]) -> None:
        super().load_settings_from(settings)
        self.username = get_str(settings, KEY_USERNAME)
        self.password = crypto.decrypt_string(get_str(settings, KEY_PASSWORD))
        self._load_external_credential(settings)
