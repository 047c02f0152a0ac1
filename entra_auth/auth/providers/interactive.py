"""Interactive browser login with delegated permissions."""

from __future__ import annotations

import threading
from typing import Any, Mapping
from urllib.parse import urlsplit

from entra_auth import config
from entra_auth.auth import msal_util
from entra_auth.auth.login_task import DoneCallback, LoginTask
from entra_auth.auth.providers.base import AuthState, get_str
from entra_auth.auth.providers.oauth2 import DelegatedOAuth2Provider
from entra_auth.auth.token_supplier import DelegatedPermissionsTokenSupplier
from entra_auth.errors import ConfigError
from entra_auth.models.credentials import OAuth2Credential
from entra_auth.models.external import CredentialsProvider
from entra_auth.models.login_status import LoginStatus
from entra_auth.scopes import PermissionKind
from entra_auth.storage import StorageSettings

KEY_REDIRECT_URL = "redirectUrl"


class InteractiveAuthProvider(DelegatedOAuth2Provider):
    """The user logs in through the system browser; the token cache goes to the selected storage.

    perform_login() is a separate step from authenticate(): it can run long before
    (and in another process than) the credential is needed, with the File and
    Settings storages carrying the login across.
    """

    provider_type = "interactive"
    title = "Interactive"
    default_endpoint = config.COMMON_ENDPOINT

    def __init__(self, context, instance_id: str | None = None):
        super().__init__(context, instance_id)
        self.storage = StorageSettings(context.token_cache, self.instance_id)
        self.redirect_url = ""
        self._login_task: LoginTask | None = None
        self._login_task_lock = threading.Lock()

    def get_redirect_url(self) -> str:
        # The default app id is registered with this redirect URL only
        if self.use_custom_app_id:
            return self.redirect_url.strip()
        return config.DEFAULT_REDIRECT_URL

    def _redirect_port(self) -> int | None:
        url = self.get_redirect_url()
        parts = urlsplit(url)
        if not parts.scheme or not parts.netloc:
            raise ConfigError(f"Invalid redirect URL: {url}")
        try:
            return parts.port
        except ValueError as e:
            raise ConfigError(f"Invalid redirect URL: {url}") from e

    def perform_login(self, cancel_event: threading.Event | None = None) -> LoginStatus:
        """Log in through the browser and write the token cache to the current storage.

        Nothing is written unless MSAL returned a complete result. On success the
        provider is AUTHENTICATED; a canceled or failed login leaves it UNAUTHENTICATED
        with the redirect port released.
        """
        self.validate()
        redirect_url = self.get_redirect_url()
        port = self._redirect_port()
        scopes = msal_util.request_scopes(self.scope_list().scopes)
        with self._authenticating():
            cache = msal_util.load_token_cache()
            app = msal_util.create_public_app(self.app_id, self.endpoint, cache)
            receiver = msal_util.open_auth_code_receiver(port)
            self._log.info("interactive.login_started", endpoint=self.endpoint, port=receiver.get_port())
            try:
                result = msal_util.do_login(
                    lambda: msal_util.acquire_token_by_browser(
                        app,
                        receiver,
                        scopes,
                        redirect_url,
                        timeout=config.INTERACTIVE_LOGIN_TIMEOUT_SECONDS,
                    ),
                    cancel_event,
                    fallback_message="Interactive login failed",
                    on_cancel=lambda: msal_util.release_auth_code_receiver(receiver),
                )
            finally:
                msal_util.release_auth_code_receiver(receiver)
            self.storage.write_token_cache(cache.serialize())
        self._set_state(AuthState.AUTHENTICATED)
        status = LoginStatus.from_auth_result(result)
        self._log.info("interactive.login_succeeded", username=status.username)
        return status

    def start_login(self, on_done: DoneCallback | None = None) -> LoginTask:
        """Run perform_login in the background, canceling a login that is still in flight."""
        with self._login_task_lock:
            if self._login_task is not None and not self._login_task.done():
                self._log.info("interactive.login_replaced")
                self._login_task.cancel()
                # The replaced login must give up the redirect port first
                if not self._login_task.wait(config.CANCEL_JOIN_TIMEOUT_SECONDS + 1):
                    self._log.warning("interactive.replaced_login_still_running")
            self._login_task = LoginTask(self.perform_login, on_done).start()
            return self._login_task

    def cancel_login(self) -> None:
        with self._login_task_lock:
            if self._login_task is not None:
                self._login_task.cancel()

    def get_login_status(self) -> LoginStatus:
        return self.storage.get_login_status()

    def _create_credential(
        self,
        credentials_provider: CredentialsProvider | None,
        cancel_event: threading.Event | None,
    ) -> OAuth2Credential:
        status = self.storage.get_login_status()
        if not status.is_logged_in:
            raise OSError(self.storage.current.not_logged_in_message())
        supplier = DelegatedPermissionsTokenSupplier(
            self.context.token_cache,
            self.storage.current.cache_key,
            self.endpoint,
            self.app_id,
            missing_token_hint=self.storage.current.missing_token_hint,
        )
        return OAuth2Credential(
            supplier,
            status.username,
            self.scope_list(),
            self.endpoint,
            self.app_id,
            PermissionKind.DELEGATED,
        )

    def clear_memory_token_cache(self) -> None:
        self.storage.clear_memory_token_cache()

    def logout(self) -> None:
        """Forget the login in every storage backend."""
        self.storage.clear_all()
        self.reset()

    def validate(self) -> None:
        super().validate()
        self.storage.validate()
        if self.use_custom_app_id and not self.redirect_url.strip():
            raise ConfigError("Redirect URL must not be empty")

    def save_settings_to(self, settings: dict[str, Any]) -> None:
        super().save_settings_to(settings)
        self.storage.save_settings_to(settings)
        settings[KEY_REDIRECT_URL] = self.redirect_url

    def load_settings_from(self, settings: Mapping[str, Any]) -> None:
        super().load_settings_from(settings)
        self.storage.load_settings_from(settings)
        self.redirect_url = get_str(settings, KEY_REDIRECT_URL)
