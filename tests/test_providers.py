"""Tests for the authentication providers and their state machine."""

import socket
import sys
import tempfile
import threading
import time
import unittest
from pathlib import Path
from unittest import mock

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from entra_auth import config
from entra_auth.auth import msal_util
from entra_auth.auth.providers import (
    AuthState,
    AzureSasTokenAuthProvider,
    AzureSharedKeyAuthProvider,
    ClientSecretAuthProvider,
    InteractiveAuthProvider,
    UsernamePasswordAuthProvider,
    validate_sas_url,
)
from entra_auth.cache import AuthContext
from entra_auth.errors import ConfigError, LoginCanceledError, TokenRequestError
from entra_auth.models.credentials import AzureSasTokenCredential, AzureSharedKeyCredential, OAuth2Credential
from entra_auth.models.external import DictCredentialsProvider
from entra_auth.scopes import PermissionKind
from entra_auth.storage import StorageType

from sample_data import auth_result, error_result, token_cache_blob


class FakeReceiver:
    """Stands in for the loopback listener: answers at once, or waits until closed."""

    def __init__(self, port=None, auth_response=None, block=False):
        self.port = port or 51355
        self.auth_response = auth_response if auth_response is not None else {"code": "auth-code", "state": "s1"}
        self.block = block
        self.closed = threading.Event()

    def get_port(self):
        return self.port

    def get_auth_response(self, auth_uri=None, state=None, timeout=None):
        if self.block:
            self.closed.wait(5)
            return None
        return self.auth_response

    def close(self):
        self.closed.set()


class InteractiveProviderTestCase(unittest.TestCase):
    fake_receiver = True

    def setUp(self):
        self.context = AuthContext()
        self.addCleanup(self.context.dispose)
        self.provider = InteractiveAuthProvider(self.context)
        patcher = mock.patch("msal.PublicClientApplication")
        self.app_cls = patcher.start()
        self.addCleanup(patcher.stop)
        self.app = self.app_cls.return_value
        self.app.get_accounts.return_value = [{"username": "jane@contoso.com"}]
        self.app.initiate_auth_code_flow.return_value = {"auth_uri": "https://login.example/authorize", "state": "s1"}
        self.receiver = FakeReceiver()
        if self.fake_receiver:
            receiver_patcher = mock.patch("entra_auth.auth.msal_util.AuthCodeReceiver", side_effect=self._open_receiver)
            self.receiver_cls = receiver_patcher.start()
            self.addCleanup(receiver_patcher.stop)

    def _open_receiver(self, port=None):
        return self.receiver

    def _login_populates_cache(self, username="jane@contoso.com"):
        def by_auth_code(flow, auth_response, scopes=None, **kwargs):
            self.app_cls.call_args.kwargs["token_cache"].deserialize(token_cache_blob(username=username))
            return auth_result(username=username)

        self.app.acquire_token_by_auth_code_flow.side_effect = by_auth_code


class TestInteractiveLogin(InteractiveProviderTestCase):
    def test_defaults(self):
        self.assertEqual(self.provider.scopes, ["Sites.ReadWrite.All"])
        self.assertEqual(self.provider.endpoint, config.COMMON_ENDPOINT)
        self.assertEqual(self.provider.app_id, config.DEFAULT_APP_ID)
        self.assertEqual(self.provider.get_redirect_url(), "http://localhost:51355/")
        self.assertEqual(self.provider.storage.storage_type, StorageType.MEMORY)
        self.assertEqual(self.provider.state, AuthState.UNAUTHENTICATED)

    def test_perform_login_writes_current_storage(self):
        self._login_populates_cache()
        status = self.provider.perform_login()

        self.assertEqual(status.username, "jane@contoso.com")
        self.assertIsNotNone(status.access_token_expiry)
        self.assertTrue(self.provider.get_login_status().is_logged_in)
        self.assertEqual(self.provider.state, AuthState.AUTHENTICATED)
        self.receiver_cls.assert_called_once_with(port=51355)
        self.assertTrue(self.receiver.closed.is_set())
        args = self.app.initiate_auth_code_flow.call_args
        self.assertEqual(args.args[0], ["Sites.ReadWrite.All"])
        self.assertEqual(args.kwargs["redirect_uri"], "http://localhost:51355/")
        self.assertEqual(args.kwargs["response_mode"], "form_post")
        flow, auth_response = self.app.acquire_token_by_auth_code_flow.call_args.args
        self.assertEqual(auth_response["code"], "auth-code")

    def test_failed_login_writes_nothing(self):
        self.app.acquire_token_by_auth_code_flow.return_value = error_result("access_denied", "The user canceled.")
        with self.assertRaises(TokenRequestError):
            self.provider.perform_login()
        self.assertIsNone(self.provider.storage.read_token_cache())
        self.assertEqual(self.provider.state, AuthState.UNAUTHENTICATED)

    def test_no_browser_response(self):
        self.receiver.auth_response = {}
        with self.assertRaises(OSError):
            self.provider.perform_login()
        self.app.acquire_token_by_auth_code_flow.assert_not_called()
        self.assertEqual(self.provider.state, AuthState.UNAUTHENTICATED)

    def test_cancel_restores_unauthenticated(self):
        self.receiver.block = True
        states = []
        self.app.initiate_auth_code_flow.side_effect = lambda *a, **kw: (
            states.append(self.provider.state) or {"auth_uri": "https://login.example/authorize", "state": "s1"}
        )
        cancel_event = threading.Event()
        threading.Timer(0.1, cancel_event.set).start()
        with self.assertRaises(LoginCanceledError):
            self.provider.perform_login(cancel_event)
        self.assertEqual(states, [AuthState.AUTHENTICATING])
        self.assertTrue(self.receiver.closed.is_set())
        self.assertEqual(self.provider.state, AuthState.UNAUTHENTICATED)
        self.assertIsNone(self.provider.storage.read_token_cache())
        self.app.acquire_token_by_auth_code_flow.assert_not_called()

    def test_authenticate_without_login(self):
        with self.assertRaises(OSError) as ctx:
            self.provider.authenticate()
        self.assertEqual(str(ctx.exception), "Access token not available anymore. Please log in again.")
        self.assertEqual(self.provider.state, AuthState.UNAUTHENTICATED)
        self.assertIsNone(self.provider.get_credential())

    def test_authenticate_after_login(self):
        self._login_populates_cache()
        self.provider.perform_login()
        credential = self.provider.authenticate()

        self.assertIsInstance(credential, OAuth2Credential)
        self.assertEqual(credential.username, "jane@contoso.com")
        self.assertEqual(credential.permission_kind, PermissionKind.DELEGATED)
        self.assertEqual(credential.scopes, ("Sites.ReadWrite.All",))
        self.assertEqual(self.provider.state, AuthState.AUTHENTICATED)
        self.assertIs(self.provider.get_credential(), credential)

        self.app.acquire_token_silent.return_value = auth_result(access_token="refreshed")
        self.assertEqual(credential.get_token("User.Read").token, "refreshed")

    def test_reset_forgets_credential(self):
        self._login_populates_cache()
        self.provider.perform_login()
        self.provider.authenticate()
        self.provider.reset()
        self.assertIsNone(self.provider.get_credential())
        self.assertEqual(self.provider.state, AuthState.UNAUTHENTICATED)
        self.assertEqual(len(self.context.token_cache), 0)

    def test_file_storage_login_survives_new_context(self):
        with tempfile.TemporaryDirectory() as tmp:
            self.provider.storage.storage_type = StorageType.FILE
            self.provider.storage.file.file_path = str(Path(tmp) / "cache.json")
            self._login_populates_cache()
            self.provider.perform_login()

            settings = {}
            self.provider.save_settings_to(settings)
            with AuthContext() as other_context:
                restored = InteractiveAuthProvider(other_context)
                restored.load_settings_from(settings)
                credential = restored.authenticate()
                self.assertEqual(credential.username, "jane@contoso.com")
                self.assertNotEqual(restored.instance_id, self.provider.instance_id)

    def test_file_storage_requires_path(self):
        self.provider.storage.storage_type = StorageType.FILE
        with self.assertRaises(ConfigError):
            self.provider.validate()

    def test_logout_clears_all_backends(self):
        self._login_populates_cache()
        self.provider.perform_login()
        self.provider.storage.storage_type = StorageType.SETTINGS
        self.provider.perform_login()
        self.provider.logout()
        self.assertFalse(self.provider.storage.memory.get_login_status().is_logged_in)
        self.assertFalse(self.provider.storage.settings.get_login_status().is_logged_in)

    def test_start_login_replaces_in_flight_task(self):
        started = threading.Event()

        def fake_login(cancel_event):
            started.set()
            cancel_event.wait(5)
            if cancel_event.is_set():
                raise LoginCanceledError()
            return self.provider.get_login_status()

        with mock.patch.object(self.provider, "perform_login", side_effect=fake_login):
            first = self.provider.start_login()
            self.assertTrue(started.wait(2))
            second = self.provider.start_login()
            with self.assertRaises(LoginCanceledError):
                first.result(timeout=2)
            self.assertTrue(first.canceled)
            self.assertFalse(second.canceled)
            self.provider.cancel_login()
            with self.assertRaises(LoginCanceledError):
                second.result(timeout=2)

    def test_settings_storage_recovers_after_reset(self):
        self.provider.storage.storage_type = StorageType.SETTINGS
        self._login_populates_cache()
        self.provider.perform_login()
        self.provider.authenticate()
        self.provider.reset()
        self.assertIsNone(self.context.token_cache.get(self.provider.storage.settings.cache_key))

        credential = self.provider.authenticate()
        self.app.acquire_token_silent.return_value = auth_result(access_token="from-settings")
        self.assertEqual(credential.get_access_token().token, "from-settings")


class TestInteractiveRedirectPort(InteractiveProviderTestCase):
    """Runs against the real loopback listener on a free port."""

    fake_receiver = False

    def setUp(self):
        super().setUp()
        # No auth_uri: the listener waits without opening a browser
        self.app.initiate_auth_code_flow.return_value = {"auth_uri": None, "state": "s1"}
        with socket.socket() as s:
            s.bind(("127.0.0.1", 0))
            self.port = s.getsockname()[1]
        self.provider.use_custom_app_id = True
        self.provider.custom_app_id = "my-app"
        self.provider.redirect_url = f"http://localhost:{self.port}/"

    def _cancel_login(self):
        cancel_event = threading.Event()
        threading.Timer(0.3, cancel_event.set).start()
        with self.assertRaises(LoginCanceledError):
            self.provider.perform_login(cancel_event)

    def test_retry_after_cancel_can_bind_port(self):
        self._cancel_login()
        self._cancel_login()
        self.assertEqual(self.provider.state, AuthState.UNAUTHENTICATED)
        msal_util.open_auth_code_receiver(self.port).close()

    def test_replaced_login_task_releases_port(self):
        first = self.provider.start_login()
        time.sleep(0.3)
        second = self.provider.start_login()
        with self.assertRaises(LoginCanceledError):
            first.result(timeout=10)
        time.sleep(0.3)
        self.assertFalse(second.done())
        self.provider.cancel_login()
        with self.assertRaises(LoginCanceledError):
            second.result(timeout=10)


class TestDelegatedValidation(InteractiveProviderTestCase):
    def test_blob_storage_requires_account(self):
        self.provider.scopes = ["https://%s.blob.core.windows.net/user_impersonation"]
        with self.assertRaises(ConfigError):
            self.provider.validate()
        self.provider.blob_storage_account = "mystorage"
        self.provider.validate()
        self.assertEqual(
            self.provider.scope_list().scopes,
            ("https://mystorage.blob.core.windows.net/user_impersonation",),
        )

    def test_others_one_scope_per_line(self):
        self.provider.scopes = ["<others>"]
        with self.assertRaises(ConfigError):
            self.provider.validate()
        self.provider.other_scopes = "Mail.Read\n\n  Calendars.Read  \n"
        self.provider.validate()
        self.assertEqual(self.provider.scope_strings(), ["Mail.Read", "Calendars.Read"])

    def test_empty_selection_is_multi_resource(self):
        self.provider.scopes = []
        scope_list = self.provider.scope_list()
        self.assertTrue(scope_list.is_multi_resource)
        self.assertEqual(scope_list.scopes, ("offline_access",))

    def test_unknown_or_application_scope_rejected(self):
        self.provider.scopes = ["https://graph.microsoft.com/.default"]
        with self.assertRaises(ConfigError):
            self.provider.validate()

    def test_custom_endpoint_and_app_id(self):
        self.provider.use_custom_endpoint = True
        with self.assertRaises(ConfigError):
            self.provider.validate()
        self.provider.custom_endpoint = "https://login.microsoftonline.us/contoso"
        self.provider.use_custom_app_id = True
        with self.assertRaises(ConfigError):
            self.provider.validate()
        self.provider.custom_app_id = "my-app"
        with self.assertRaises(ConfigError):
            self.provider.validate()
        self.provider.redirect_url = "http://localhost:8400/"
        self.provider.validate()
        self.assertEqual(self.provider.endpoint, "https://login.microsoftonline.us/contoso")
        self.assertEqual(self.provider.app_id, "my-app")
        self.assertEqual(self.provider.get_redirect_url(), "http://localhost:8400/")


class TestClientSecretProvider(unittest.TestCase):
    def setUp(self):
        self.context = AuthContext()
        self.addCleanup(self.context.dispose)
        self.provider = ClientSecretAuthProvider(self.context)
        self.provider.tenant_id = "contoso.onmicrosoft.com"
        self.provider.client_id = "client-id"
        self.provider.secret = "s3cret"
        patcher = mock.patch("msal.ConfidentialClientApplication")
        self.app_cls = patcher.start()
        self.addCleanup(patcher.stop)
        self.app = self.app_cls.return_value
        self.app.acquire_token_for_client.return_value = auth_result(access_token="app-token")

    def test_validation(self):
        self.provider.validate()
        self.provider.tenant_id = ""
        with self.assertRaisesRegex(ConfigError, "Tenant"):
            self.provider.validate()
        self.provider.tenant_id = "contoso"
        self.provider.secret = ""
        with self.assertRaisesRegex(ConfigError, "Secret"):
            self.provider.validate()
        self.provider.use_external_credential = True
        with self.assertRaisesRegex(ConfigError, "Credentials are not selected"):
            self.provider.validate()
        self.provider.external_credential_name = "app-creds"
        self.provider.validate()

    def test_authenticate(self):
        credential = self.provider.authenticate()

        self.assertEqual(credential.permission_kind, PermissionKind.APPLICATION)
        self.assertEqual(credential.endpoint, "https://login.microsoftonline.com/contoso.onmicrosoft.com")
        self.assertEqual(credential.scopes, ("https://graph.microsoft.com/.default",))
        self.assertEqual(self.context.token_cache.get(self.provider.secret_cache_key), "s3cret")
        self.assertTrue(self.provider.secret_cache_key.startswith("secret-"))
        self.assertEqual(credential.get_access_token().token, "app-token")
        self.assertEqual(self.provider.state, AuthState.AUTHENTICATED)

    def test_external_credential(self):
        self.provider.use_external_credential = True
        self.provider.external_credential_name = "app-creds"
        credentials = DictCredentialsProvider()
        credentials.add("app-creds", "external-client", "external-secret")

        credential = self.provider.authenticate(credentials)

        self.assertEqual(credential.app_id, "external-client")
        self.assertEqual(self.app_cls.call_args.kwargs["client_credential"], "external-secret")

    def test_external_credential_without_secret(self):
        self.provider.use_external_credential = True
        self.provider.external_credential_name = "app-creds"
        credentials = DictCredentialsProvider()
        credentials.add("app-creds", "external-client", None)
        with self.assertRaises(OSError):
            self.provider.authenticate(credentials)
        self.assertEqual(self.provider.state, AuthState.UNAUTHENTICATED)

    def test_failure_keeps_memory_clean(self):
        self.app.acquire_token_for_client.return_value = error_result(
            "invalid_client", "AADSTS7000215: Invalid client secret provided."
        )
        with self.assertRaises(OSError) as ctx:
            self.provider.authenticate()
        self.assertIn("AADSTS7000215", str(ctx.exception))
        self.assertEqual(len(self.context.token_cache), 0)

    def test_other_scope(self):
        self.provider.scopes = ["<other>"]
        with self.assertRaises(ConfigError):
            self.provider.validate()
        self.provider.other_scope = " api://my-api/.default "
        self.assertEqual(self.provider.scope_list().scopes, ("api://my-api/.default",))


class TestUsernamePasswordProvider(unittest.TestCase):
    def setUp(self):
        self.context = AuthContext()
        self.addCleanup(self.context.dispose)
        self.provider = UsernamePasswordAuthProvider(self.context)
        patcher = mock.patch("msal.PublicClientApplication")
        self.app_cls = patcher.start()
        self.addCleanup(patcher.stop)
        self.app = self.app_cls.return_value

    def test_default_endpoint(self):
        self.assertEqual(self.provider.endpoint, config.ORGANIZATIONS_ENDPOINT)

    def test_validation(self):
        with self.assertRaisesRegex(ConfigError, "Username"):
            self.provider.validate()
        self.provider.username = "jane@contoso.com"
        with self.assertRaisesRegex(ConfigError, "Password"):
            self.provider.validate()

    def test_authenticate_keeps_cache_in_memory(self):
        self.provider.username = "jane@contoso.com"
        self.provider.password = "pw"
        self.app.acquire_token_by_username_password.return_value = auth_result()

        credential = self.provider.authenticate()

        self.assertEqual(credential.username, "jane@contoso.com")
        self.assertTrue(self.context.token_cache.contains_key(self.provider.cache_key))
        self.assertTrue(self.provider.cache_key.startswith("userpass-"))
        args = self.app.acquire_token_by_username_password.call_args
        self.assertEqual(args.args[:2], ("jane@contoso.com", "pw"))

        self.provider.clear_memory_token_cache()
        with self.assertRaises(OSError) as ctx:
            credential.get_access_token()
        self.assertEqual(str(ctx.exception), "No access token found. Please log in again.")

    def test_external_credential_without_password(self):
        self.provider.use_external_credential = True
        self.provider.external_credential_name = "user"
        with self.assertRaises(ConfigError):
            self.provider.authenticate(DictCredentialsProvider({}))
        credentials = DictCredentialsProvider()
        credentials.add("user", "jane@contoso.com", "")
        with self.assertRaises(OSError):
            self.provider.authenticate(credentials)
        self.app.acquire_token_by_username_password.assert_not_called()


class TestAzureStorageProviders(unittest.TestCase):
    def setUp(self):
        self.context = AuthContext()
        self.addCleanup(self.context.dispose)

    def test_validate_sas_url(self):
        validate_sas_url("https://acc.blob.core.windows.net/container?sv=2022-11-02&sig=abc")
        with self.assertRaisesRegex(ConfigError, "Expected 'https'"):
            validate_sas_url("http://acc.blob.core.windows.net/container?sig=abc")
        with self.assertRaisesRegex(ConfigError, "Query part"):
            validate_sas_url("https://acc.blob.core.windows.net/container")

    def test_sas_provider(self):
        provider = AzureSasTokenAuthProvider(self.context)
        with self.assertRaisesRegex(ConfigError, "SAS URL cannot be empty"):
            provider.validate()
        provider.sas_url = "https://acc.blob.core.windows.net/?sv=2022&sig=abc"
        credential = provider.authenticate()
        self.assertIsInstance(credential, AzureSasTokenCredential)
        self.assertEqual(credential.endpoint, "https://acc.blob.core.windows.net")

    def test_sas_from_external_credential_is_validated(self):
        provider = AzureSasTokenAuthProvider(self.context)
        provider.use_external_credential = True
        provider.external_credential_name = "sas"
        credentials = DictCredentialsProvider()
        credentials.add("sas", "", "http://acc.blob.core.windows.net/?sig=abc")
        with self.assertRaises(ConfigError):
            provider.authenticate(credentials)
        self.assertEqual(provider.state, AuthState.UNAUTHENTICATED)

    def test_shared_key_provider(self):
        provider = AzureSharedKeyAuthProvider(self.context)
        with self.assertRaisesRegex(ConfigError, "Storage account"):
            provider.validate()
        provider.account = "acc"
        provider.secret_key = "a2V5"
        credential = provider.authenticate()
        self.assertIsInstance(credential, AzureSharedKeyCredential)
        self.assertEqual(credential.secret_key, "a2V5")
        self.assertIs(provider.get_credential(), credential)


if __name__ == "__main__":
    unittest.main()
