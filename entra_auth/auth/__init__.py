"""Authentication: MSAL logins, silent token refresh and the provider state machine."""

from entra_auth.auth.login_task import LoginTask
from entra_auth.auth.providers import (
    PROVIDER_TYPES,
    AuthenticatorSettings,
    AuthProvider,
    AuthState,
    AzureSasTokenAuthProvider,
    AzureSharedKeyAuthProvider,
    ClientSecretAuthProvider,
    InteractiveAuthProvider,
    UsernamePasswordAuthProvider,
)
from entra_auth.auth.token_supplier import (
    AccessTokenSupplier,
    ApplicationPermissionsTokenSupplier,
    DelegatedPermissionsTokenSupplier,
)

__all__ = [
    "LoginTask",
    "PROVIDER_TYPES",
    "AuthenticatorSettings",
    "AuthProvider",
    "AuthState",
    "AzureSasTokenAuthProvider",
    "AzureSharedKeyAuthProvider",
    "ClientSecretAuthProvider",
    "InteractiveAuthProvider",
    "UsernamePasswordAuthProvider",
    "AccessTokenSupplier",
    "ApplicationPermissionsTokenSupplier",
    "DelegatedPermissionsTokenSupplier",
]
