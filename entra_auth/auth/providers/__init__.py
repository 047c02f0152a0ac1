"""Authentication providers, one module per login method."""

from entra_auth.auth.providers.azure_storage import (
    AzureSasTokenAuthProvider,
    AzureSharedKeyAuthProvider,
    validate_sas_url,
)
from entra_auth.auth.providers.base import AuthProvider, AuthState
from entra_auth.auth.providers.client_secret import ClientSecretAuthProvider
from entra_auth.auth.providers.interactive import InteractiveAuthProvider
from entra_auth.auth.providers.oauth2 import ApplicationOAuth2Provider, DelegatedOAuth2Provider, OAuth2Provider
from entra_auth.auth.providers.registry import PROVIDER_TYPES, AuthenticatorSettings, get_provider_class
from entra_auth.auth.providers.username_password import UsernamePasswordAuthProvider

__all__ = [
    "AuthProvider",
    "AuthState",
    "OAuth2Provider",
    "DelegatedOAuth2Provider",
    "ApplicationOAuth2Provider",
    "InteractiveAuthProvider",
    "ClientSecretAuthProvider",
    "UsernamePasswordAuthProvider",
    "AzureSharedKeyAuthProvider",
    "AzureSasTokenAuthProvider",
    "validate_sas_url",
    "PROVIDER_TYPES",
    "AuthenticatorSettings",
    "get_provider_class",
]
