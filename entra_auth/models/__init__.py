"""Data models: login status, credentials, external credential references."""

from entra_auth.models.credentials import (
    AzureSasTokenCredential,
    AzureSharedKeyCredential,
    Credential,
    CredentialKind,
    OAuth2Credential,
)
from entra_auth.models.external import (
    CredentialsProvider,
    DictCredentialsProvider,
    EnvCredentialsProvider,
    ExternalCredential,
)
from entra_auth.models.login_status import NOT_LOGGED_IN, LoginStatus

__all__ = [
    "AzureSasTokenCredential",
    "AzureSharedKeyCredential",
    "Credential",
    "CredentialKind",
    "OAuth2Credential",
    "CredentialsProvider",
    "DictCredentialsProvider",
    "EnvCredentialsProvider",
    "ExternalCredential",
    "NOT_LOGGED_IN",
    "LoginStatus",
]
