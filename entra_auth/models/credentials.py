"""Credentials produced by the auth providers and handed to downstream API clients."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit

from azure.core.credentials import AccessToken, AzureNamedKeyCredential, AzureSasCredential

from entra_auth.scopes import PermissionKind, ScopeList

if TYPE_CHECKING:
    from entra_auth.auth.token_supplier import AccessTokenSupplier


class CredentialKind(str, Enum):
    OAUTH2_ACCESS_TOKEN = "oauth2_access_token"
    AZURE_SHARED_KEY = "azure_shared_key"
    AZURE_SAS_TOKEN = "azure_sas_token"


class Credential:
    """Base class: a kind plus a non-secret description for display."""

    kind: CredentialKind

    def summary(self) -> str:
        raise NotImplementedError

    def describe(self) -> dict[str, Any]:
        """Non-secret metadata about this credential."""
        return {"kind": self.kind.value, "summary": self.summary()}


class OAuth2Credential(Credential):
    """Access tokens for Entra ID protected APIs, refreshed silently on demand.

    Implements the azure-core TokenCredential protocol (get_token), so it can be
    passed to any Azure SDK client.
    """

    kind = CredentialKind.OAUTH2_ACCESS_TOKEN

    def __init__(
        self,
        token_supplier: AccessTokenSupplier,
        username: str | None,
        scope_list: ScopeList,
        endpoint: str,
        app_id: str,
        permission_kind: PermissionKind = PermissionKind.DELEGATED,
    ):
        self.token_supplier = token_supplier
        self.username = username
        self.scope_list = scope_list
        self.endpoint = endpoint
        self.app_id = app_id
        self.permission_kind = permission_kind

    @property
    def scopes(self) -> tuple[str, ...]:
        return self.scope_list.scopes

    @property
    def is_multi_resource(self) -> bool:
        return self.scope_list.is_multi_resource

    def get_access_token(self, scopes: set[str] | None = None) -> AccessToken:
        """Return a fresh access token; may refresh over the network and raise OSError."""
        requested = set(scopes) if scopes else set(self.scopes)
        return self.token_supplier.get_access_token(requested)

    def get_token(self, *scopes: str, **kwargs: Any) -> AccessToken:
        return self.get_access_token(set(scopes) if scopes else None)

    def summary(self) -> str:
        return self.username or self.app_id

    def describe(self) -> dict[str, Any]:
        return {
            **super().describe(),
            "username": self.username,
            "endpoint": self.endpoint,
            "app_id": self.app_id,
            "scopes": list(self.scopes),
            "multi_resource": self.is_multi_resource,
            "permission_kind": self.permission_kind.value,
        }


class AzureSharedKeyCredential(Credential):
    """Storage account name and key. No refresh."""

    kind = CredentialKind.AZURE_SHARED_KEY
    ENDPOINT_FORMAT = "https://%s.blob.core.windows.net"

    def __init__(self, account: str, secret_key: str):
        self.account = account
        self._named_key = AzureNamedKeyCredential(account, secret_key)

    @property
    def secret_key(self) -> str:
        return self._named_key.named_key.key

    @property
    def endpoint(self) -> str:
        return self.ENDPOINT_FORMAT % self.account

    def get_credential(self) -> AzureNamedKeyCredential:
        return self._named_key

    def summary(self) -> str:
        return f"Account: {self.account}"

    def describe(self) -> dict[str, Any]:
        return {**super().describe(), "account": self.account, "endpoint": self.endpoint}


class AzureSasTokenCredential(Credential):
    """Shared access signature URL. The query string is the signature."""

    kind = CredentialKind.AZURE_SAS_TOKEN

    def __init__(self, sas_url: str):
        self.sas_url = sas_url
        self._sas = AzureSasCredential(urlsplit(sas_url).query)

    @property
    def endpoint(self) -> str:
        parts = urlsplit(self.sas_url)
        return f"{parts.scheme}://{parts.netloc}"

    def get_credential(self) -> AzureSasCredential:
        return self._sas

    def summary(self) -> str:
        return "SAS Token Credentials"

    def describe(self) -> dict[str, Any]:
        return {**super().describe(), "endpoint": self.endpoint}
