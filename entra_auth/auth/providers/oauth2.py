"""Settings shared by the OAuth2 (Entra ID) providers: scopes, endpoint and app id."""

from __future__ import annotations

from typing import Any, ClassVar, Mapping

from entra_auth import config
from entra_auth.auth.providers.base import AuthProvider, get_bool, get_str
from entra_auth.errors import ConfigError
from entra_auth.scopes import (
    BLOB_STORAGE_SCOPE_TEMPLATE,
    DEFAULT_CATALOG,
    OTHER_SCOPE_PLACEHOLDER,
    OTHERS_SCOPE_PLACEHOLDER,
    PermissionKind,
    Scope,
    ScopeList,
    compute_application_scope_list,
    compute_delegated_scope_list,
)

KEY_SCOPES = "scopes"
KEY_BLOB_STORAGE_ACCOUNT = "blobStorageAccount"
KEY_OTHER_SCOPES = "otherScopes"
KEY_OTHER_SCOPE = "otherScope"
KEY_USE_CUSTOM_ENDPOINT = "useCustomEndpoint"
KEY_CUSTOM_ENDPOINT = "customEndpoint"
KEY_USE_CUSTOM_APP_ID = "useCustomAppId"
KEY_CUSTOM_APP_ID = "customAppId"


class OAuth2Provider(AuthProvider):
    """Scope selection from the catalog, restricted to one permission kind."""

    permission_kind: ClassVar[PermissionKind]
    default_scope_ids: ClassVar[tuple[str, ...]] = ()

    def __init__(self, context, instance_id: str | None = None):
        super().__init__(context, instance_id)
        self.scopes: list[str] = [DEFAULT_CATALOG.by_id(i).scope for i in self.default_scope_ids]

    def selected_scopes(self) -> list[Scope]:
        """Catalog entries for the configured scope strings. Raises ConfigError for unknown ones."""
        selected = []
        for scope_string in self.scopes:
            scope = DEFAULT_CATALOG.from_scope_string(scope_string)
            if scope is None or scope.permission_kind != self.permission_kind:
                raise ConfigError(f"Unknown {self.permission_kind.value} scope: {scope_string}")
            selected.append(scope)
        return selected

    def scope_strings(self) -> list[str]:
        return [s.scope for s in self.selected_scopes()]

    @property
    def endpoint(self) -> str:
        raise NotImplementedError

    @property
    def app_id(self) -> str:
        raise NotImplementedError

    def scope_list(self) -> ScopeList:
        if self.permission_kind == PermissionKind.APPLICATION:
            return compute_application_scope_list(self.scope_strings())
        return compute_delegated_scope_list(self.scope_strings())

    def validate(self) -> None:
        self.selected_scopes()

    def save_settings_to(self, settings: dict[str, Any]) -> None:
        settings[KEY_SCOPES] = list(self.scopes)

    def load_settings_from(self, settings: Mapping[str, Any]) -> None:
        scopes = settings.get(KEY_SCOPES)
        if scopes is not None:
            if isinstance(scopes, str):
                scopes = [scopes]
            self.scopes = [str(s) for s in scopes]


class DelegatedOAuth2Provider(OAuth2Provider):
    """Delegated permissions: blob storage account, free-text scopes, custom endpoint and app id."""

    permission_kind = PermissionKind.DELEGATED
    default_scope_ids = ("SITES_READ_WRITE",)
    default_endpoint: ClassVar[str] = config.COMMON_ENDPOINT

    def __init__(self, context, instance_id: str | None = None):
        super().__init__(context, instance_id)
        self.blob_storage_account = ""
        self.other_scopes = ""
        self.use_custom_endpoint = False
        self.custom_endpoint = ""
        self.use_custom_app_id = False
        self.custom_app_id = ""

    @property
    def endpoint(self) -> str:
        if self.use_custom_endpoint:
            return self.custom_endpoint.strip()
        return self.default_endpoint

    @property
    def app_id(self) -> str:
        if self.use_custom_app_id:
            return self.custom_app_id.strip()
        return config.DEFAULT_APP_ID

    def other_scope_lines(self) -> list[str]:
        return [line.strip() for line in self.other_scopes.splitlines() if line.strip()]

    def scope_strings(self) -> list[str]:
        result: list[str] = []
        for scope in self.selected_scopes():
            if scope.scope == BLOB_STORAGE_SCOPE_TEMPLATE:
                result.append(BLOB_STORAGE_SCOPE_TEMPLATE % self.blob_storage_account.strip())
            elif scope.scope == OTHERS_SCOPE_PLACEHOLDER:
                result.extend(self.other_scope_lines())
            else:
                result.append(scope.scope)
        return result

    def validate(self) -> None:
        super().validate()
        if BLOB_STORAGE_SCOPE_TEMPLATE in self.scopes and not self.blob_storage_account.strip():
            raise ConfigError("Storage account cannot be empty")
        if OTHERS_SCOPE_PLACEHOLDER in self.scopes and not self.other_scope_lines():
            raise ConfigError("Other scopes list cannot be empty")
        if self.use_custom_endpoint and not self.custom_endpoint.strip():
            raise ConfigError("Custom OAuth authorization endpoint URL must not be empty")
        if self.use_custom_app_id and not self.custom_app_id.strip():
            raise ConfigError("Custom Application (client) ID must not be empty")

    def save_settings_to(self, settings: dict[str, Any]) -> None:
        super().save_settings_to(settings)
        settings[KEY_BLOB_STORAGE_ACCOUNT] = self.blob_storage_account
        settings[KEY_OTHER_SCOPES] = self.other_scopes
        settings[KEY_USE_CUSTOM_ENDPOINT] = self.use_custom_endpoint
        settings[KEY_CUSTOM_ENDPOINT] = self.custom_endpoint
        settings[KEY_USE_CUSTOM_APP_ID] = self.use_custom_app_id
        settings[KEY_CUSTOM_APP_ID] = self.custom_app_id

    def load_settings_from(self, settings: Mapping[str, Any]) -> None:
        super().load_settings_from(settings)
        self.blob_storage_account = get_str(settings, KEY_BLOB_STORAGE_ACCOUNT)
        self.other_scopes = get_str(settings, KEY_OTHER_SCOPES)
        self.use_custom_endpoint = get_bool(settings, KEY_USE_CUSTOM_ENDPOINT)
        self.custom_endpoint = get_str(settings, KEY_CUSTOM_ENDPOINT)
        self.use_custom_app_id = get_bool(settings, KEY_USE_CUSTOM_APP_ID)
        self.custom_app_id = get_str(settings, KEY_CUSTOM_APP_ID)


class ApplicationOAuth2Provider(OAuth2Provider):
    """Application permissions: one optional free-text scope in place of <other>."""

    permission_kind = PermissionKind.APPLICATION
    default_scope_ids = ("GRAPH_APP",)

    def __init__(self, context, instance_id: str | None = None):
        super().__init__(context, instance_id)
        self.other_scope = ""

    def scope_strings(self) -> list[str]:
        result: list[str] = []
        for scope in self.selected_scopes():
            if scope.scope == OTHER_SCOPE_PLACEHOLDER:
                result.append(self.other_scope.strip())
            else:
                result.append(scope.scope)
        return result

    def validate(self) -> None:
        super().validate()
        if OTHER_SCOPE_PLACEHOLDER in self.scopes and not self.other_scope.strip():
            raise ConfigError("Other scope cannot be empty")

    def save_settings_to(self, settings: dict[str, Any]) -> None:
        super().save_settings_to(settings)
        settings[KEY_OTHER_SCOPE] = self.other_scope

    def load_settings_from(self, settings: Mapping[str, Any]) -> None:
        super().load_settings_from(settings)
        self.other_scope = get_str(settings, KEY_OTHER_SCOPE)
