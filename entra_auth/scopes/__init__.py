"""Scope catalog and resource grouping rules."""

from entra_auth.scopes.catalog import (
    BLOB_STORAGE_SCOPE_TEMPLATE,
    BUILTIN_SCOPES,
    DEFAULT_CATALOG,
    OTHER_SCOPE_PLACEHOLDER,
    OTHERS_SCOPE_PLACEHOLDER,
    PermissionKind,
    Scope,
    ScopeCatalog,
)
from entra_auth.scopes.resource_util import (
    GRAPH_RESOURCE,
    ScopeList,
    can_be_grouped_with,
    compute_application_scope_list,
    compute_delegated_scope_list,
    group_scopes_by_resource,
    msal_request_scopes,
    parse_resource,
)

__all__ = [
    "BLOB_STORAGE_SCOPE_TEMPLATE",
    "BUILTIN_SCOPES",
    "DEFAULT_CATALOG",
    "OTHER_SCOPE_PLACEHOLDER",
    "OTHERS_SCOPE_PLACEHOLDER",
    "PermissionKind",
    "Scope",
    "ScopeCatalog",
    "GRAPH_RESOURCE",
    "ScopeList",
    "can_be_grouped_with",
    "compute_application_scope_list",
    "compute_delegated_scope_list",
    "group_scopes_by_resource",
    "msal_request_scopes",
    "parse_resource",
]
