"""Catalog of the OAuth2 scopes known for Microsoft 365 / Azure."""

from collections.abc import Iterable
from enum import Enum

from pydantic import BaseModel, ConfigDict

from entra_auth.errors import DuplicateScopeError
from entra_auth.scopes.resource_util import can_be_grouped_with, parse_resource


class PermissionKind(str, Enum):
    """Delegated (on behalf of a user) or application (app acting as itself)."""

    DELEGATED = "delegated"
    APPLICATION = "application"


class Scope(BaseModel):
    """One catalog entry."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    scope: str
    permission_kind: PermissionKind

    @property
    def resource(self) -> str:
        return parse_resource(self.scope)

    def can_be_grouped_with(self, other: "Scope") -> bool:
        """OAuth2 tokens grant permissions on a single resource only."""
        return can_be_grouped_with(self.scope, other.scope)


BLOB_STORAGE_SCOPE_TEMPLATE = "https://%s.blob.core.windows.net/user_impersonation"
OTHER_SCOPE_PLACEHOLDER = "<other>"
OTHERS_SCOPE_PLACEHOLDER = "<others>"

_DELEGATED = PermissionKind.DELEGATED
_APPLICATION = PermissionKind.APPLICATION

BUILTIN_SCOPES: tuple[Scope, ...] = (
    Scope(id="SITES_READ", title="Sharepoint files and list items (read-only)",
          scope="Sites.Read.All", permission_kind=_DELEGATED),
    Scope(id="SITES_READ_WRITE", title="Sharepoint files and list items",
          scope="Sites.ReadWrite.All", permission_kind=_DELEGATED),
    Scope(id="SITES_MANAGE_ALL", title="Sharepoint files, lists and list items",
          scope="Sites.Manage.All", permission_kind=_DELEGATED),
    Scope(id="AZURE_DATABRICKS", title="Azure Databricks",
          scope="2ff814a6-3304-4ab8-85cb-cd0e6f879c1d/user_impersonation", permission_kind=_DELEGATED),
    Scope(id="AZURE_DATABRICKS_APP", title="Azure Databricks",
          scope="2ff814a6-3304-4ab8-85cb-cd0e6f879c1d/.default", permission_kind=_APPLICATION),
    Scope(id="GRAPH_APP", title="Sharepoint",
          scope="https://graph.microsoft.com/.default", permission_kind=_APPLICATION),
    Scope(id="DIRECTORY_READ", title="User Groups (Read), requires admin consent",
          scope="Directory.Read.All", permission_kind=_DELEGATED),
    Scope(id="USER_READ", title="User Groups (IDs only)",
          scope="User.Read", permission_kind=_DELEGATED),
    Scope(id="AZURE_BLOB_STORAGE", title="Azure Blob Storage/Azure Data Lake Storage Gen2",
          scope=BLOB_STORAGE_SCOPE_TEMPLATE, permission_kind=_DELEGATED),
    Scope(id="AZURE_SQL_DATABASE", title="Azure SQL Database",
          scope="https://database.windows.net/user_impersonation", permission_kind=_DELEGATED),
    Scope(id="AZURE_SQL_DATABASE_APP", title="Azure SQL Database",
          scope="https://database.windows.net/.default", permission_kind=_APPLICATION),
    Scope(id="POWER_BI", title="Power BI",
          scope="https://analysis.windows.net/powerbi/api/Dataset.ReadWrite.All "
                "https://analysis.windows.net/powerbi/api/Workspace.Read.All",
          permission_kind=_DELEGATED),
    Scope(id="POWER_BI_APP", title="Power BI",
          scope="https://analysis.windows.net/powerbi/api/.default", permission_kind=_APPLICATION),
    Scope(id="OTHER", title="Other",
          scope=OTHER_SCOPE_PLACEHOLDER, permission_kind=_APPLICATION),
    Scope(id="OTHERS", title="Others (one per line)",
          scope=OTHERS_SCOPE_PLACEHOLDER, permission_kind=_DELEGATED),
)


class ScopeCatalog:
    """Ordered, immutable collection of scopes with lookup by scope string."""

    def __init__(self, scopes: Iterable[Scope]):
        self._scopes: tuple[Scope, ...] = tuple(scopes)
        self._by_scope: dict[str, Scope] = {}
        self._by_id: dict[str, Scope] = {}
        for entry in self._scopes:
            if entry.scope in self._by_scope:
                raise DuplicateScopeError(f"Duplicate scope {entry.scope}")
            self._by_scope[entry.scope] = entry
            self._by_id[entry.id] = entry

    def __iter__(self):
        return iter(self._scopes)

    def __len__(self) -> int:
        return len(self._scopes)

    def list_by_permission_kind(self, kind: PermissionKind) -> list[Scope]:
        return [s for s in self._scopes if s.permission_kind == kind]

    def from_scope_string(self, scope: str) -> Scope | None:
        return self._by_scope.get(scope)

    def by_id(self, scope_id: str) -> Scope | None:
        return self._by_id.get(scope_id)


# Built at import: an inconsistent catalog aborts startup.
DEFAULT_CATALOG = ScopeCatalog(BUILTIN_SCOPES)
