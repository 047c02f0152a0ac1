"""Resource parsing and scope-list computation for Entra ID token requests.

An access token is issued for a single resource (audience). These helpers derive
the resource from a scope string and decide which scopes are sent on the initial
token request.
"""

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict

# Resource identifier of Microsoft Graph. OIDC scopes (openid, profile, ...) also belong here.
GRAPH_RESOURCE = "https://graph.microsoft.com/"

OFFLINE_ACCESS = "offline_access"
DEFAULT_APPLICATION_SCOPE = ".default"

# MSAL adds these itself and rejects them as explicit input
RESERVED_SCOPES = frozenset({"openid", "profile", OFFLINE_ACCESS})


class ScopeList(BaseModel):
    """Scopes to request initially.

    is_multi_resource=True means the credential must fetch tokens ad hoc for
    whatever scopes a caller asks for later, instead of one fixed-scope token.
    """

    model_config = ConfigDict(frozen=True)

    scopes: tuple[str, ...]
    is_multi_resource: bool

    @property
    def scope_set(self) -> frozenset[str]:
        return frozenset(self.scopes)


def _ordered_unique(scopes: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(scopes))


def parse_resource(scope: str) -> str:
    """Heuristically parse the resource identifier of a scope string."""
    if "/" not in scope:
        return GRAPH_RESOURCE
    return scope[: scope.rindex("/") + 1]


def group_scopes_by_resource(scopes: Iterable[str]) -> dict[str, set[str]]:
    """Group scope strings by their parsed resource identifier."""
    grouped: dict[str, set[str]] = {}
    for scope in scopes:
        grouped.setdefault(parse_resource(scope), set()).add(scope)
    return grouped


def can_be_grouped_with(scope: str, other_scope: str) -> bool:
    """True if both scopes can be requested for the same token (same resource)."""
    return parse_resource(scope) == parse_resource(other_scope)


def compute_delegated_scope_list(requested_scopes: Iterable[str]) -> ScopeList:
    """Compute the delegated scopes to request, based on user-requested scopes.

    No requested scopes: only offline_access is requested (to get a refresh token)
    and the credential becomes multi-resource. Otherwise the requested scopes are
    returned unchanged. Scopes spanning several resources are passed through as-is;
    the token endpoint will most likely reject them, but some setups have relied
    on it, so they are not rejected here.
    """
    requested = _ordered_unique(requested_scopes)
    if not requested:
        return ScopeList(scopes=(OFFLINE_ACCESS,), is_multi_resource=True)
    return ScopeList(scopes=requested, is_multi_resource=False)


def compute_application_scope_list(requested_scopes: Iterable[str]) -> ScopeList:
    """Compute the application scopes to request; defaults to .default when empty."""
    requested = _ordered_unique(requested_scopes)
    if not requested:
        return ScopeList(scopes=(DEFAULT_APPLICATION_SCOPE,), is_multi_resource=True)
    return ScopeList(scopes=requested, is_multi_resource=False)


def msal_request_scopes(scopes: Iterable[str]) -> list[str]:
    """Scopes as MSAL accepts them: reserved OIDC scopes removed, whitespace-separated entries split."""
    result: list[str] = []
    for scope in scopes:
        for part in scope.split():
            if part not in RESERVED_SCOPES and part not in result:
                result.append(part)
    return result
