"""Current OAuth2 login status, mostly for display."""

import json
import time
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class LoginStatus(BaseModel):
    """Username and access token expiry of the logged-in account (both None when logged out)."""

    model_config = ConfigDict(frozen=True)

    username: Optional[str] = None
    access_token_expiry: Optional[datetime] = None

    @property
    def is_logged_in(self) -> bool:
        return self.username is not None

    @classmethod
    def parse_from_token_cache(cls, token_cache: str) -> "LoginStatus":
        """Read username and access token expiry from a serialized MSAL token cache.

        Raises OSError if the blob does not have the expected AccessToken/Account sections.
        """
        try:
            data = json.loads(token_cache)
            access_tokens = data["AccessToken"]
            expires_on = int(next(iter(access_tokens.values()))["expires_on"])
            accounts = data["Account"]
            username = next(iter(accounts.values()))["username"]
            return cls(
                username=username,
                access_token_expiry=datetime.fromtimestamp(expires_on, tz=timezone.utc),
            )
        except (ValueError, KeyError, TypeError, StopIteration, AttributeError) as e:
            raise OSError("Could not read token") from e

    @classmethod
    def from_auth_result(cls, result: dict[str, Any]) -> "LoginStatus":
        """Build the status from an MSAL acquire_token_* result dict."""
        claims = result.get("id_token_claims") or {}
        username = claims.get("preferred_username") or claims.get("upn") or claims.get("email")
        expires_in = result.get("expires_in")
        expiry = None
        if expires_in is not None:
            expiry = datetime.fromtimestamp(int(time.time()) + int(expires_in), tz=timezone.utc)
        return cls(username=username, access_token_expiry=expiry)


NOT_LOGGED_IN = LoginStatus()
