"""MSAL application factories and the error boundary around MSAL calls."""

from __future__ import annotations

import socket
import threading
import time
from collections.abc import Callable, Iterable
from typing import Any

import msal
from azure.core.credentials import AccessToken
from msal.oauth2cli.authcode import AuthCodeReceiver

from entra_auth.errors import LoginCanceledError, TokenRequestError, to_io_error
from entra_auth.scopes import GRAPH_RESOURCE, msal_request_scopes
from entra_auth.utils.cancellation import run_cancellable
from entra_auth.utils.logger import get_logger

logger = get_logger("entra_auth.auth.msal")

# Requested when a multi-resource credential is asked for a token without explicit scopes
FALLBACK_SCOPE = f"{GRAPH_RESOURCE}.default"


def load_token_cache(serialized: str | None = None) -> msal.SerializableTokenCache:
    """Create a SerializableTokenCache, optionally populated from a serialized blob."""
    cache = msal.SerializableTokenCache()
    if serialized:
        try:
            cache.deserialize(serialized)
        except ValueError as e:
            raise OSError(f"Could not read the stored token cache: {e}") from e
    return cache


def create_public_app(
    app_id: str, endpoint: str, token_cache: msal.SerializableTokenCache | None = None
) -> msal.PublicClientApplication:
    return msal.PublicClientApplication(
        client_id=app_id,
        authority=endpoint,
        token_cache=token_cache if token_cache is not None else msal.SerializableTokenCache(),
    )


def create_confidential_app(
    client_id: str,
    endpoint: str,
    secret: str,
    token_cache: msal.SerializableTokenCache | None = None,
) -> msal.ConfidentialClientApplication:
    return msal.ConfidentialClientApplication(
        client_id=client_id,
        client_credential=secret,
        authority=endpoint,
        token_cache=token_cache if token_cache is not None else msal.SerializableTokenCache(),
    )


def request_scopes(scopes: Iterable[str]) -> list[str]:
    """MSAL-ready scopes; FALLBACK_SCOPE when only reserved OIDC scopes were asked for."""
    return msal_request_scopes(scopes) or [FALLBACK_SCOPE]


def check_result(result: dict[str, Any] | None, missing_message: str) -> dict[str, Any]:
    """Turn an MSAL result dict into either the dict itself or a TokenRequestError."""
    if not result:
        raise OSError(missing_message)
    if "error" in result or "access_token" not in result:
        error = result.get("error") or "unknown_error"
        description = result.get("error_description")
        logger.warning("msal.token_request_failed", error=error, correlation_id=result.get("correlation_id"))
        raise TokenRequestError(error, description)
    return result


def to_access_token(result: dict[str, Any]) -> AccessToken:
    expires_on = int(time.time()) + int(result.get("expires_in", 0))
    return AccessToken(token=result["access_token"], expires_on=expires_on)


def do_login(
    login_fn: Callable[[], dict[str, Any] | None],
    cancel_event: threading.Event | None = None,
    *,
    missing_message: str = "No token returned by the identity provider",
    fallback_message: str = "Login failed",
    on_cancel: Callable[[], None] | None = None,
) -> dict[str, Any]:
    """Run an MSAL acquire_token_* call, cancellable, with errors normalized to OSError.

    LoginCanceledError is passed through untouched so callers can tell it apart.
    """
    try:
        result = run_cancellable(login_fn, cancel_event, name="entra-auth-login", on_cancel=on_cancel)
    except LoginCanceledError:
        logger.info("msal.login_canceled")
        raise
    except ValueError as e:
        # MSAL raises ValueError for malformed input such as an invalid authority
        raise OSError(f"{fallback_message}: {e}") from e
    except Exception as e:
        raise to_io_error(e, fallback_message)
    return check_result(result, missing_message)


def open_auth_code_receiver(port: int | None) -> AuthCodeReceiver:
    """Bind the loopback listener that receives the browser's auth code."""
    return AuthCodeReceiver(port=port)


def release_auth_code_receiver(receiver: AuthCodeReceiver) -> None:
    """Close the listener and wake the thread blocked on it, so the port is free again.

    A listening socket closed while another thread polls it stays bound until that
    poll returns; one loopback connection makes it return.
    """
    port = receiver.get_port()
    receiver.close()
    try:
        with socket.create_connection(("127.0.0.1", port), timeout=1):
            pass
    except OSError:
        # Nothing was waiting on it anymore
        pass


def acquire_token_by_browser(
    app: msal.PublicClientApplication,
    receiver: AuthCodeReceiver,
    scopes: list[str],
    redirect_url: str,
    timeout: int | None = None,
) -> dict[str, Any]:
    """Auth code flow through the system browser, answered on the given receiver.

    The same flow acquire_token_interactive runs, except that the caller owns the
    receiver and can release it to abort the wait.
    """
    flow = app.initiate_auth_code_flow(
        scopes,
        redirect_uri=redirect_url,
        prompt=msal.Prompt.SELECT_ACCOUNT,
        response_mode="form_post",
    )
    auth_response = receiver.get_auth_response(
        auth_uri=flow["auth_uri"],
        state=flow["state"],
        timeout=timeout,
    )
    if not auth_response:
        raise OSError("No response from the browser login (timed out or aborted)")
    return app.acquire_token_by_auth_code_flow(flow, auth_response, scopes=scopes)
