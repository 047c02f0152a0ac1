"""Error taxonomy for the credential lifecycle.

ConfigError     user-fixable settings problems, raised by validate()
OSError         token acquisition and storage I/O failures (the builtin is used directly)
TokenRequestError
                OSError carrying the error_description of a failed token request
LoginCanceledError
                an interactive login or silent refresh was canceled by the caller
DuplicateScopeError
                the scope catalog is inconsistent; raised while importing it
"""

import re
from concurrent.futures import CancelledError


class ConfigError(ValueError):
    """Invalid or incomplete provider/storage settings."""


class LoginCanceledError(CancelledError):
    """An in-flight login or token refresh was canceled."""

    def __init__(self, message: str = "Operation was canceled"):
        super().__init__(message)


class DuplicateScopeError(RuntimeError):
    """Two scope catalog entries share the same scope string."""


# "msal.exceptions.SomeError: real message" -> "real message"
_LEADING_EXCEPTION_TYPE = re.compile(r"^([\w.]+\.\w+(?:Exception|Error): )(.+)$", re.DOTALL)


def _cause_chain(error: BaseException):
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def strip_exception_type(message: str) -> str:
    """Remove leading fully-qualified exception type prefixes from a message."""
    message = message.strip()
    match = _LEADING_EXCEPTION_TYPE.match(message)
    while match:
        message = match.group(2)
        match = _LEADING_EXCEPTION_TYPE.match(message)
    return message


def format_auth_error(error: BaseException) -> str:
    """Produce a readable message for an error raised while talking to Entra ID."""
    message = None
    for exc in _cause_chain(error):
        description = getattr(exc, "error_description", None)
        if description:
            message = str(description)
            break
    if message is None:
        for exc in _cause_chain(error):
            if str(exc).strip():
                message = str(exc)
    if message is None:
        message = f"An error occurred ({type(error).__name__})"
    return strip_exception_type(message)


def to_io_error(error: BaseException, fallback_message: str = "Error during refreshing access token") -> OSError:
    """Normalize an error from a token call into a single OSError.

    The cause chain is searched for an existing OSError (requests' transport errors
    are OSErrors); if there is none, a new OSError is synthesized with the
    original error attached as its cause.
    """
    for exc in _cause_chain(error):
        if isinstance(exc, OSError):
            return exc
    synthesized = OSError(f"{fallback_message}: {format_auth_error(error)}")
    synthesized.__cause__ = error
    return synthesized


class TokenRequestError(OSError):
    """The identity provider answered a token request with an error."""

    def __init__(self, error: str, error_description: str | None = None):
        self.error = error
        self.error_description = error_description
        super().__init__(error_description or error)
