"""External credential references: named login/secret pairs supplied by the host."""

import os
from typing import Mapping, Optional, Protocol

from pydantic import BaseModel


class ExternalCredential(BaseModel):
    """A login/secret pair looked up by name."""

    login: str = ""
    secret: Optional[str] = None


class CredentialsProvider(Protocol):
    """Lookup of external credential references by name."""

    def get(self, name: str) -> ExternalCredential:
        """Return the named credential. Raises KeyError if unknown."""
        ...


class DictCredentialsProvider:
    """Credentials provider backed by an in-memory mapping."""

    def __init__(self, credentials: Mapping[str, ExternalCredential] | None = None):
        self._credentials = dict(credentials or {})

    def add(self, name: str, login: str, secret: str | None) -> None:
        self._credentials[name] = ExternalCredential(login=login, secret=secret)

    def get(self, name: str) -> ExternalCredential:
        if name not in self._credentials:
            raise KeyError(f"Unknown credentials: {name!r}. Available: {list(self._credentials)}")
        return self._credentials[name]


class EnvCredentialsProvider:
    """Credentials provider reading <NAME>_LOGIN and <NAME>_SECRET environment variables."""

    def __init__(self, environ: Mapping[str, str] | None = None):
        self._environ = environ if environ is not None else os.environ

    @staticmethod
    def _prefix(name: str) -> str:
        return name.strip().upper().replace("-", "_").replace(" ", "_")

    def get(self, name: str) -> ExternalCredential:
        prefix = self._prefix(name)
        login = self._environ.get(f"{prefix}_LOGIN")
        secret = self._environ.get(f"{prefix}_SECRET")
        if login is None and secret is None:
            raise KeyError(f"Unknown credentials: {name!r} (set {prefix}_LOGIN / {prefix}_SECRET)")
        return ExternalCredential(login=login or "", secret=secret)
