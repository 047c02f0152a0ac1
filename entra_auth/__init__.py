"""Microsoft Entra ID credential lifecycle: logins, token cache storage and silent refresh."""

__version__ = "0.1.0"
