"""Logout: clear every stored token cache of the configured providers."""

from pathlib import Path

import typer

from entra_auth.auth.providers import InteractiveAuthProvider
from entra_auth.cache.context import AuthContext

from .shared import console, load_settings, logger, save_settings


def logout(
    settings_path: Path | None = typer.Option(None, "--settings", "-c", help="Settings YAML (default: ~/.entra-auth/settings.yaml)"),
) -> None:
    """Delete token caches from memory, file and settings storage."""
    log = logger.bind(command="logout")
    with AuthContext() as context:
        settings = load_settings(context, settings_path)
        for provider in settings.providers.values():
            if isinstance(provider, InteractiveAuthProvider):
                provider.logout()
        settings.reset()
        save_settings(settings, settings_path)
    console.print("[green]Logged out.[/green]")
    log.info("logout.ok")
