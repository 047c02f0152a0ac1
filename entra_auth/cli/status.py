"""Status: show the configured provider and the stored login."""

from pathlib import Path

import typer

from entra_auth.auth.providers import InteractiveAuthProvider
from entra_auth.cache.context import AuthContext

from .shared import console, format_login_status, load_settings, logger, print_settings_summary


def status(
    settings_path: Path | None = typer.Option(None, "--settings", "-c", help="Settings YAML (default: ~/.entra-auth/settings.yaml)"),
) -> None:
    """Print the selected provider and, for interactive login, the stored login status."""
    log = logger.bind(command="status")
    with AuthContext() as context:
        settings = load_settings(context, settings_path)
        print_settings_summary(settings)
        provider = settings.current
        if isinstance(provider, InteractiveAuthProvider):
            login_status = provider.get_login_status()
            console.print(format_login_status(login_status))
            log.info("status.ok", provider_type=settings.provider_type, logged_in=login_status.is_logged_in)
        else:
            console.print("[dim]Non-interactive provider: credentials are obtained when a token is requested.[/dim]")
            log.info("status.ok", provider_type=settings.provider_type)
