"""Token: obtain an access token from the stored login or configured secret."""

from datetime import datetime, timezone
from pathlib import Path

import typer

from entra_auth.cache.context import AuthContext
from entra_auth.errors import ConfigError, LoginCanceledError
from entra_auth.models.credentials import OAuth2Credential
from entra_auth.utils.logger import bind_context, clear_context, mask_secret

from .shared import console, credentials_provider, load_settings, logger, save_settings


def token(
    settings_path: Path | None = typer.Option(None, "--settings", "-c", help="Settings YAML (default: ~/.entra-auth/settings.yaml)"),
    scopes: list[str] | None = typer.Option(None, "--scope", "-s", help="Scope to request (repeatable); default: configured scopes"),
    show: bool = typer.Option(False, "--show", help="Print the full access token instead of a masked prefix"),
) -> None:
    """Print an access token for the configured (or given) scopes."""
    bind_context(command="token")
    try:
        with AuthContext() as context:
            settings = load_settings(context, settings_path)
            bind_context(provider_type=settings.provider_type)
            try:
                credential = settings.authenticate(credentials_provider())
                if not isinstance(credential, OAuth2Credential):
                    console.print(f"[red]Provider {settings.provider_type!r} does not issue access tokens.[/red]")
                    raise typer.Exit(1)
                access_token = credential.get_access_token(set(scopes) if scopes else None)
            except ConfigError as e:
                console.print(f"[red]Config error: {e}[/red]")
                logger.warning("token.config_error", error=str(e))
                raise typer.Exit(1) from e
            except LoginCanceledError as e:
                console.print("[yellow]Canceled.[/yellow]")
                raise typer.Exit(130) from e
            except OSError as e:
                console.print(f"[red]{e}[/red]")
                logger.warning("token.failed", error=str(e))
                raise typer.Exit(1) from e
            expires = datetime.fromtimestamp(access_token.expires_on, tz=timezone.utc).isoformat()
            console.print(access_token.token if show else mask_secret(access_token.token, visible=12), soft_wrap=True)
            console.print(f"[dim]Expires: {expires}[/dim]")
            # A silent refresh may have rotated the cache held by the settings storage
            save_settings(settings, settings_path)
        logger.info("token.ok")
    finally:
        clear_context()
