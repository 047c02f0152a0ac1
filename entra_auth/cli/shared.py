"""Shared CLI helpers: console, logger, settings loading, status formatting."""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from entra_auth.auth.providers import AuthenticatorSettings, InteractiveAuthProvider
from entra_auth.cache.context import AuthContext
from entra_auth.errors import ConfigError
from entra_auth.models.credentials import Credential
from entra_auth.models.external import EnvCredentialsProvider
from entra_auth.models.login_status import LoginStatus
from entra_auth.utils.logger import get_logger

console = Console()
logger = get_logger("entra_auth.cli")


def load_settings(context: AuthContext, path: Path | None, provider_type: str | None = None) -> AuthenticatorSettings:
    """Load the YAML settings or exit with a readable config error."""
    try:
        settings = AuthenticatorSettings.load(context, path)
        if provider_type:
            settings.select(provider_type)
    except ConfigError as e:
        console.print(f"[red]Config error: {e}[/red]")
        logger.error("settings.load_failed", error=str(e))
        raise typer.Exit(1) from e
    return settings


def save_settings(settings: AuthenticatorSettings, path: Path | None) -> None:
    saved = settings.save(path)
    console.print(f"[dim]Settings saved to {saved}[/dim]")


def credentials_provider() -> EnvCredentialsProvider:
    """External credentials are read from <NAME>_LOGIN / <NAME>_SECRET environment variables."""
    return EnvCredentialsProvider()


def format_login_status(status: LoginStatus) -> str:
    if not status.is_logged_in:
        return "[yellow]Not logged in[/yellow]"
    expiry = status.access_token_expiry.isoformat() if status.access_token_expiry else "unknown"
    return f"[green]Logged in as {status.username}[/green] (access token valid until {expiry})"


def print_settings_summary(settings: AuthenticatorSettings) -> None:
    provider = settings.current
    table = Table(title="Authentication settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Provider", f"{provider.provider_type} ({provider.title})")
    if isinstance(provider, InteractiveAuthProvider):
        table.add_row("Storage", provider.storage.storage_type.value)
        if provider.storage.file.file_path:
            table.add_row("Token cache file", provider.storage.file.file_path)
    endpoint = getattr(provider, "endpoint", None)
    if endpoint:
        table.add_row("Endpoint", endpoint)
    scopes = getattr(provider, "scopes", None)
    if scopes:
        table.add_row("Scopes", "\n".join(scopes))
    console.print(table)


def print_credential(credential: Credential) -> None:
    table = Table(title="Credential")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    for key, value in credential.describe().items():
        if isinstance(value, list):
            value = "\n".join(value)
        table.add_row(key, "" if value is None else str(value))
    console.print(table)
