"""Login: interactive browser login or a non-interactive grant, per the selected provider."""

import threading
from pathlib import Path

import typer

from entra_auth.auth.providers import InteractiveAuthProvider
from entra_auth.cache.context import AuthContext
from entra_auth.errors import ConfigError, LoginCanceledError
from entra_auth.storage import StorageType
from entra_auth.utils.logger import bind_context, clear_context

from .shared import (
    console,
    credentials_provider,
    format_login_status,
    load_settings,
    logger,
    print_credential,
    save_settings,
)


def login(
    settings_path: Path | None = typer.Option(None, "--settings", "-c", help="Settings YAML (default: ~/.entra-auth/settings.yaml)"),
    provider_type: str | None = typer.Option(None, "--provider", "-p", help="Override providerType"),
    storage: str | None = typer.Option(None, "--storage", help="Token cache storage for interactive login: MEMORY, FILE or SETTINGS"),
    file_path: Path | None = typer.Option(None, "--file", "-f", help="Token cache file (implies --storage FILE)"),
) -> None:
    """Log in with the selected provider and persist the settings."""
    bind_context(command="login")
    logger.info("login.start")
    try:
        with AuthContext() as context:
            settings = load_settings(context, settings_path, provider_type)
            bind_context(provider_type=settings.provider_type)
            provider = settings.current
            try:
                if isinstance(provider, InteractiveAuthProvider):
                    if file_path is not None:
                        provider.storage.file.file_path = str(file_path)
                        storage = storage or StorageType.FILE.value
                    if storage:
                        provider.storage.storage_type = StorageType.parse(storage)
                    if provider.storage.storage_type == StorageType.MEMORY:
                        console.print("[yellow]Memory storage: the login is lost when this command exits.[/yellow]")
                    console.print("[bold]Sign-in required[/bold]: complete the login in the browser window that opens.\n")
                    cancel_event = threading.Event()
                    try:
                        status = provider.perform_login(cancel_event)
                    except KeyboardInterrupt:
                        cancel_event.set()
                        raise LoginCanceledError() from None
                    console.print(format_login_status(status))
                else:
                    credential = provider.authenticate(credentials_provider())
                    print_credential(credential)
            except ConfigError as e:
                console.print(f"[red]Config error: {e}[/red]")
                logger.warning("login.config_error", error=str(e))
                raise typer.Exit(1) from e
            except LoginCanceledError as e:
                console.print("[yellow]Login canceled.[/yellow]")
                logger.info("login.canceled")
                raise typer.Exit(130) from e
            except OSError as e:
                console.print(f"[red]Login failed: {e}[/red]")
                logger.warning("login.failed", error=str(e))
                raise typer.Exit(1) from e
            save_settings(settings, settings_path)
        logger.info("login.ok")
    finally:
        clear_context()
