"""Validate settings: load YAML, run the selected provider's validation, print summary table."""

from pathlib import Path

import typer

from entra_auth.cache.context import AuthContext
from entra_auth.errors import ConfigError

from .shared import console, load_settings, logger, print_settings_summary


def validate_config(
    settings_path: Path | None = typer.Option(None, "--settings", "-c", help="Settings YAML (default: ~/.entra-auth/settings.yaml)"),
) -> None:
    """Check that the selected provider's settings are complete."""
    log = logger.bind(command="validate-config")
    log.info("validate_config.start")
    with AuthContext() as context:
        settings = load_settings(context, settings_path)
        try:
            settings.validate()
        except ConfigError as e:
            console.print(f"[red]Config error: {e}[/red]")
            log.error("validate_config.fail", error=str(e))
            raise typer.Exit(1) from e
        print_settings_summary(settings)
    console.print(f"[green]Config valid. Provider: {settings.provider_type}.[/green]")
    log.info("validate_config.ok", provider_type=settings.provider_type)
