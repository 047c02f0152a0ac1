"""CLI commands: one module per command (login, status, token, logout, validate-config)."""

from typer import Typer

from entra_auth.cli import login, logout, status, token, validate_config as validate_config_module

app = Typer(help="Microsoft Entra ID authentication")


def register_commands() -> None:
    """Register all CLI commands on the global app."""
    app.command()(login.login)
    app.command()(status.status)
    app.command()(token.token)
    app.command()(logout.logout)
    app.command(name="validate-config")(validate_config_module.validate_config)


register_commands()
