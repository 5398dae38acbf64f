"""CLI application for the education gateway.

Provides commands for:
- run: Start the gateway
- validate: Validate configuration
- init-config: Generate an example configuration
- hash-password: Hash a password for the SuperAdmin config section
- init-db: Create the credential store tables
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.table import Table

from edu_gateway import __version__
from edu_gateway.adapters.persistence.repository import CredentialStore
from edu_gateway.config.loader import (
    ConfigurationError,
    generate_example_config,
    load_config,
)
from edu_gateway.domain.errors import StoreUnavailable, ValidationError
from edu_gateway.domain.rules.validation import validate_password
from edu_gateway.main import run_gateway
from edu_gateway.security.password import get_password_service
from edu_gateway.security.password import hash_password as hash_with_default_service

if TYPE_CHECKING:
    from edu_gateway.config.schema import ServiceConfig


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"edu-gateway {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="edu-gateway",
    help="Education Gateway - authentication and principal management",
    add_completion=False,
)


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Education Gateway CLI."""
    pass


console = Console()


@app.command()
def run(
    config: Annotated[
        Path,
        typer.Argument(
            help="Path to configuration YAML file",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    override: Annotated[
        Path | None,
        typer.Option(
            "--override",
            "-o",
            help="Path to override configuration file",
            exists=True,
        ),
    ] = None,
    log_level: Annotated[
        str,
        typer.Option(
            "--log-level",
            "-l",
            help="Log level (DEBUG, INFO, WARNING, ERROR)",
        ),
    ] = "INFO",
    log_format: Annotated[
        str,
        typer.Option(
            "--log-format",
            help="Log format (console, json)",
        ),
    ] = "console",
) -> None:
    """Start the education gateway.

    Loads configuration, opens the credential store, and serves the HTTP API.
    """
    # Set log environment variables before importing modules
    os.environ["EDU_LOG_LEVEL"] = log_level
    os.environ["EDU_LOG_FORMAT"] = log_format

    console.print("[bold green]Starting Education Gateway[/bold green]")
    console.print(f"Configuration: {config}")

    try:
        asyncio.run(run_gateway(config, override_path=override))
    except KeyboardInterrupt:
        console.print("\n[yellow]Shutdown requested[/yellow]")
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e


@app.command()
def validate(
    config: Annotated[
        Path,
        typer.Argument(
            help="Path to configuration YAML file",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show detailed validation information",
        ),
    ] = False,
) -> None:
    """Validate a configuration file.

    Checks the configuration for errors without starting the gateway.
    """
    console.print(f"[bold]Validating:[/bold] {config}")

    try:
        service_config = load_config(config)

        console.print("[bold green]Configuration valid![/bold green]")

        if verbose:
            _print_config_summary(service_config)

    except ConfigurationError as e:
        console.print("[bold red]Validation failed:[/bold red]")
        console.print(str(e))
        raise typer.Exit(code=1) from e


def _print_config_summary(config: ServiceConfig) -> None:
    """Print a summary of the configuration."""
    table = Table(title="Configuration Summary")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="magenta")

    table.add_row("Service", config.service.name)
    table.add_row("Environment", config.service.environment.value)
    table.add_row("HTTP", f"{config.http.host}:{config.http.port}")
    table.add_row("Database", config.database.url.split("@")[-1])
    table.add_row("JWT algorithm", config.auth.jwt_algorithm)
    table.add_row(
        "JWT secret",
        "configured" if config.auth.jwt_secret else "[yellow]ephemeral[/yellow]",
    )
    table.add_row("Access token lifetime", f"{config.auth.access_expiry_minutes} min")
    table.add_row("Refresh token lifetime", f"{config.auth.refresh_expiry_days} days")
    table.add_row("SuperAdmin login", config.superadmin.login)
    table.add_row("SuperAdmin id", config.superadmin.id)

    console.print(table)

    if get_password_service().needs_rehash(config.superadmin.password_hash):
        console.print("[yellow]Warning:[/yellow] SuperAdmin hash uses outdated Argon2 parameters")
        console.print("Regenerate it with: [cyan]edu-gateway hash-password[/cyan]")


@app.command("init-config")
def init_config(
    output: Annotated[
        Path,
        typer.Option(
            "--output",
            "-o",
            help="Output file path",
        ),
    ] = Path("edu-gateway.yaml"),
    with_password: Annotated[
        bool,
        typer.Option(
            "--with-password",
            help="Prompt for the SuperAdmin password and embed its hash",
        ),
    ] = False,
) -> None:
    """Generate an example configuration file.

    Creates a sample configuration that can be customized for your setup.
    """
    if with_password:
        example_yaml = generate_example_config(superadmin_password_hash=_prompt_hash())
    else:
        example_yaml = generate_example_config()
    output.write_text(example_yaml)

    console.print(f"[bold green]Example configuration written:[/bold green] {output}")
    console.print("\nEdit this file to match your setup, then run:")
    console.print(f"  [cyan]edu-gateway validate {output}[/cyan]")
    console.print(f"  [cyan]edu-gateway init-db {output}[/cyan]")
    console.print(f"  [cyan]edu-gateway run {output}[/cyan]")


def _prompt_hash() -> str:
    password = typer.prompt("Password", hide_input=True, confirmation_prompt=True)
    try:
        validate_password(password)
    except ValidationError as e:
        console.print(f"[bold red]Rejected:[/bold red] {e.message}")
        raise typer.Exit(code=1) from e
    return hash_with_default_service(password)


@app.command("hash-password")
def hash_password() -> None:
    """Hash a password with Argon2id.

    Paste the output into ``superadmin.password_hash`` (or the
    EDU_SUPERADMIN_PASSWORD_HASH environment variable).
    """
    typer.echo(_prompt_hash())


@app.command("init-db")
def init_db(
    config: Annotated[
        Path,
        typer.Argument(
            help="Path to configuration YAML file",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
) -> None:
    """Create the credential store tables.

    Safe to run repeatedly; existing tables are left untouched.
    """
    try:
        service_config = load_config(config)
    except ConfigurationError as e:
        console.print("[bold red]Invalid configuration:[/bold red]")
        console.print(str(e))
        raise typer.Exit(code=1) from e

    async def initialize() -> None:
        store = CredentialStore.from_config(service_config.database)
        try:
            await store.initialize()
        finally:
            await store.close()

    try:
        asyncio.run(initialize())
    except StoreUnavailable as e:
        console.print(f"[bold red]Database error:[/bold red] {e.message}")
        raise typer.Exit(code=1) from e

    console.print("[bold green]Credential store initialized[/bold green]")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"Education Gateway version [bold]{__version__}[/bold]")
