"""Command line interface for n8nform."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from n8nform.config import get_settings
from n8nform.credentials.resource import CredentialConfig, CredentialResource
from n8nform.exceptions import ConfigurationError, N8nFormException
from n8nform.logging import setup_logging
from n8nform.provider import N8nProvider

app = typer.Typer(
    name="n8nform",
    help="n8nform - manage n8n credentials declaratively",
    add_completion=False,
)

console = Console()


def build_provider() -> N8nProvider:
    """Provider used by commands that talk to n8n."""
    return N8nProvider(version=get_settings().app_version)


def _resource(ctx: typer.Context) -> CredentialResource:
    options = ctx.obj or {}
    provider = build_provider()
    provider.configure(
        host=options.get("host"),
        api_key=options.get("api_key"),
        insecure=options.get("insecure"),
    )
    return provider.resource(CredentialResource.type_name)


def _fail(error: Exception) -> None:
    console.print(f"[red]Error: {escape(str(error))}[/red]")
    if isinstance(error, ConfigurationError):
        for field_error in error.field_errors:
            console.print(f"  • {escape(str(field_error))}")
    raise typer.Exit(code=1)


def _load_declarations(path: Path) -> List[Dict[str, Any]]:
    content = json.loads(path.read_text())
    return content if isinstance(content, list) else [content]


@app.callback()
def main_callback(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(None, "--host", help="n8n host URL (or N8N_HOST)"),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="n8n API key (or N8N_API_KEY)"),
    insecure: Optional[bool] = typer.Option(
        None, "--insecure/--secure", help="Skip TLS certificate verification"
    ),
    log_level: str = typer.Option("WARNING", "--log-level", "-l", help="Log level"),
):
    """Global options."""
    setup_logging(log_level, json_logs=get_settings().is_production)
    ctx.obj = {"host": host, "api_key": api_key, "insecure": insecure}


@app.command("version")
def version():
    """Show version information."""
    settings = get_settings()
    version_info = f"""
n8nform v{settings.app_version}
Declarative credential management for n8n

Environment: {settings.environment}
Python: {sys.version}
"""
    console.print(
        Panel(
            version_info.strip(),
            title="Version Information",
            border_style="green",
        )
    )


@app.command("validate")
def validate(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON declaration file"),
):
    """Validate credential declarations without contacting n8n."""
    try:
        declarations = _load_declarations(path)
    except ValueError as e:
        _fail(e)

    table = Table(title="Credential Declarations")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Fields", style="dim")

    failed = False
    for raw in declarations:
        try:
            config = CredentialConfig.model_validate(raw)
            shape = config.shape()
        except ValidationError as e:
            console.print(f"[red]Invalid declaration: {escape(str(e))}[/red]")
            failed = True
            continue
        except ConfigurationError as e:
            console.print(f"[red]{escape(config.name)}: {escape(str(e))}[/red]")
            failed = True
            continue
        table.add_row(config.name, shape.credential_type, ", ".join(shape.to_payload()))

    console.print(table)
    if failed:
        raise typer.Exit(code=1)


@app.command("list")
def list_credentials(ctx: typer.Context):
    """List credentials on the n8n instance."""
    try:
        resource = _resource(ctx)
        credentials = asyncio.run(resource.repository.list())
    except N8nFormException as e:
        _fail(e)

    table = Table(title="n8n Credentials")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Type")
    table.add_column("Nodes Access", style="dim")

    for credential in credentials:
        table.add_row(
            credential.id or "",
            credential.name,
            credential.type,
            ", ".join(credential.node_types),
        )

    console.print(table)


@app.command("show")
def show(ctx: typer.Context, credential_id: str = typer.Argument(..., help="Credential ID")):
    """Show one credential."""
    try:
        resource = _resource(ctx)
        credential = asyncio.run(resource.repository.fetch(credential_id))
    except N8nFormException as e:
        _fail(e)

    console.print_json(credential.model_dump_json(by_alias=True, exclude={"data"}))


@app.command("import")
def import_credential(
    ctx: typer.Context, credential_id: str = typer.Argument(..., help="Credential ID")
):
    """Print the state an existing credential would be imported with."""
    try:
        resource = _resource(ctx)
        state = asyncio.run(resource.import_state(credential_id))
    except N8nFormException as e:
        _fail(e)

    console.print_json(state.model_dump_json())


@app.command("delete")
def delete(
    ctx: typer.Context,
    credential_id: str = typer.Argument(..., help="Credential ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete a credential."""
    if not yes:
        typer.confirm(f"Delete credential {credential_id}?", abort=True)

    try:
        resource = _resource(ctx)
        asyncio.run(resource.repository.delete(credential_id))
    except N8nFormException as e:
        _fail(e)

    console.print(f"[green]Deleted credential {credential_id}[/green]")


def main():
    """Main CLI entry point."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(0)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
