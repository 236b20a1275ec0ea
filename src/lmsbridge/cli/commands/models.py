"""
lmsbridge models - List the models the server reports.

Usage:
    lmsbridge models
"""

from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from lmsbridge.cli.output import print_json
from lmsbridge.config import get_config
from lmsbridge.providers import ProviderError, get_client

console = Console()


def list_models(
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """List the models available on the LM Studio server."""
    try:
        models = get_client().list_models()
    except ProviderError as e:
        console.print(f"[red]Cannot list models:[/red] {e}")
        console.print(f"[dim]Is LM Studio running at {get_config().server.base_url}?[/dim]")
        raise typer.Exit(1)

    if json_output:
        print_json([{"id": m.id, "object": m.object, "owned_by": m.owned_by} for m in models])
        return

    if not models:
        console.print("[yellow]The server reports no models.[/yellow]")
        return

    table = Table(title="Available Models")
    table.add_column("ID", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Owner")

    for info in models:
        table.add_row(info.id, info.object, info.owned_by or "-")

    console.print(table)
    console.print(f"\n[dim]Total: {len(models)} model(s)[/dim]")
