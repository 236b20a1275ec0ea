"""
Main Typer application for lmsbridge CLI.

This module defines the root CLI application and registers all commands.
"""

import typer

from typing import Annotated

from lmsbridge import __version__
from lmsbridge.cli.commands import embed, models, query, similarity, tools
from lmsbridge.cli.output import print_info

# Create the main Typer app
app = typer.Typer(
    name="lmsbridge",
    help="Let a local LM Studio model call host commands.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=True,
    pretty_exceptions_show_locals=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        print_info(f"lmsbridge version [green]{__version__}[/green]")
        raise typer.Exit()


# noinspection PyUnusedLocal
@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    [bold blue]lmsbridge[/bold blue] - LM Studio tool-calling bridge

    Sends questions to a model served by LM Studio and lets it call
    allow-listed host commands, asking before anything runs.
    """


# Register commands
app.command("query")(query.query)
app.command("embed")(embed.embed)
app.command("models")(models.list_models)
app.command("similarity")(similarity.similarity)
app.command("tools")(tools.show_tools)


if __name__ == "__main__":
    app()
