"""
lmsbridge tools - Show the functions exposed to the model.

Usage:
    lmsbridge tools
    lmsbridge tools --json
"""

import json
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from lmsbridge.config import Config, ConfigurationError, get_config
from lmsbridge.tools.builtin import register_builtin_commands
from lmsbridge.tools.models import FunctionDescriptor, HostCommand
from lmsbridge.tools.registry import CommandNotFoundError, CommandRegistry
from lmsbridge.tools.resolver import ToolCallResolver
from lmsbridge.tools.schema import FunctionSchemaBuilder, normalize_names

console = Console()


def load_host_commands(config: Config, registry: CommandRegistry) -> list[HostCommand]:
    """Register built-in and configured commands, returning their exposure.

    Configured entries with a ``target`` are imported and registered first;
    entries without one must name a command that is already registered.

    Raises:
        ConfigurationError: If a configured target cannot be imported
    """
    host_commands: list[HostCommand] = []
    if config.tools.builtin:
        host_commands.extend(register_builtin_commands(registry))

    for entry in config.tools.commands:
        if entry.target:
            try:
                registry.register_target(entry.name, entry.target)
            except (CommandNotFoundError, ValueError) as e:
                raise ConfigurationError(f"Cannot load command '{entry.name}': {e}") from e
        host_commands.append(entry.to_host_command())

    return host_commands


def build_functions(config: Config, registry: CommandRegistry) -> tuple[list[HostCommand], list[FunctionDescriptor]]:
    """Host commands and the function schemas built from them."""
    host_commands = load_host_commands(config, registry)
    builder = FunctionSchemaBuilder(registry, config.tools.no_confirmation)
    return host_commands, builder.build(host_commands)


def confirmation_required(
    function: FunctionDescriptor, host_commands: list[HostCommand], no_confirmation: list[str]
) -> bool:
    """Whether calling ``function`` would prompt, as the executor decides it."""
    if not function.user_confirmation_required:
        return False
    commands = ToolCallResolver([function], host_commands).matching_commands(function)
    if not commands:
        return True
    command = commands[0]
    if command.name.casefold() in normalize_names(no_confirmation):
        return False
    return command.requires_confirmation


def show_tools(
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Print the tool definitions as sent to the model.",
        ),
    ] = False,
) -> None:
    """Show the functions that would be exposed to the model."""
    try:
        config = get_config()
        host_commands, functions = build_functions(config, CommandRegistry())
    except ConfigurationError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(1)

    if json_output:
        typer.echo(json.dumps([f.to_tool_definition() for f in functions], indent=2))
        return

    if not functions:
        console.print("[yellow]No functions exposed.[/yellow]")
        return

    table = Table(title="Exposed Functions")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Parameters", style="magenta")
    table.add_column("Confirm")
    table.add_column("Description")

    for function in functions:
        required = set(function.parameters.required)
        params = ", ".join(
            f"{name}*" if name in required else name for name in function.parameters.properties
        )
        desc = function.description
        desc = desc[:80] + "..." if len(desc) > 80 else desc
        confirm = confirmation_required(function, host_commands, config.tools.no_confirmation)
        table.add_row(
            function.qualified_name,
            params or "-",
            "yes" if confirm else "no",
            desc,
        )

    console.print(table)
    console.print(f"\n[dim]Total: {len(functions)} function(s), * = required[/dim]")
