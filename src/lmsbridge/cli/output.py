"""
Output formatting utilities for the CLI.

Provides consistent output formatting and logging across all CLI commands.
"""

import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

# Global console instance
console = Console()

# Log records go to stderr so JSON output on stdout stays parseable
error_console = Console(stderr=True)


def setup_logging(level: str = "WARNING", verbose: bool = False) -> None:
    """Route library logging through Rich.

    Args:
        level: Configured log level name
        verbose: Force DEBUG regardless of ``level``
    """
    log_level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=error_console, rich_tracebacks=True, show_path=verbose)],
        force=True,
    )
    # LiteLLM and httpx are chatty at INFO
    for name in ("LiteLLM", "httpx", "httpcore"):
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]✗[/red] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]i[/blue] {message}")


def print_json(data: Any) -> None:
    console.print_json(data=data)


def print_table(
    headers: list[str],
    rows: list[list[Any]],
    title: str | None = None,
) -> None:
    """Print a table."""
    table = Table(title=title)

    for header in headers:
        table.add_column(header)

    for row in rows:
        table.add_row(*[str(cell) for cell in row])

    console.print(table)
