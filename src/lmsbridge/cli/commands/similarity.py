"""
lmsbridge similarity - Compare two vectors.

Usage:
    lmsbridge similarity "1,2,3" "1,2,4"
"""

from typing import Annotated

import typer

from lmsbridge.cli.output import print_error
from lmsbridge.providers import vector_similarity


def _parse_vector(text: str) -> list[float]:
    try:
        return [float(part) for part in text.replace(";", ",").split(",") if part.strip()]
    except ValueError as e:
        raise typer.BadParameter(f"Not a comma-separated list of numbers: {text}") from e


def similarity(
    first: Annotated[str, typer.Argument(help="First vector, e.g. '1,2,3'.")],
    second: Annotated[str, typer.Argument(help="Second vector, e.g. '1,2,4'.")],
) -> None:
    """Print the normalized cosine similarity (0..1) of two vectors."""
    try:
        score = vector_similarity(_parse_vector(first), _parse_vector(second))
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)

    typer.echo(f"{score:.6f}")
