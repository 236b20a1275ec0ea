"""
lmsbridge embed - Compute embeddings for texts.

Usage:
    lmsbridge embed "first text" "second text"
    lmsbridge embed "text" --json
"""

from typing import Annotated

import typer
from rich.console import Console

from lmsbridge.cli.output import print_json, print_table
from lmsbridge.providers import ProviderError, get_client

console = Console()


def embed(
    texts: Annotated[
        list[str],
        typer.Argument(
            help="Texts to embed.",
        ),
    ],
    model: Annotated[
        str | None,
        typer.Option(
            "--model",
            "-m",
            help="Embedding model (defaults to server.embedding_model).",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output the full vectors as JSON.",
        ),
    ] = False,
) -> None:
    """Compute an embedding vector for each text."""
    try:
        results = get_client().embed(texts, model=model)
    except ProviderError as e:
        console.print(f"[red]Embedding failed:[/red] {e}")
        raise typer.Exit(1)

    if json_output:
        print_json(
            [{"index": r.index, "text": r.text, "embedding": r.embedding} for r in results]
        )
        return

    print_table(
        ["#", "Text", "Dimensions", "Head"],
        [
            [
                r.index,
                r.text if len(r.text) <= 40 else r.text[:37] + "...",
                len(r.embedding),
                ", ".join(f"{v:.4f}" for v in r.embedding[:3]),
            ]
            for r in results
        ],
        title="Embeddings",
    )
