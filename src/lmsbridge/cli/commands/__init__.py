"""CLI command modules."""

from lmsbridge.cli.commands import embed, models, query, similarity, tools

__all__ = ["embed", "models", "query", "similarity", "tools"]
