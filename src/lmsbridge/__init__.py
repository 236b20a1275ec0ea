"""
lmsbridge - LM Studio tool-calling bridge

Exposes allow-listed host commands to a model served by LM Studio,
resolves the model's tool calls and feeds the results back into the
conversation.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("lmsbridge")
except PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = [
    "__version__",
]
