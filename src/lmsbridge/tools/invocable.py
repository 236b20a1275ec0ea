"""Execution handles attached to function descriptors."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from lmsbridge.tools.registry import CommandMetadata


class Invocable(ABC):
    """Something a resolved tool call can be executed against.

    Handles are bound when schemas are built, so execution never has to
    look a command up by name again.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of the underlying command or function."""
        pass

    @abstractmethod
    def invoke(self, arguments: dict[str, Any]) -> Any:
        """Run with the given keyword arguments and return the raw value."""
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name}>"


class BoundCommand(Invocable):
    """Handle bound to a command from the host registry."""

    def __init__(self, metadata: "CommandMetadata"):
        self.metadata = metadata

    @property
    def name(self) -> str:
        return self.metadata.qualified_name

    def invoke(self, arguments: dict[str, Any]) -> Any:
        return self.metadata.function(**arguments)


class InlineFunction(Invocable):
    """Handle wrapping a plain callable supplied by the caller."""

    def __init__(self, function: Callable[..., Any], name: str | None = None):
        self.function = function
        self._name = name or getattr(function, "__name__", "function")

    @property
    def name(self) -> str:
        return self._name

    def invoke(self, arguments: dict[str, Any]) -> Any:
        return self.function(**arguments)
