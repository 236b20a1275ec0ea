"""Registry of host commands that may be exposed to the LLM."""

import enum
import importlib
import inspect
import logging
import re
import typing
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from lmsbridge.tools.models import qualify_name, split_qualified_name

logger = logging.getLogger(__name__)

_ARGS_HEADER = re.compile(r"^\s*(Args|Arguments|Parameters):\s*$")
_ARG_LINE = re.compile(r"^(\s*)(\*{0,2}\w[\w-]*)\s*(?:\([^)]*\))?\s*:\s*(.*)$")


class CommandNotFoundError(LookupError):
    """Raised when a command name cannot be resolved."""

    def __init__(self, name: str):
        super().__init__(f"Command not found: {name}")
        self.name = name


@dataclass
class ParameterInfo:
    """Introspected parameter of a host command."""

    name: str
    native_type: str
    mandatory: bool
    enum_values: Optional[list[str]] = None
    default: Any = None


@dataclass
class CommandMetadata:
    """Introspected host command."""

    name: str
    function: Callable[..., Any]
    module: Optional[str] = None
    description: Optional[str] = None
    parameters: list[ParameterInfo] = field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        return qualify_name(self.name, self.module)

    def get_help(self) -> str | None:
        """Summary paragraph of the command's docstring."""
        doc = inspect.getdoc(self.function)
        if not doc:
            return None
        summary = doc.split("\n\n", 1)[0].strip()
        return " ".join(summary.split()) or None

    def get_parameter_help(self, parameter_name: str) -> str | None:
        """Description of one parameter from the docstring ``Args:`` section."""
        doc = inspect.getdoc(self.function)
        if not doc:
            return None
        return parse_docstring_args(doc).get(parameter_name)


def parse_docstring_args(doc: str) -> dict[str, str]:
    """Extract parameter descriptions from a Google-style ``Args:`` section.

    Args:
        doc: Cleaned docstring (see ``inspect.getdoc``).

    Returns:
        Mapping of parameter name to its (joined) description.
    """
    descriptions: dict[str, str] = {}
    in_args = False
    current: str | None = None
    indent: int | None = None

    for line in doc.splitlines():
        if _ARGS_HEADER.match(line):
            in_args = True
            current = None
            indent = None
            continue
        if not in_args:
            continue
        if not line.strip():
            current = None
            continue

        line_indent = len(line) - len(line.lstrip())
        if line_indent == 0:
            # Next section
            in_args = False
            continue

        match = _ARG_LINE.match(line)
        if match and (indent is None or len(match.group(1)) == indent):
            indent = len(match.group(1))
            current = match.group(2).lstrip("*")
            descriptions[current] = match.group(3).strip()
        elif current is not None:
            descriptions[current] = f"{descriptions[current]} {line.strip()}".strip()

    return descriptions


def _unwrap_optional(annotation: Any) -> Any:
    origin = typing.get_origin(annotation)
    if origin is typing.Union or type(annotation).__name__ == "UnionType":
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def _native_type_name(annotation: Any, default: Any) -> str:
    if annotation is inspect.Parameter.empty:
        if default is inspect.Parameter.empty or default is None:
            return "object"
        return type(default).__name__
    if isinstance(annotation, str):
        return annotation
    annotation = _unwrap_optional(annotation)
    if annotation is Any:
        return "Any"
    origin = typing.get_origin(annotation)
    if origin is typing.Literal:
        return "str"
    if origin is not None:
        annotation = origin
    return getattr(annotation, "__name__", "object")


def _enum_values(annotation: Any) -> list[str] | None:
    annotation = _unwrap_optional(annotation)
    if typing.get_origin(annotation) is typing.Literal:
        return [str(value) for value in typing.get_args(annotation)]
    if inspect.isclass(annotation) and issubclass(annotation, enum.Enum):
        return [str(member.value) for member in annotation]
    return None


def introspect_parameters(function: Callable[..., Any]) -> list[ParameterInfo]:
    """Describe the keyword-addressable parameters of a callable.

    ``*args`` and ``**kwargs`` are never exposed.
    """
    try:
        hints = typing.get_type_hints(function)
    except Exception:
        hints = {}

    parameters = []
    for param in inspect.signature(function).parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD, param.POSITIONAL_ONLY):
            continue
        annotation = hints.get(param.name, param.annotation)
        parameters.append(
            ParameterInfo(
                name=param.name,
                native_type=_native_type_name(annotation, param.default),
                mandatory=param.default is inspect.Parameter.empty,
                enum_values=_enum_values(annotation),
                default=None if param.default is inspect.Parameter.empty else param.default,
            )
        )
    return parameters


def load_target(target: str) -> Callable[..., Any]:
    """Import a callable from ``"package.module:function"``.

    Raises:
        CommandNotFoundError: If the module or attribute does not exist.
    """
    module_name, sep, attribute = target.partition(":")
    if not sep or not module_name or not attribute:
        raise CommandNotFoundError(target)
    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise CommandNotFoundError(target) from e
    for part in attribute.split("."):
        obj = getattr(obj, part, None)
        if obj is None:
            raise CommandNotFoundError(target)
    if not callable(obj):
        raise CommandNotFoundError(target)
    return obj


class CommandRegistry:
    """Registry for host commands.

    Commands are plain callables registered under a name (and optional
    module qualifier). Lookup accepts both ``Name`` and ``Module\\Name``
    and is case-insensitive.
    """

    def __init__(self):
        """Initialize the command registry."""
        self._commands: dict[str, CommandMetadata] = {}

    def register(
        self,
        function: Callable[..., Any],
        name: str | None = None,
        module: str | None = None,
        description: str | None = None,
    ) -> CommandMetadata:
        """Register a callable as a host command.

        Args:
            function: The callable to expose
            name: Command name (defaults to the function name). May be
                module-qualified (``Module\\Name``).
            module: Module qualifier (overrides one embedded in ``name``)
            description: Explicit description (defaults to the docstring)

        Returns:
            The introspected CommandMetadata

        Raises:
            ValueError: If a command with the same qualified name exists
        """
        embedded_module, bare = split_qualified_name(name or function.__name__)
        metadata = CommandMetadata(
            name=bare,
            function=function,
            module=module or embedded_module,
            description=description,
            parameters=introspect_parameters(function),
        )

        key = metadata.qualified_name.casefold()
        if key in self._commands:
            raise ValueError(f"Command '{metadata.qualified_name}' is already registered")

        self._commands[key] = metadata
        logger.info(f"Registered command: {metadata.qualified_name}")
        return metadata

    def register_target(
        self, name: str, target: str, module: str | None = None
    ) -> CommandMetadata:
        """Import ``target`` and register it under ``name``."""
        return self.register(load_target(target), name=name, module=module)

    def unregister(self, name: str) -> bool:
        """Unregister a command.

        Returns:
            True if the command was unregistered, False if not found
        """
        metadata = self.get(name)
        if metadata is None:
            return False
        del self._commands[metadata.qualified_name.casefold()]
        logger.info(f"Unregistered command: {metadata.qualified_name}")
        return True

    def get(self, name: str) -> Optional[CommandMetadata]:
        """Get a command by bare or module-qualified name."""
        folded = name.casefold()
        if folded in self._commands:
            return self._commands[folded]

        module, bare = split_qualified_name(folded)
        for metadata in self._commands.values():
            if metadata.name.casefold() != bare:
                continue
            if module is None or (metadata.module or "").casefold() == module:
                return metadata
        return None

    def resolve(self, name: str) -> CommandMetadata:
        """Like :meth:`get` but raises when the command is unknown.

        Raises:
            CommandNotFoundError: If no command matches
        """
        metadata = self.get(name)
        if metadata is None:
            raise CommandNotFoundError(name)
        return metadata

    def list_commands(self) -> list[CommandMetadata]:
        return list(self._commands.values())

    def list_command_names(self) -> list[str]:
        return [metadata.qualified_name for metadata in self._commands.values()]

    def clear(self) -> None:
        """Clear all registered commands."""
        self._commands.clear()
        logger.info("Cleared all commands from registry")

    def __len__(self) -> int:
        return len(self._commands)

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def __repr__(self) -> str:
        names = ", ".join(self.list_command_names())
        return f"<CommandRegistry commands=[{names}]>"


# Global registry instance
_command_registry: Optional[CommandRegistry] = None


def get_command_registry() -> CommandRegistry:
    """Get the global command registry instance."""
    global _command_registry
    if _command_registry is None:
        _command_registry = CommandRegistry()
    return _command_registry


def reset_command_registry() -> None:
    """Reset the global command registry instance.

    Useful for testing.
    """
    global _command_registry
    _command_registry = None
