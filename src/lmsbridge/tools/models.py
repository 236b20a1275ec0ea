"""Data models for the tool-calling bridge."""

import fnmatch
import json
from typing import TYPE_CHECKING, Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from lmsbridge.tools.invocable import Invocable

QUALIFIER_SEPARATOR = "\\"

OutputType = Literal["string", "application/json"]


class ToolArgumentsError(ValueError):
    """Raised when a tool call carries argument JSON that cannot be parsed."""

    def __init__(self, message: str, tool_name: str | None = None):
        super().__init__(message)
        self.tool_name = tool_name


def split_qualified_name(name: str) -> tuple[str | None, str]:
    """Split ``Module\\Name`` into ``(module, name)``.

    Unqualified names return ``(None, name)``.
    """
    module, sep, bare = name.rpartition(QUALIFIER_SEPARATOR)
    if not sep:
        return None, name
    return module or None, bare


def qualify_name(name: str, module: str | None) -> str:
    """Join a module and a bare name with the qualifier separator."""
    if not module:
        return name
    return f"{module}{QUALIFIER_SEPARATOR}{name}"


class AllowedParam(BaseModel):
    """An allow-list entry: a parameter name pattern with optional type override."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: Optional[str] = None  # Overrides the inferred schema type

    @classmethod
    def parse(cls, spec: str) -> "AllowedParam":
        """Parse ``"name"`` or ``"name=type"``."""
        name, sep, type_override = spec.partition("=")
        return cls(
            name=name.strip(),
            type=type_override.strip() or None if sep else None,
        )

    def matches(self, parameter_name: str) -> bool:
        """Case-insensitive, wildcard-capable match against a parameter name."""
        return fnmatch.fnmatchcase(parameter_name.casefold(), self.name.casefold())

    def __str__(self) -> str:
        return f"{self.name}={self.type}" if self.type else self.name


class HostCommand(BaseModel):
    """A host capability that may be exposed to the LLM as a tool."""

    model_config = ConfigDict(frozen=True)

    name: str
    allowed_params: tuple[AllowedParam, ...] = ()
    forced_params: dict[str, Any] = Field(default_factory=dict)
    requires_confirmation: bool = True
    output_as_text: bool = False
    json_depth: int = Field(default=3, ge=1, le=100)
    description: Optional[str] = None  # Overrides the command's own description

    @field_validator("allowed_params", mode="before")
    @classmethod
    def _parse_allowed_params(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            value = [value]
        return tuple(
            AllowedParam.parse(item) if isinstance(item, str) else item for item in value
        )

    @property
    def module(self) -> str | None:
        """Module qualifier of the command name, if any."""
        return split_qualified_name(self.name)[0]

    @property
    def bare_name(self) -> str:
        """Command name without module qualifier."""
        return split_qualified_name(self.name)[1]

    def find_allowed(self, parameter_name: str) -> AllowedParam | None:
        """Return the first allow-list entry matching a parameter name."""
        for allowed in self.allowed_params:
            if allowed.matches(parameter_name):
                return allowed
        return None

    def permits(self, argument_name: str) -> bool:
        """Check whether an argument may be passed to this command.

        An argument is permitted when it is allow-listed or forced.
        """
        if self.find_allowed(argument_name) is not None:
            return True
        folded = argument_name.casefold()
        return any(name.casefold() == folded for name in self.forced_params)

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.allowed_params)
        return f"{self.name}({params})"


class PropertySchema(BaseModel):
    """JSON-schema description of one function parameter."""

    type: str
    description: Optional[str] = None
    enum: Optional[list[str]] = None


class FunctionParameters(BaseModel):
    """JSON-schema object describing a function's parameters."""

    type: Literal["object"] = "object"
    properties: dict[str, PropertySchema] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)


class FunctionDescriptor(BaseModel):
    """LLM-facing function schema with an attached execution handle."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    module: Optional[str] = None
    description: str = "No description available."
    parameters: FunctionParameters = Field(default_factory=FunctionParameters)
    user_confirmation_required: bool = True
    callback: Optional["Invocable"] = Field(default=None, exclude=True, repr=False)

    @property
    def qualified_name(self) -> str:
        """Module-qualified name, or the bare name when no module is known."""
        return qualify_name(self.name, self.module)

    def to_tool_definition(self) -> dict[str, Any]:
        """Serialize to the OpenAI-compatible ``tools`` entry (callback stripped)."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters.model_dump(exclude_none=True),
            },
        }


class ToolCall(BaseModel):
    """Represents a tool call issued by the LLM."""

    id: str
    name: str  # Possibly module-qualified
    arguments: str = "{}"  # Raw JSON argument blob

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ToolCall":
        """Build from an OpenAI-style ``tool_calls`` entry."""
        function = data.get("function") or {}
        arguments = function.get("arguments")
        if arguments is None or arguments == "":
            arguments = "{}"
        elif not isinstance(arguments, str):
            arguments = json.dumps(arguments)
        return cls(id=data.get("id") or "", name=function.get("name") or "", arguments=arguments)

    def parse_arguments(self) -> dict[str, Any]:
        """Parse the argument JSON.

        Raises:
            ToolArgumentsError: If the blob is not a JSON object.
        """
        try:
            parsed = json.loads(self.arguments)
        except json.JSONDecodeError as e:
            raise ToolArgumentsError(
                f"Invalid JSON arguments for tool '{self.name}': {e}", tool_name=self.name
            ) from e
        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise ToolArgumentsError(
                f"Arguments for tool '{self.name}' must be a JSON object", tool_name=self.name
            )
        return parsed

    def __str__(self) -> str:
        return f"{self.name}({self.arguments})"


class ToolCallError(BaseModel):
    """Structured error payload for a callback that threw."""

    model_config = ConfigDict(populate_by_name=True)

    error: str
    exception_thrown: bool = Field(default=True, alias="exceptionThrown")
    exception_class: Optional[str] = Field(default=None, alias="exceptionClass")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class ToolCallInvocationResult(BaseModel):
    """Outcome of resolving and executing one tool call."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    tool_call_id: str = ""
    function_name: str = ""
    command_exposed: bool = False
    reason: Optional[str] = None
    output: Optional[str] = None
    output_type: Optional[OutputType] = None
    error: Optional[ToolCallError] = None
    filtered_arguments: dict[str, Any] = Field(default_factory=dict)
    exposed_command: Optional[HostCommand] = None
    function: Optional[FunctionDescriptor] = Field(default=None, exclude=True, repr=False)

    @property
    def is_error(self) -> bool:
        """Whether the call failed authorization or execution."""
        return not self.command_exposed or self.error is not None

    def to_message_content(self) -> str:
        """Text placed in the ``tool`` message fed back to the model."""
        if not self.command_exposed:
            return self.reason or "Function not found"
        if self.error is not None:
            return self.error.to_json()
        return self.output if self.output is not None else ""

    def __str__(self) -> str:
        content = self.to_message_content()
        return content[:200] + ("..." if len(content) > 200 else "")


# Resolve the forward reference to Invocable
from lmsbridge.tools.invocable import Invocable  # noqa: E402

FunctionDescriptor.model_rebuild()
ToolCallInvocationResult.model_rebuild()
