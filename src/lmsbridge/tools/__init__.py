"""Tool-calling bridge between host commands and the LLM.

This module turns host commands into function schemas, resolves the
model's tool calls against them, and executes authorized calls:
- Map host parameter types to JSON-schema types
- Build function descriptors from allow-listed host commands
- Match tool calls, validate and filter arguments, inject forced parameters
- Execute behind a confirmation gate and normalize the result
"""

from lmsbridge.tools.dispatch import ToolDispatcher, invoke_tool_call
from lmsbridge.tools.executor import (
    ConfirmationPolicy,
    InvocationExecutor,
    UserCancelledError,
    normalize_output,
)
from lmsbridge.tools.invocable import BoundCommand, InlineFunction, Invocable
from lmsbridge.tools.models import (
    AllowedParam,
    FunctionDescriptor,
    FunctionParameters,
    HostCommand,
    PropertySchema,
    ToolArgumentsError,
    ToolCall,
    ToolCallError,
    ToolCallInvocationResult,
)
from lmsbridge.tools.registry import (
    CommandMetadata,
    CommandNotFoundError,
    CommandRegistry,
    ParameterInfo,
    get_command_registry,
)
from lmsbridge.tools.resolver import ToolCallResolver
from lmsbridge.tools.schema import FunctionSchemaBuilder
from lmsbridge.tools.types import map_type

__all__ = [
    "AllowedParam",
    "BoundCommand",
    "CommandMetadata",
    "CommandNotFoundError",
    "CommandRegistry",
    "ConfirmationPolicy",
    "FunctionDescriptor",
    "FunctionParameters",
    "FunctionSchemaBuilder",
    "HostCommand",
    "InlineFunction",
    "Invocable",
    "InvocationExecutor",
    "ParameterInfo",
    "PropertySchema",
    "ToolArgumentsError",
    "ToolCall",
    "ToolCallError",
    "ToolCallInvocationResult",
    "ToolCallResolver",
    "ToolDispatcher",
    "UserCancelledError",
    "get_command_registry",
    "invoke_tool_call",
    "map_type",
    "normalize_output",
]
