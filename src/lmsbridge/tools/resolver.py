"""Match LLM tool calls back to authorized host commands."""

import logging
from collections.abc import Sequence

from lmsbridge.tools.models import (
    QUALIFIER_SEPARATOR,
    FunctionDescriptor,
    HostCommand,
    ToolCall,
    ToolCallInvocationResult,
    split_qualified_name,
)

logger = logging.getLogger(__name__)

FUNCTION_NOT_FOUND = "Function not found: {name}"
MISSING_REQUIRED_PARAMETER = "Missing required parameter: {name}"
UNKNOWN_ARGUMENT = (
    "Function found, but provided argument with name {name} "
    "not found in advertised tool function parameters"
)


class ToolCallResolver:
    """Resolves a tool call against advertised functions and host commands.

    Resolution never raises for authorization problems: the returned
    result carries ``command_exposed=False`` and the last failure reason.
    Only malformed argument JSON raises (ToolArgumentsError).
    """

    def __init__(
        self,
        functions: Sequence[FunctionDescriptor],
        host_commands: Sequence[HostCommand] = (),
    ):
        self.functions = list(functions)
        self.host_commands = list(host_commands)

    def candidates(self, tool_name: str) -> list[FunctionDescriptor]:
        """Functions whose bare or qualified name matches the requested name."""
        call_module, call_bare = split_qualified_name(tool_name)
        call_full = tool_name.casefold()
        call_bare = call_bare.casefold()

        matches = []
        for function in self.functions:
            bare = function.name.casefold()
            full = function.qualified_name.casefold()
            if full == call_full or bare == call_bare or full == call_bare or bare == call_full:
                matches.append(function)
        return matches

    def matching_commands(self, function: FunctionDescriptor) -> list[HostCommand]:
        """Host commands authorizing a function, most specific name first."""
        names = {function.name.casefold(), function.qualified_name.casefold()}
        matches = []
        for command in self.host_commands:
            command_name = command.name.casefold()
            if command_name in names or any(
                name.endswith(f"{QUALIFIER_SEPARATOR}{command_name}") for name in names
            ):
                matches.append(command)
        return sorted(matches, key=lambda c: len(c.name), reverse=True)

    def resolve(self, tool_call: ToolCall) -> ToolCallInvocationResult:
        """Resolve a tool call to at most one authorized function.

        Raises:
            ToolArgumentsError: If the argument JSON is malformed
        """
        arguments = tool_call.parse_arguments()
        result = ToolCallInvocationResult(
            tool_call_id=tool_call.id,
            function_name=tool_call.name,
            reason=FUNCTION_NOT_FOUND.format(name=tool_call.name),
        )

        for function in self.candidates(tool_call.name):
            properties = function.parameters.properties

            missing = next((n for n in function.parameters.required if n not in arguments), None)
            if missing is not None:
                result.reason = MISSING_REQUIRED_PARAMETER.format(name=missing)
                result.command_exposed = False
                continue

            unknown = next((n for n in arguments if n not in properties), None)
            if unknown is not None:
                result.reason = UNKNOWN_ARGUMENT.format(name=unknown)
                result.command_exposed = False
                continue

            filtered = dict(arguments)
            commands = self.matching_commands(function)

            if not commands:
                # Descriptor supplied directly; its own schema is the authorization
                self._accept(result, function, filtered, None)
                break

            for command in commands:
                rejected = next((n for n in filtered if not command.permits(n)), None)
                if rejected is not None:
                    result.reason = UNKNOWN_ARGUMENT.format(name=rejected)
                    result.command_exposed = False
                    continue

                forced = {name.casefold() for name in command.forced_params}
                filtered = {k: v for k, v in filtered.items() if k.casefold() not in forced}
                filtered.update(command.forced_params)
                self._accept(result, function, filtered, command)
                break

            if result.command_exposed:
                break

        if result.command_exposed:
            logger.debug(f"Resolved tool call {tool_call.name} with arguments {result.filtered_arguments}")
        else:
            logger.info(f"Tool call {tool_call.name} rejected: {result.reason}")
        return result

    @staticmethod
    def _accept(
        result: ToolCallInvocationResult,
        function: FunctionDescriptor,
        filtered: dict,
        command: HostCommand | None,
    ) -> None:
        result.filtered_arguments = filtered
        result.function = function
        result.exposed_command = command
        result.reason = None
        result.error = None
        result.command_exposed = True
