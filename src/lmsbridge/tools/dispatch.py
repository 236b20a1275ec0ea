"""Resolve and execute tool calls in one step."""

import logging
from collections.abc import Sequence

from lmsbridge.tools.executor import ConfirmationPolicy, InvocationExecutor
from lmsbridge.tools.models import FunctionDescriptor, HostCommand, ToolCall, ToolCallInvocationResult
from lmsbridge.tools.resolver import ToolCallResolver

logger = logging.getLogger(__name__)


class ToolDispatcher:
    """Binds a resolver, an executor and a confirmation policy.

    One tool call leads to at most one execution.
    """

    def __init__(
        self,
        functions: Sequence[FunctionDescriptor],
        host_commands: Sequence[HostCommand] = (),
        policy: ConfirmationPolicy | None = None,
        executor: InvocationExecutor | None = None,
    ):
        self.resolver = ToolCallResolver(functions, host_commands)
        self.policy = policy or ConfirmationPolicy()
        self.executor = executor or InvocationExecutor()

    def dispatch(self, tool_call: ToolCall) -> ToolCallInvocationResult:
        """Resolve ``tool_call`` and, when authorized, execute it.

        Raises:
            ToolArgumentsError: If the argument JSON is malformed
        """
        resolved = self.resolver.resolve(tool_call)
        if not resolved.command_exposed:
            return resolved
        return self.executor.execute(resolved, self.policy)


def invoke_tool_call(
    tool_call: ToolCall,
    functions: Sequence[FunctionDescriptor],
    host_commands: Sequence[HostCommand] = (),
    policy: ConfirmationPolicy | None = None,
) -> ToolCallInvocationResult:
    """Convenience wrapper around :class:`ToolDispatcher`."""
    return ToolDispatcher(functions, host_commands, policy).dispatch(tool_call)
