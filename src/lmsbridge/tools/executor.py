"""Execute resolved tool calls behind a confirmation gate."""

import dataclasses
import enum
import json
import logging
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time
from pathlib import PurePath
from typing import Any, Callable, Optional

from pydantic import BaseModel

from lmsbridge.tools.models import OutputType, ToolCallError, ToolCallInvocationResult

logger = logging.getLogger(__name__)

VOID_RESULT = "null # No output (success, void result)"
USER_CANCELLED = "User cancelled execution"
DEFAULT_JSON_DEPTH = 3

# Receives the preview line and the pending invocation, returns True to allow
ConfirmCallback = Callable[[str, ToolCallInvocationResult], bool]


class UserCancelledError(Exception):
    """Raised when the user disallows a tool execution."""

    def __init__(self, message: str = USER_CANCELLED):
        super().__init__(message)


@dataclass(frozen=True)
class ConfirmationPolicy:
    """Decides whether a resolved invocation runs without asking.

    Attributes:
        no_confirmation: Command names (bare or qualified) that never prompt
        prompt: Interactive Allow/Disallow callback; when absent every
            invocation that needs confirmation is disallowed
    """

    no_confirmation: frozenset[str] = field(default_factory=frozenset)
    prompt: Optional[ConfirmCallback] = None

    @classmethod
    def create(
        cls, no_confirmation: Iterable[str] = (), prompt: Optional[ConfirmCallback] = None
    ) -> "ConfirmationPolicy":
        return cls(
            no_confirmation=frozenset(name.casefold() for name in no_confirmation),
            prompt=prompt,
        )

    def is_exempt(self, *names: str) -> bool:
        return any(name.casefold() in self.no_confirmation for name in names if name)


def exception_class_name(error: BaseException) -> str:
    """Fully-qualified class name of an exception, e.g. ``builtins.ValueError``."""
    cls = type(error)
    return f"{cls.__module__}.{cls.__qualname__}"


def to_jsonable(value: Any, depth: int = DEFAULT_JSON_DEPTH) -> Any:
    """Convert a value into JSON-compatible data, bounded by ``depth``.

    Containers nested deeper than ``depth`` are replaced by their string form.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, enum.Enum):
        return to_jsonable(value.value, depth)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, PurePath):
        return str(value)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")

    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    elif dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = dataclasses.asdict(value)

    if isinstance(value, Mapping):
        if depth <= 0:
            return str(value)
        return {str(k): to_jsonable(v, depth - 1) for k, v in value.items()}
    if isinstance(value, Iterable):
        if depth <= 0:
            return str(value)
        return [to_jsonable(item, depth - 1) for item in value]
    if hasattr(value, "__dict__"):
        if depth <= 0:
            return str(value)
        public = {k: v for k, v in vars(value).items() if not k.startswith("_")}
        return {k: to_jsonable(v, depth - 1) for k, v in public.items()}
    return str(value)


def to_text(value: Any) -> str:
    """Flatten a value to human-readable text."""
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        return "\n".join(f"{k}: {v}" for k, v in value.items())
    if isinstance(value, Iterable) and not isinstance(value, (bytes, BaseModel)):
        return "\n".join(str(item) for item in value)
    return str(value)


def normalize_output(
    value: Any, output_as_text: bool = False, json_depth: int = DEFAULT_JSON_DEPTH
) -> tuple[str, Optional[OutputType]]:
    """Normalize a callback return value into ``(output, output_type)``."""
    if value is None:
        return VOID_RESULT, None
    if isinstance(value, str):
        return value, "string"
    if output_as_text:
        return json.dumps(to_text(value)), "application/json"
    return json.dumps(to_jsonable(value, json_depth)), "application/json"


def build_preview(function_name: str, arguments: dict[str, Any], location: str | None = None) -> str:
    """Human-readable line shown when asking for confirmation."""
    location = location if location is not None else os.getcwd()
    parts = [f"{location}> {function_name}"]
    for name, value in arguments.items():
        parts.append(f"-{name} ({json.dumps(to_jsonable(value), default=str)})")
    return " ".join(parts)


class InvocationExecutor:
    """Runs resolved invocations and captures their outcome."""

    def __init__(self, json_depth: int = DEFAULT_JSON_DEPTH):
        self.json_depth = json_depth

    def needs_confirmation(
        self, resolved: ToolCallInvocationResult, policy: ConfirmationPolicy
    ) -> bool:
        function = resolved.function
        command = resolved.exposed_command

        names = [resolved.function_name]
        if function is not None:
            names += [function.name, function.qualified_name]
        if command is not None:
            names.append(command.name)
        if policy.is_exempt(*names):
            return False

        if command is not None:
            return command.requires_confirmation
        return function is None or function.user_confirmation_required

    def execute(
        self, resolved: ToolCallInvocationResult, policy: ConfirmationPolicy
    ) -> ToolCallInvocationResult:
        """Execute an authorized invocation.

        Returns a copy of ``resolved`` with either ``output`` or ``error`` set.
        ``command_exposed`` stays True even when the callback throws.
        """
        result = resolved.model_copy()
        if not resolved.command_exposed or resolved.function is None:
            return result

        function = resolved.function
        command = resolved.exposed_command
        output_as_text = command.output_as_text if command else False
        json_depth = command.json_depth if command else self.json_depth

        try:
            if function.callback is None:
                raise RuntimeError(f"Function '{function.name}' has no callback attached")

            if self.needs_confirmation(resolved, policy):
                preview = build_preview(function.name, resolved.filtered_arguments)
                if policy.prompt is None or not policy.prompt(preview, resolved):
                    logger.info(f"Tool execution denied by user: {function.name}")
                    raise UserCancelledError()

            logger.info(f"Executing tool: {function.name}")
            value = function.callback.invoke(dict(resolved.filtered_arguments))
            result.output, result.output_type = normalize_output(value, output_as_text, json_depth)
            result.error = None
        except Exception as e:
            logger.warning(f"Tool execution failed: {function.name}: {e}")
            result.output = None
            result.output_type = None
            result.error = ToolCallError(
                error=str(e) or type(e).__name__,
                exception_thrown=True,
                exception_class=exception_class_name(e),
            )

        return result
