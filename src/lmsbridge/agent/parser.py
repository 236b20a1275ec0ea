"""Parser for chat-completion responses."""

import logging
from typing import Any

from lmsbridge.tools.models import ToolCall

logger = logging.getLogger(__name__)


class ResponseParser:
    """Parses OpenAI-compatible chat-completion responses.

    The response format (via LiteLLM or the raw server):
    {
        "choices": [
            {
                "message": {
                    "role": "assistant",
                    "content": "...",
                    "tool_calls": [
                        {"id": "call_1", "type": "function",
                         "function": {"name": "Get-Movies", "arguments": "{...}"}}
                    ]
                }
            }
        ]
    }
    """

    @staticmethod
    def _messages(response: dict[str, Any]) -> list[dict[str, Any]]:
        messages = []
        for choice in response.get("choices") or []:
            if not isinstance(choice, dict):
                continue
            message = choice.get("message")
            if isinstance(message, dict):
                messages.append(message)
        return messages

    @classmethod
    def raw_tool_calls(cls, response: dict[str, Any]) -> list[dict[str, Any]]:
        """Tool-call entries of every choice, in order."""
        raw = []
        for message in cls._messages(response):
            for entry in message.get("tool_calls") or []:
                if not isinstance(entry, dict):
                    logger.warning(f"Invalid tool call entry: {entry}")
                    continue
                raw.append(entry)
        return raw

    @classmethod
    def parse_tool_calls(cls, response: dict[str, Any]) -> list[ToolCall]:
        """Parse tool calls from a completion response.

        Args:
            response: Completion response dict

        Returns:
            List of ToolCall objects, in the order the model listed them
        """
        tool_calls = []
        for entry in cls.raw_tool_calls(response):
            tool_call = ToolCall.from_dict(entry)
            if not tool_call.name:
                logger.warning(f"Tool call without function name: {entry}")
                continue
            tool_calls.append(tool_call)
        return tool_calls

    @classmethod
    def has_tool_calls(cls, response: dict[str, Any]) -> bool:
        """Check if the response requests any tool call."""
        return bool(cls.raw_tool_calls(response))

    @classmethod
    def extract_content(cls, response: dict[str, Any]) -> str:
        """Concatenate the text content of all choices."""
        parts = []
        for message in cls._messages(response):
            content = message.get("content")
            if isinstance(content, str):
                parts.append(content)
            elif isinstance(content, list):
                parts.extend(
                    block.get("text", "")
                    for block in content
                    if isinstance(block, dict) and block.get("type") == "text"
                )
        return "".join(parts)

    @staticmethod
    def assistant_tool_call_message(response: dict[str, Any]) -> dict[str, Any]:
        """The assistant message that carried the tool calls.

        Tool calls are normalized to ``{id, type, function: {name, arguments}}``
        so the message can be sent back verbatim.
        """
        content = ResponseParser.extract_content(response) or None
        tool_calls = [
            {
                "id": call.id,
                "type": "function",
                "function": {"name": call.name, "arguments": call.arguments},
            }
            for call in ResponseParser.parse_tool_calls(response)
        ]
        return {"role": "assistant", "content": content, "tool_calls": tool_calls}


def split_thoughts(text: str, start_marker: str = "<think>", end_marker: str = "</think>") -> tuple[str, list[str]]:
    """Remove every ``start_marker ... end_marker`` block from ``text``.

    An unterminated start marker swallows the rest of the text.

    Returns:
        Tuple of (answer without thoughts, list of thoughts)
    """
    thoughts: list[str] = []
    answer: list[str] = []
    position = 0

    while True:
        start = text.find(start_marker, position)
        if start < 0:
            answer.append(text[position:])
            break

        answer.append(text[position:start])
        thought_start = start + len(start_marker)
        end = text.find(end_marker, thought_start)
        if end < 0:
            thoughts.append(text[thought_start:].strip())
            break

        thoughts.append(text[thought_start:end].strip())
        position = end + len(end_marker)

    return "".join(answer).strip(), [thought for thought in thoughts if thought]
