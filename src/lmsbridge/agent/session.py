"""Conversation transcript owned by a single conversation."""

import base64
import logging
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from lmsbridge.tools.models import FunctionDescriptor, HostCommand

logger = logging.getLogger(__name__)

Role = Literal["system", "user", "assistant", "tool"]


class ConversationMessage(BaseModel):
    """One transcript message in OpenAI-compatible shape."""

    role: Role
    content: Optional[str | list[dict[str, Any]]] = None
    name: Optional[str] = None
    tool_call_id: Optional[str] = None
    tool_calls: Optional[list[dict[str, Any]]] = None
    arguments: Optional[dict[str, Any]] = None  # Filtered arguments of a tool message

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire format (``arguments`` is kept local)."""
        data = self.model_dump(exclude_none=True, exclude={"arguments"})
        if self.role == "assistant" and "content" not in data:
            data["content"] = None
        return data

    @classmethod
    def system(cls, content: str) -> "ConversationMessage":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str | list[dict[str, Any]]) -> "ConversationMessage":
        return cls(role="user", content=content)

    @classmethod
    def assistant(
        cls, content: str | None, tool_calls: list[dict[str, Any]] | None = None
    ) -> "ConversationMessage":
        return cls(role="assistant", content=content, tool_calls=tool_calls or None)

    @classmethod
    def tool(
        cls,
        content: str,
        tool_call_id: str,
        name: str | None = None,
        arguments: dict[str, Any] | None = None,
    ) -> "ConversationMessage":
        return cls(
            role="tool", content=content, tool_call_id=tool_call_id, name=name, arguments=arguments
        )


class Attachment(BaseModel):
    """A file attached to a query.

    MIME detection happens elsewhere; the caller supplies the type.
    """

    name: str
    kind: Literal["text", "image"]
    content: str  # Text, or base64 data for images
    mime_type: str = "text/plain"

    @classmethod
    def text(cls, name: str, content: str, mime_type: str = "text/plain") -> "Attachment":
        return cls(name=name, kind="text", content=content, mime_type=mime_type)

    @classmethod
    def image(cls, name: str, data: bytes, mime_type: str) -> "Attachment":
        return cls(
            name=name,
            kind="image",
            content=base64.b64encode(data).decode("ascii"),
            mime_type=mime_type,
        )

    def to_message(self) -> ConversationMessage:
        """User-role message carrying the attachment."""
        if self.kind == "image":
            return ConversationMessage.user(
                [
                    {"type": "text", "text": f"Attached image: {self.name}"},
                    {
                        "type": "image_url",
                        "image_url": {"url": f"data:{self.mime_type};base64,{self.content}"},
                    },
                ]
            )
        return ConversationMessage.user(f"Attached file: {self.name}\n\n```\n{self.content}\n```")


class ConversationSession(BaseModel):
    """Ordered, append-only transcript plus the function set of the session.

    ``add`` always appends. ``add_unique`` skips a message when a
    structurally equal one is already in the transcript; the loop uses it
    for system instructions and assistant tool-call requests so that
    re-seeding a continued session does not repeat them.
    """

    messages: list[ConversationMessage] = Field(default_factory=list)
    functions: Optional[list[FunctionDescriptor]] = None  # Cached across turns
    host_commands: Optional[list[HostCommand]] = None

    def add(self, message: ConversationMessage) -> None:
        self.messages.append(message)

    def add_unique(self, message: ConversationMessage) -> bool:
        """Append unless an equal message exists.

        Returns:
            True if the message was appended
        """
        if message in self.messages:
            logger.debug(f"Skipping duplicate {message.role} message")
            return False
        self.messages.append(message)
        return True

    def extend(self, messages: list[ConversationMessage]) -> None:
        self.messages.extend(messages)

    def clear(self) -> None:
        """Drop all messages and the cached function set."""
        self.messages.clear()
        self.functions = None
        self.host_commands = None

    def to_dicts(self) -> list[dict[str, Any]]:
        return [message.to_dict() for message in self.messages]

    @property
    def last(self) -> ConversationMessage | None:
        return self.messages[-1] if self.messages else None

    def __len__(self) -> int:
        return len(self.messages)
