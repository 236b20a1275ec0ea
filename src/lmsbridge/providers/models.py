"""
Provider data models for lmsbridge.

Defines the request/response types exchanged with the chat-completion
and embedding services.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Protocol


@dataclass
class CompletionRequest:
    """A non-streamed chat-completion request."""

    model: str | None
    messages: list[dict[str, Any]]
    temperature: float = 0.2
    max_tokens: int = -1
    tools: Optional[list[dict[str, Any]]] = None
    tool_choice: Optional[str] = None
    stream: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Request body in OpenAI-compatible form."""
        body: dict[str, Any] = {
            "model": self.model,
            "messages": self.messages,
            "temperature": self.temperature,
            "stream": self.stream,
        }
        if self.max_tokens and self.max_tokens > 0:
            body["max_tokens"] = self.max_tokens
        if self.tools:
            body["tools"] = self.tools
            body["tool_choice"] = self.tool_choice or "auto"
        return body


@dataclass
class EmbeddingResult:
    """One embedding vector together with the text it was computed for."""

    embedding: list[float]
    index: int
    text: str


@dataclass
class ModelInfo:
    """A model reported by the server's model listing."""

    id: str
    object: str = "model"
    owned_by: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


class ChatCompletionService(Protocol):
    """Anything that can answer a chat-completion request.

    The response is the plain OpenAI-compatible dict:
    ``{"choices": [{"message": {"content": ..., "tool_calls": [...]}}]}``.
    """

    def complete(self, request: CompletionRequest) -> dict[str, Any]: ...


class EmbeddingService(Protocol):
    """Anything that can embed a batch of texts."""

    def embed(self, texts: list[str], model: str | None = None) -> list[EmbeddingResult]: ...
