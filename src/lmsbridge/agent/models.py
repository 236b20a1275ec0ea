"""Data models for conversation execution."""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from lmsbridge.tools.models import ToolCall, ToolCallInvocationResult

if TYPE_CHECKING:
    from lmsbridge.agent.session import ConversationSession


class AgentConfig(BaseModel):
    """Configuration for the conversation loop."""

    max_rounds: int = Field(
        default=25,
        ge=1,
        le=200,
        description="Maximum completion rounds before the loop gives up",
    )

    include_thoughts: bool = Field(
        default=False,
        description="Deliver extracted thoughts to the thought callback",
    )

    thought_markers: tuple[str, str] = Field(
        default=("<think>", "</think>"),
        description="Start and end markers delimiting the model's thoughts",
    )

    json_depth: int = Field(
        default=3,
        ge=1,
        le=100,
        description="Serialization depth for results of directly supplied functions",
    )


class RequestOptions(BaseModel):
    """Per-call completion options, built once and never mutated."""

    model_config = ConfigDict(frozen=True)

    model: Optional[str] = None
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    max_tokens: int = Field(default=-1, ge=-1)
    tool_choice: str = "auto"


class EventType(str, Enum):
    """Conversation events for streaming progress updates."""

    ROUND_START = "round_start"  # Completion request about to be sent
    ROUND_END = "round_end"  # Tool calls of a round processed
    TOOL_START = "tool_start"  # Tool call dispatched
    TOOL_COMPLETE = "tool_complete"  # Tool executed successfully
    TOOL_ERROR = "tool_error"  # Tool rejected or failed
    AI_RESPONSE = "ai_response"  # Completion response received
    CONFIRMATION_NEEDED = "confirmation_needed"  # Tool waiting for user approval
    CONFIRMATION_APPROVED = "confirmation_approved"  # User approved execution
    CONFIRMATION_DENIED = "confirmation_denied"  # User denied execution
    THOUGHT = "thought"  # Thought extracted from the answer
    CONVERSATION_COMPLETE = "conversation_complete"  # Final answer produced


class AgentEvent(BaseModel):
    """Event emitted during a conversation."""

    model_config = ConfigDict(use_enum_values=True)

    event_type: EventType = Field(description="Type of event")

    round: int = Field(description="Current round number (1-based)")

    tool_name: Optional[str] = Field(default=None, description="Tool name (for tool events)")

    tool_call_id: Optional[str] = Field(default=None, description="Tool call ID (for tool events)")

    message: Optional[str] = Field(default=None, description="Human-readable description")

    data: Optional[dict[str, Any]] = Field(default=None, description="Additional event data")

    timestamp: Optional[str] = Field(default=None, description="ISO format timestamp")


@dataclass
class ConversationResult:
    """Result of one conversation turn."""

    success: bool
    final_response: str
    rounds: int
    session: "ConversationSession"
    thoughts: list[str] = field(default_factory=list)
    tool_calls_made: list[ToolCall] = field(default_factory=list)
    tool_results: list[ToolCallInvocationResult] = field(default_factory=list)
    error: Optional[str] = None
    stopped_reason: str = "completed"  # completed, max_rounds
