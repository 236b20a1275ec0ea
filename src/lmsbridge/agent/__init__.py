"""Conversation loop for tool use.

This module provides the loop that lets the model call host commands:
- Seed the transcript with instructions, attachments and the query
- Parse tool calls from completion responses
- Resolve and execute them through the tool dispatcher
- Feed results back until the model answers in plain text
"""

from lmsbridge.agent.loop import ConversationLoop, run_conversation
from lmsbridge.agent.models import (
    AgentConfig,
    AgentEvent,
    ConversationResult,
    EventType,
    RequestOptions,
)
from lmsbridge.agent.parser import ResponseParser, split_thoughts
from lmsbridge.agent.session import Attachment, ConversationMessage, ConversationSession

__all__ = [
    "AgentConfig",
    "AgentEvent",
    "Attachment",
    "ConversationLoop",
    "ConversationMessage",
    "ConversationResult",
    "ConversationSession",
    "EventType",
    "RequestOptions",
    "ResponseParser",
    "run_conversation",
    "split_thoughts",
]
