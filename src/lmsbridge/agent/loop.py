"""Conversation loop for iterative tool use."""

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any, Callable, Optional

from lmsbridge.agent.models import (
    AgentConfig,
    AgentEvent,
    ConversationResult,
    EventType,
    RequestOptions,
)
from lmsbridge.agent.parser import ResponseParser, split_thoughts
from lmsbridge.agent.session import Attachment, ConversationMessage, ConversationSession
from lmsbridge.providers.models import ChatCompletionService, CompletionRequest
from lmsbridge.tools.dispatch import ToolDispatcher
from lmsbridge.tools.executor import ConfirmationPolicy, ConfirmCallback, InvocationExecutor
from lmsbridge.tools.models import (
    FunctionDescriptor,
    HostCommand,
    ToolCall,
    ToolCallInvocationResult,
)
from lmsbridge.tools.registry import CommandRegistry, get_command_registry
from lmsbridge.tools.schema import FunctionSchemaBuilder

logger = logging.getLogger(__name__)


class ConversationLoop:
    """Conversation loop with tool use.

    Orchestrates the exchange between the model and host commands:
    1. Seed the transcript and send it with the function schemas
    2. Resolve and execute every tool call the model requests, in order
    3. Feed the results back as tool messages
    4. Repeat until the model answers without tool calls or the round cap is hit
    """

    def __init__(
        self,
        completion_service: ChatCompletionService,
        registry: Optional[CommandRegistry] = None,
        config: Optional[AgentConfig] = None,
        confirm: Optional[ConfirmCallback] = None,
        event_callback: Optional[Callable[[AgentEvent], None]] = None,
        on_thought: Optional[Callable[[str], None]] = None,
    ):
        """Initialize the conversation loop.

        Args:
            completion_service: Service answering chat-completion requests
            registry: Host command registry (defaults to the global registry)
            config: Loop settings
            confirm: Confirmation prompt, takes (preview, invocation) and
                     returns True to allow; without it, commands that need
                     confirmation are disallowed
            event_callback: Optional callback for progress events
            on_thought: Receives extracted thoughts when ``include_thoughts`` is set
        """
        self.completion_service = completion_service
        self.registry = registry if registry is not None else get_command_registry()
        self.config = config or AgentConfig()
        self.confirm = confirm
        self.event_callback = event_callback
        self.on_thought = on_thought
        self.parser = ResponseParser()
        self._round = 0

    def _emit_event(self, event_type: EventType, **kwargs: Any) -> None:
        """Emit an event if a callback is configured."""
        if not self.event_callback:
            return
        event = AgentEvent(
            event_type=event_type,
            round=self._round,
            timestamp=datetime.now().isoformat(),
            **kwargs,
        )
        try:
            self.event_callback(event)
        except Exception as e:
            logger.warning(f"Event callback error: {e}")

    def _prompt(self, preview: str, resolved: ToolCallInvocationResult) -> bool:
        self._emit_event(
            EventType.CONFIRMATION_NEEDED,
            tool_name=resolved.function_name,
            tool_call_id=resolved.tool_call_id,
            message=preview,
            data={"arguments": resolved.filtered_arguments},
        )
        approved = bool(self.confirm(preview, resolved)) if self.confirm else False
        self._emit_event(
            EventType.CONFIRMATION_APPROVED if approved else EventType.CONFIRMATION_DENIED,
            tool_name=resolved.function_name,
            tool_call_id=resolved.tool_call_id,
        )
        return approved

    def build_functions(
        self,
        host_commands: Sequence[HostCommand],
        no_confirmation: Iterable[str] = (),
    ) -> list[FunctionDescriptor]:
        """Build function descriptors for the host commands, skipping unknown ones."""
        builder = FunctionSchemaBuilder(self.registry, no_confirmation)
        return builder.build(host_commands)

    def _seed(
        self,
        session: ConversationSession,
        query: str,
        system_instructions: Optional[str],
        attachments: Iterable[Attachment],
    ) -> None:
        if system_instructions:
            session.add_unique(ConversationMessage.system(system_instructions))
        for attachment in attachments:
            session.add(attachment.to_message())
        if query:
            session.add(ConversationMessage.user(query))

    def _request(
        self, session: ConversationSession, functions: list[FunctionDescriptor], options: RequestOptions
    ) -> CompletionRequest:
        tools = [function.to_tool_definition() for function in functions] or None
        return CompletionRequest(
            model=options.model,
            messages=session.to_dicts(),
            temperature=options.temperature,
            max_tokens=options.max_tokens,
            tools=tools,
            tool_choice=options.tool_choice if tools else None,
        )

    def run(
        self,
        query: str = "",
        *,
        session: Optional[ConversationSession] = None,
        system_instructions: Optional[str] = None,
        attachments: Iterable[Attachment] = (),
        host_commands: Sequence[HostCommand] = (),
        functions: Sequence[FunctionDescriptor] = (),
        no_confirmation: Iterable[str] = (),
        options: Optional[RequestOptions] = None,
    ) -> ConversationResult:
        """Run one conversation turn.

        Args:
            query: User query; empty continues the session as it is
            session: Transcript to continue; a fresh one when omitted
            system_instructions: System message, appended once per transcript
            attachments: Files sent as user-role messages before the query
            host_commands: Commands exposed to the model
            functions: Already-built descriptors exposed alongside the commands
            no_confirmation: Command names that execute without prompting
            options: Completion options for every request of this turn

        Returns:
            ConversationResult with the final answer and the tool activity

        Raises:
            ProviderError: If the completion service fails
            ToolArgumentsError: If the model sends malformed argument JSON
        """
        session = session if session is not None else ConversationSession()
        options = options or RequestOptions()
        no_confirmation = list(no_confirmation)

        if host_commands or functions:
            session.functions = self.build_functions(host_commands, no_confirmation) + list(functions)
            session.host_commands = list(host_commands)
        exposed = session.functions or []

        dispatcher = ToolDispatcher(
            exposed,
            session.host_commands or (),
            policy=ConfirmationPolicy.create(no_confirmation, prompt=self._prompt),
            executor=InvocationExecutor(json_depth=self.config.json_depth),
        )

        self._seed(session, query, system_instructions, attachments)

        all_tool_calls: list[ToolCall] = []
        all_tool_results: list[ToolCallInvocationResult] = []
        self._round = 0

        logger.info(f"Starting conversation with {len(exposed)} functions")

        while self._round < self.config.max_rounds:
            self._round += 1
            logger.info(f"Conversation round {self._round}/{self.config.max_rounds}")

            self._emit_event(
                EventType.ROUND_START,
                message=f"Starting round {self._round}/{self.config.max_rounds}",
            )

            response = self.completion_service.complete(self._request(session, exposed, options))

            self._emit_event(EventType.AI_RESPONSE, message="AI response received")

            tool_calls = self.parser.parse_tool_calls(response)
            if not tool_calls:
                return self._finish(session, response, all_tool_calls, all_tool_results)

            logger.info(f"AI requested {len(tool_calls)} tool calls")
            session.add_unique(
                ConversationMessage.model_validate(self.parser.assistant_tool_call_message(response))
            )

            for tool_call in tool_calls:
                result = self._dispatch(dispatcher, tool_call)
                all_tool_calls.append(tool_call)
                all_tool_results.append(result)
                session.add(
                    ConversationMessage.tool(
                        content=result.to_message_content(),
                        tool_call_id=tool_call.id,
                        name=tool_call.name,
                        arguments=result.filtered_arguments or None,
                    )
                )

            self._emit_event(
                EventType.ROUND_END,
                message=f"Round {self._round} completed",
                data={
                    "tools_requested": len(tool_calls),
                    "tools_succeeded": sum(
                        1 for r in all_tool_results[-len(tool_calls) :] if not r.is_error
                    ),
                },
            )

        logger.warning(f"Conversation stopped: max rounds ({self.config.max_rounds}) reached")
        return ConversationResult(
            success=False,
            final_response="",
            rounds=self._round,
            session=session,
            tool_calls_made=all_tool_calls,
            tool_results=all_tool_results,
            error=f"Maximum rounds ({self.config.max_rounds}) reached",
            stopped_reason="max_rounds",
        )

    def _dispatch(self, dispatcher: ToolDispatcher, tool_call: ToolCall) -> ToolCallInvocationResult:
        self._emit_event(
            EventType.TOOL_START,
            tool_name=tool_call.name,
            tool_call_id=tool_call.id,
            message=f"Calling tool: {tool_call.name}",
        )

        result = dispatcher.dispatch(tool_call)

        if result.is_error:
            self._emit_event(
                EventType.TOOL_ERROR,
                tool_name=tool_call.name,
                tool_call_id=tool_call.id,
                message=result.to_message_content(),
                data={"command_exposed": result.command_exposed},
            )
        else:
            self._emit_event(
                EventType.TOOL_COMPLETE,
                tool_name=tool_call.name,
                tool_call_id=tool_call.id,
                message=f"Tool {tool_call.name} completed",
                data={"output_type": result.output_type},
            )
        return result

    def _finish(
        self,
        session: ConversationSession,
        response: dict[str, Any],
        tool_calls: list[ToolCall],
        tool_results: list[ToolCallInvocationResult],
    ) -> ConversationResult:
        start_marker, end_marker = self.config.thought_markers
        answer, thoughts = split_thoughts(
            self.parser.extract_content(response), start_marker, end_marker
        )

        if self.config.include_thoughts:
            for thought in thoughts:
                self._emit_event(EventType.THOUGHT, message=thought)
                if self.on_thought:
                    self.on_thought(thought)

        session.add(ConversationMessage.assistant(answer))
        logger.info(f"Conversation completed after {self._round} rounds")

        self._emit_event(
            EventType.CONVERSATION_COMPLETE,
            message=f"Conversation completed after {self._round} rounds",
            data={"final_response": answer},
        )

        return ConversationResult(
            success=True,
            final_response=answer,
            rounds=self._round,
            session=session,
            thoughts=thoughts,
            tool_calls_made=tool_calls,
            tool_results=tool_results,
        )


def run_conversation(
    completion_service: ChatCompletionService,
    query: str,
    host_commands: Sequence[HostCommand] = (),
    **kwargs: Any,
) -> ConversationResult:
    """Run a single conversation turn with a default loop."""
    return ConversationLoop(completion_service).run(query, host_commands=host_commands, **kwargs)
