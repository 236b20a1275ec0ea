"""
Unit tests for the conversation loop.
"""

import json
from unittest.mock import MagicMock

import pytest
from conftest import FakeCompletionService, text_response, tool_call_response

from lmsbridge.agent import (
    AgentConfig,
    Attachment,
    ConversationLoop,
    ConversationSession,
    EventType,
    RequestOptions,
    run_conversation,
)
from lmsbridge.providers.exceptions import NetworkError
from lmsbridge.tools.invocable import InlineFunction
from lmsbridge.tools.models import (
    FunctionDescriptor,
    FunctionParameters,
    HostCommand,
    PropertySchema,
    ToolArgumentsError,
)

MOVIES_CALL = ("call_1", "Get-Movies", '{"path":"B:\\\\"}')


def tool_messages(request):
    return [m for m in request.messages if m["role"] == "tool"]


class TestTermination:
    """Tests for loop termination."""

    def test_plain_answer_in_one_round(self):
        """Test that a response without tool calls ends the loop."""
        service = FakeCompletionService([text_response("<think>Easy.</think>The answer is 4.")])
        loop = ConversationLoop(service, registry=MagicMock())

        result = loop.run("What is 2 + 2?")

        assert result.success is True
        assert result.rounds == 1
        assert result.final_response == "The answer is 4."
        assert result.thoughts == ["Easy."]
        assert result.stopped_reason == "completed"
        assert len(service.requests) == 1

    def test_final_message_is_appended(self):
        service = FakeCompletionService([text_response("<think>x</think>Done")])

        result = ConversationLoop(service, registry=MagicMock()).run("Go")

        assert result.session.to_dicts() == [
            {"role": "user", "content": "Go"},
            {"role": "assistant", "content": "Done"},
        ]

    def test_no_tools_sent_without_functions(self):
        service = FakeCompletionService([text_response("Hi")])

        ConversationLoop(service, registry=MagicMock()).run("Hello")

        assert service.requests[0].tools is None
        assert service.requests[0].tool_choice is None

    def test_max_rounds(self):
        """Test that the round cap stops a model that never stops calling tools."""
        functions = [FunctionDescriptor(name="ping", callback=InlineFunction(lambda: "pong"))]
        service = FakeCompletionService([tool_call_response(("c1", "ping", "{}"))])
        loop = ConversationLoop(service, registry=MagicMock(), config=AgentConfig(max_rounds=3))

        result = loop.run("Ping forever", functions=functions, no_confirmation=["ping"])

        assert result.success is False
        assert result.stopped_reason == "max_rounds"
        assert result.rounds == 3
        assert len(service.requests) == 3
        assert "3" in result.error

    def test_default_round_cap(self):
        assert AgentConfig().max_rounds == 25


class TestToolRounds:
    """Tests for rounds with tool calls."""

    def test_get_movies_end_to_end(self, movie_registry, movie_command):
        """Test the Get-Movies scenario through the whole loop."""
        service = FakeCompletionService(
            [tool_call_response(MOVIES_CALL), text_response("You have 2 movies.")]
        )
        loop = ConversationLoop(service, registry=movie_registry)

        result = loop.run(
            "Which movies are on B:?",
            host_commands=[movie_command],
            no_confirmation=["Get-Movies"],
        )

        assert result.success is True
        assert result.rounds == 2
        assert result.final_response == "You have 2 movies."

        (invocation,) = result.tool_results
        assert invocation.command_exposed is True
        assert invocation.filtered_arguments == {"path": "B:\\"}

        (tool_message,) = tool_messages(service.requests[1])
        assert tool_message["tool_call_id"] == "call_1"
        content = json.loads(tool_message["content"])
        assert len(content["movies"]) == 2
        assert content["movies"][0] == "Movie1"

    def test_tool_definitions_are_sent(self, movie_registry, movie_command):
        service = FakeCompletionService([text_response("ok")])

        ConversationLoop(service, registry=movie_registry).run(
            "Hi", host_commands=[movie_command]
        )

        request = service.requests[0]
        assert request.tool_choice == "auto"
        (definition,) = request.tools
        assert definition["function"]["name"] == "Get-Movies"
        assert definition["function"]["parameters"]["required"] == ["path"]
        assert "callback" not in json.dumps(definition)

    def test_transcript_order(self, movie_registry, movie_command):
        """Test that the assistant tool-call message precedes the tool results."""
        service = FakeCompletionService(
            [tool_call_response(MOVIES_CALL), text_response("Done")]
        )

        ConversationLoop(service, registry=movie_registry).run(
            "List", host_commands=[movie_command], no_confirmation=["Get-Movies"]
        )

        roles = [m["role"] for m in service.requests[1].messages]
        assert roles == ["user", "assistant", "tool"]
        assistant = service.requests[1].messages[1]
        assert assistant["tool_calls"][0]["function"]["name"] == "Get-Movies"

    def test_calls_run_in_order(self):
        calls = []
        functions = [
            FunctionDescriptor(
                name="step",
                parameters=FunctionParameters(
                    properties={"n": PropertySchema(type="number")}, required=["n"]
                ),
                callback=InlineFunction(lambda n: calls.append(n)),
            )
        ]
        service = FakeCompletionService(
            [
                tool_call_response(("c1", "step", {"n": 1}), ("c2", "step", {"n": 2})),
                text_response("Done"),
            ]
        )

        result = ConversationLoop(service, registry=MagicMock()).run(
            "Go", functions=functions, no_confirmation=["step"]
        )

        assert calls == [1, 2]
        assert [r.tool_call_id for r in result.tool_results] == ["c1", "c2"]
        assert result.tool_results[0].output == "null # No output (success, void result)"

    def test_rejection_is_fed_back(self, movie_registry, movie_command):
        """Test that authorization failures become tool messages, not errors."""
        service = FakeCompletionService(
            [tool_call_response(("c1", "Remove-Movies", "{}")), text_response("Sorry")]
        )

        result = ConversationLoop(service, registry=movie_registry).run(
            "Delete", host_commands=[movie_command]
        )

        assert result.success is True
        (tool_message,) = tool_messages(service.requests[1])
        assert tool_message["content"] == "Function not found: Remove-Movies"

    def test_execution_failure_is_fed_back(self):
        def broken():
            raise RuntimeError("disk on fire")

        functions = [FunctionDescriptor(name="broken", callback=InlineFunction(broken))]
        service = FakeCompletionService(
            [tool_call_response(("c1", "broken", "{}")), text_response("It failed")]
        )

        result = ConversationLoop(service, registry=MagicMock()).run(
            "Try", functions=functions, no_confirmation=["broken"]
        )

        assert result.success is True
        payload = json.loads(tool_messages(service.requests[1])[0]["content"])
        assert payload == {
            "error": "disk on fire",
            "exceptionThrown": True,
            "exceptionClass": "builtins.RuntimeError",
        }

    def test_malformed_arguments_propagate(self, movie_registry, movie_command):
        service = FakeCompletionService([tool_call_response(("c1", "Get-Movies", '{"path": '))])

        with pytest.raises(ToolArgumentsError):
            ConversationLoop(service, registry=movie_registry).run(
                "List", host_commands=[movie_command]
            )

    def test_transport_errors_propagate(self):
        service = MagicMock()
        service.complete.side_effect = NetworkError("connection refused")

        with pytest.raises(NetworkError):
            ConversationLoop(service, registry=MagicMock()).run("Hi")


class TestConfirmation:
    """Tests for the confirmation prompt inside the loop."""

    def test_prompt_approves(self, movie_registry, movie_command):
        confirm = MagicMock(return_value=True)
        service = FakeCompletionService([tool_call_response(MOVIES_CALL), text_response("ok")])

        result = ConversationLoop(service, registry=movie_registry, confirm=confirm).run(
            "List", host_commands=[movie_command]
        )

        confirm.assert_called_once()
        assert "Get-Movies" in confirm.call_args.args[0]
        assert result.tool_results[0].output is not None

    def test_prompt_denies(self, movie_registry, movie_command):
        """Test that a denial is reported back to the model."""
        events = []
        service = FakeCompletionService([tool_call_response(MOVIES_CALL), text_response("ok")])
        loop = ConversationLoop(
            service,
            registry=movie_registry,
            confirm=lambda preview, pending: False,
            event_callback=events.append,
        )

        loop.run("List", host_commands=[movie_command])

        content = json.loads(tool_messages(service.requests[1])[0]["content"])
        assert content["error"] == "User cancelled execution"
        types = [e.event_type for e in events]
        assert EventType.CONFIRMATION_NEEDED in types
        assert EventType.CONFIRMATION_DENIED in types
        assert EventType.TOOL_ERROR in types

    def test_no_confirmation_skips_prompt(self, movie_registry, movie_command):
        confirm = MagicMock(return_value=False)
        service = FakeCompletionService([tool_call_response(MOVIES_CALL), text_response("ok")])

        result = ConversationLoop(service, registry=movie_registry, confirm=confirm).run(
            "List", host_commands=[movie_command], no_confirmation=["MediaTools\\Get-Movies"]
        )

        confirm.assert_not_called()
        assert result.tool_results[0].error is None


class TestSession:
    """Tests for seeding and continuing transcripts."""

    def test_seed_order(self):
        service = FakeCompletionService([text_response("ok")])

        ConversationLoop(service, registry=MagicMock()).run(
            "Summarize",
            system_instructions="Be brief.",
            attachments=[Attachment.text("notes.txt", "hello")],
        )

        messages = service.requests[0].messages
        assert [m["role"] for m in messages] == ["system", "user", "user"]
        assert messages[0]["content"] == "Be brief."
        assert "notes.txt" in messages[1]["content"]
        assert messages[2]["content"] == "Summarize"

    def test_continuation_does_not_repeat_system_message(self):
        """Test that re-seeding a continued session adds no duplicate instructions."""
        service = FakeCompletionService([text_response("first"), text_response("second")])
        loop = ConversationLoop(service, registry=MagicMock())
        session = ConversationSession()

        loop.run("One", session=session, system_instructions="Be brief.")
        loop.run("Two", session=session, system_instructions="Be brief.")

        roles = [m["role"] for m in service.requests[1].messages]
        assert roles == ["system", "user", "assistant", "user"]

    def test_repeated_query_is_sent_again(self):
        """Test that the same user turn twice in a session reaches the model both times."""
        service = FakeCompletionService([text_response("Sure.")])
        loop = ConversationLoop(service, registry=MagicMock())
        session = ConversationSession()

        loop.run("continue", session=session)
        loop.run("continue", session=session)

        messages = service.requests[1].messages
        assert messages == [
            {"role": "user", "content": "continue"},
            {"role": "assistant", "content": "Sure."},
            {"role": "user", "content": "continue"},
        ]
        assert [m.role for m in session.messages] == ["user", "assistant", "user", "assistant"]

    def test_functions_are_cached_across_turns(self, movie_registry, movie_command):
        service = FakeCompletionService([text_response("a"), text_response("b")])
        loop = ConversationLoop(service, registry=movie_registry)
        session = ConversationSession()

        loop.run("One", session=session, host_commands=[movie_command])
        loop.run("Two", session=session)

        assert service.requests[1].tools == service.requests[0].tools
        assert session.host_commands == [movie_command]

    def test_empty_query_continues(self):
        service = FakeCompletionService([text_response("a"), text_response("b")])
        loop = ConversationLoop(service, registry=MagicMock())
        session = ConversationSession()

        loop.run("One", session=session)
        loop.run(session=session)

        assert [m["role"] for m in service.requests[1].messages] == ["user", "assistant"]

    def test_request_options(self):
        service = FakeCompletionService([text_response("ok")])
        options = RequestOptions(model="qwen2.5-7b-instruct", temperature=0.7, max_tokens=256)

        ConversationLoop(service, registry=MagicMock()).run("Hi", options=options)

        request = service.requests[0]
        assert request.model == "qwen2.5-7b-instruct"
        assert request.temperature == 0.7
        assert request.max_tokens == 256


class TestEventsAndThoughts:
    """Tests for events and thought delivery."""

    def test_event_sequence(self, movie_registry, movie_command):
        events = []
        service = FakeCompletionService([tool_call_response(MOVIES_CALL), text_response("ok")])

        ConversationLoop(service, registry=movie_registry, event_callback=events.append).run(
            "List", host_commands=[movie_command], no_confirmation=["Get-Movies"]
        )

        assert [e.event_type for e in events] == [
            EventType.ROUND_START,
            EventType.AI_RESPONSE,
            EventType.TOOL_START,
            EventType.TOOL_COMPLETE,
            EventType.ROUND_END,
            EventType.ROUND_START,
            EventType.AI_RESPONSE,
            EventType.CONVERSATION_COMPLETE,
        ]
        assert events[0].round == 1
        assert events[-1].round == 2
        assert events[3].tool_name == "Get-Movies"

    def test_event_callback_errors_are_ignored(self):
        service = FakeCompletionService([text_response("ok")])
        callback = MagicMock(side_effect=RuntimeError("ui crashed"))

        result = ConversationLoop(service, registry=MagicMock(), event_callback=callback).run("Hi")

        assert result.success is True
        assert callback.called

    def test_thoughts_delivered_when_enabled(self):
        on_thought = MagicMock()
        service = FakeCompletionService([text_response("<think>hmm</think>ok")])
        loop = ConversationLoop(
            service,
            registry=MagicMock(),
            config=AgentConfig(include_thoughts=True),
            on_thought=on_thought,
        )

        loop.run("Hi")

        on_thought.assert_called_once_with("hmm")

    def test_thoughts_not_delivered_by_default(self):
        on_thought = MagicMock()
        service = FakeCompletionService([text_response("<think>hmm</think>ok")])

        result = ConversationLoop(service, registry=MagicMock(), on_thought=on_thought).run("Hi")

        on_thought.assert_not_called()
        assert result.thoughts == ["hmm"]

    def test_custom_markers(self):
        service = FakeCompletionService([text_response("[[plan]]answer")])
        loop = ConversationLoop(
            service, registry=MagicMock(), config=AgentConfig(thought_markers=("[[", "]]"))
        )

        assert loop.run("Hi").final_response == "answer"


class TestRunConversation:
    def test_helper(self):
        service = FakeCompletionService([text_response("ok")])
        assert run_conversation(service, "Hi").final_response == "ok"


class TestHostCommandsWithoutRegistryMatch:
    def test_unknown_host_command_is_skipped(self, movie_registry, movie_command):
        service = FakeCompletionService([text_response("ok")])

        ConversationLoop(service, registry=movie_registry).run(
            "Hi", host_commands=[HostCommand(name="Missing"), movie_command]
        )

        assert [t["function"]["name"] for t in service.requests[0].tools] == ["Get-Movies"]
