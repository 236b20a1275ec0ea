"""
Unit tests for tool data models and type mapping.
"""

import json

import pytest

from lmsbridge.tools.invocable import InlineFunction
from lmsbridge.tools.models import (
    AllowedParam,
    FunctionDescriptor,
    FunctionParameters,
    HostCommand,
    PropertySchema,
    ToolArgumentsError,
    ToolCall,
    ToolCallError,
    ToolCallInvocationResult,
    qualify_name,
    split_qualified_name,
)
from lmsbridge.tools.types import map_type, normalize_type


class TestMapType:
    """Tests for host type to JSON-schema type mapping."""

    @pytest.mark.parametrize(
        "native,expected",
        [
            ("str", "string"),
            ("int", "number"),
            ("float", "number"),
            ("bool", "boolean"),
            ("list", "array"),
            ("dict", "object"),
            ("System.String", "string"),
            ("System.Int32", "number"),
            ("System.Int64", "number"),
            ("System.Double", "number"),
            ("System.Boolean", "boolean"),
            ("System.Management.Automation.SwitchParameter", "boolean"),
            ("System.Collections.Hashtable", "object"),
        ],
    )
    def test_known_types(self, native, expected):
        """Test that known type names map to their schema type."""
        assert map_type(native) == expected

    def test_unknown_type_defaults_to_object(self):
        """Test that unknown names fall back to object."""
        assert map_type("Widget") == "object"
        assert map_type("") == "object"

    def test_normalize_type(self):
        assert normalize_type("array") == "array"
        assert normalize_type("System.Int32") == "number"
        assert normalize_type("Widget") is None


class TestQualifiedNames:
    """Tests for module-qualified name helpers."""

    def test_split_unqualified(self):
        assert split_qualified_name("Get-Movies") == (None, "Get-Movies")

    def test_split_qualified(self):
        assert split_qualified_name("MediaTools\\Get-Movies") == ("MediaTools", "Get-Movies")

    def test_split_uses_last_separator(self):
        assert split_qualified_name("A\\B\\Get-Movies") == ("A\\B", "Get-Movies")

    def test_qualify(self):
        assert qualify_name("Get-Movies", "MediaTools") == "MediaTools\\Get-Movies"
        assert qualify_name("Get-Movies", None) == "Get-Movies"


class TestAllowedParam:
    """Tests for allow-list entries."""

    def test_parse_plain_name(self):
        """Test parsing a name without type override."""
        param = AllowedParam.parse("path")
        assert param.name == "path"
        assert param.type is None

    def test_parse_type_override(self):
        """Test parsing name=type."""
        param = AllowedParam.parse(" count = string ")
        assert param.name == "count"
        assert param.type == "string"

    def test_matches_is_case_insensitive(self):
        assert AllowedParam(name="Path").matches("path")

    def test_matches_wildcard(self):
        """Test wildcard patterns."""
        param = AllowedParam(name="file*")
        assert param.matches("FileName")
        assert not param.matches("path")

    def test_str(self):
        assert str(AllowedParam(name="count", type="string")) == "count=string"
        assert str(AllowedParam(name="path")) == "path"


class TestHostCommand:
    """Tests for HostCommand."""

    def test_defaults(self):
        """Test that commands require confirmation by default."""
        command = HostCommand(name="Get-Movies")
        assert command.requires_confirmation is True
        assert command.output_as_text is False
        assert command.json_depth == 3
        assert command.allowed_params == ()
        assert command.forced_params == {}

    def test_allowed_params_from_strings(self):
        """Test that string allow-lists are parsed."""
        command = HostCommand(name="Get-Movies", allowed_params=["path", "limit=number"])
        assert [p.name for p in command.allowed_params] == ["path", "limit"]
        assert command.allowed_params[1].type == "number"

    def test_allowed_params_from_single_string(self):
        command = HostCommand(name="Get-Movies", allowed_params="path")
        assert len(command.allowed_params) == 1

    def test_module_and_bare_name(self):
        command = HostCommand(name="MediaTools\\Get-Movies")
        assert command.module == "MediaTools"
        assert command.bare_name == "Get-Movies"

    def test_is_immutable(self):
        """Test that a HostCommand cannot be modified after construction."""
        command = HostCommand(name="Get-Movies")
        with pytest.raises(Exception):
            command.name = "Other"

    def test_permits_allowed_and_forced(self):
        """Test that allow-listed and forced parameters are permitted."""
        command = HostCommand(
            name="Get-Movies", allowed_params=["path"], forced_params={"Recurse": True}
        )
        assert command.permits("path")
        assert command.permits("PATH")
        assert command.permits("recurse")
        assert not command.permits("limit")

    def test_json_depth_bounds(self):
        with pytest.raises(Exception):
            HostCommand(name="Get-Movies", json_depth=0)


class TestFunctionDescriptor:
    """Tests for FunctionDescriptor."""

    def test_default_description(self):
        assert FunctionDescriptor(name="f").description == "No description available."

    def test_qualified_name(self):
        assert FunctionDescriptor(name="f", module="m").qualified_name == "m\\f"
        assert FunctionDescriptor(name="f").qualified_name == "f"

    def test_tool_definition_strips_callback(self):
        """Test that the tool definition carries no execution handle."""
        descriptor = FunctionDescriptor(
            name="Get-Movies",
            description="Lists movies",
            parameters=FunctionParameters(
                properties={"path": PropertySchema(type="string")},
                required=["path"],
            ),
            callback=InlineFunction(lambda path: path),
        )

        definition = descriptor.to_tool_definition()

        assert definition == {
            "type": "function",
            "function": {
                "name": "Get-Movies",
                "description": "Lists movies",
                "parameters": {
                    "type": "object",
                    "properties": {"path": {"type": "string"}},
                    "required": ["path"],
                },
            },
        }
        json.dumps(definition)
        assert "callback" not in descriptor.model_dump()


class TestToolCall:
    """Tests for ToolCall parsing."""

    def test_from_dict(self):
        """Test building from an OpenAI tool_calls entry."""
        call = ToolCall.from_dict(
            {"id": "call_1", "type": "function", "function": {"name": "f", "arguments": '{"a": 1}'}}
        )
        assert call.id == "call_1"
        assert call.name == "f"
        assert call.parse_arguments() == {"a": 1}

    def test_from_dict_with_dict_arguments(self):
        call = ToolCall.from_dict({"id": "c", "function": {"name": "f", "arguments": {"a": 1}}})
        assert call.parse_arguments() == {"a": 1}

    def test_from_dict_with_empty_arguments(self):
        call = ToolCall.from_dict({"id": "c", "function": {"name": "f", "arguments": ""}})
        assert call.arguments == "{}"
        assert call.parse_arguments() == {}

    def test_null_arguments(self):
        assert ToolCall(id="c", name="f", arguments="null").parse_arguments() == {}

    def test_malformed_arguments_raise(self):
        """Test that malformed JSON raises ToolArgumentsError."""
        call = ToolCall(id="c", name="f", arguments='{"a": ')
        with pytest.raises(ToolArgumentsError) as exc_info:
            call.parse_arguments()
        assert exc_info.value.tool_name == "f"

    def test_non_object_arguments_raise(self):
        with pytest.raises(ToolArgumentsError):
            ToolCall(id="c", name="f", arguments="[1, 2]").parse_arguments()


class TestInvocationResult:
    """Tests for ToolCallInvocationResult and ToolCallError."""

    def test_error_json_uses_wire_names(self):
        """Test that the error payload uses camelCase keys."""
        error = ToolCallError(error="boom", exception_class="builtins.ValueError")
        assert json.loads(error.to_json()) == {
            "error": "boom",
            "exceptionThrown": True,
            "exceptionClass": "builtins.ValueError",
        }

    def test_error_accepts_wire_names(self):
        error = ToolCallError.model_validate(
            {"error": "boom", "exceptionThrown": True, "exceptionClass": "x.Y"}
        )
        assert error.exception_class == "x.Y"

    def test_message_content_for_rejection(self):
        result = ToolCallInvocationResult(command_exposed=False, reason="Function not found: f")
        assert result.is_error
        assert result.to_message_content() == "Function not found: f"

    def test_message_content_for_failure(self):
        result = ToolCallInvocationResult(
            command_exposed=True, error=ToolCallError(error="boom", exception_class="x.Y")
        )
        assert result.is_error
        assert json.loads(result.to_message_content())["error"] == "boom"

    def test_message_content_for_success(self):
        result = ToolCallInvocationResult(command_exposed=True, output="42", output_type="string")
        assert not result.is_error
        assert result.to_message_content() == "42"
