"""
Unit tests for agent data models.
"""

import pytest
from pydantic import ValidationError

from lmsbridge.agent.models import AgentConfig, AgentEvent, EventType, RequestOptions


class TestAgentConfig:
    """Tests for AgentConfig."""

    def test_defaults(self):
        config = AgentConfig()
        assert config.max_rounds == 25
        assert config.include_thoughts is False
        assert config.thought_markers == ("<think>", "</think>")
        assert config.json_depth == 3

    def test_max_rounds_bounds(self):
        with pytest.raises(ValidationError):
            AgentConfig(max_rounds=0)
        with pytest.raises(ValidationError):
            AgentConfig(max_rounds=201)


class TestRequestOptions:
    """Tests for RequestOptions."""

    def test_defaults(self):
        options = RequestOptions()
        assert options.model is None
        assert options.temperature == 0.2
        assert options.max_tokens == -1
        assert options.tool_choice == "auto"

    def test_is_frozen(self):
        """Test that options cannot change once built."""
        options = RequestOptions(model="m")
        with pytest.raises(ValidationError):
            options.model = "other"


class TestAgentEvent:
    """Tests for AgentEvent."""

    def test_event_type_stored_as_value(self):
        event = AgentEvent(event_type=EventType.TOOL_START, round=1, tool_name="Get-Movies")
        assert event.event_type == "tool_start"
        assert event.model_dump()["event_type"] == "tool_start"

    def test_optional_fields(self):
        event = AgentEvent(event_type=EventType.ROUND_START, round=1)
        assert event.tool_name is None
        assert event.data is None
