"""
Pytest configuration and fixtures for lmsbridge tests.
"""

import json
import tempfile
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from lmsbridge.config import clear_config_cache
from lmsbridge.providers import clear_client
from lmsbridge.providers.models import CompletionRequest
from lmsbridge.tools.models import HostCommand
from lmsbridge.tools.registry import CommandRegistry


class FakeCompletionService:
    """Scripted chat-completion service.

    Returns the queued responses in order and records every request.
    When the script runs out, the last response is repeated.
    """

    def __init__(self, responses: list[dict[str, Any]]):
        self.responses = list(responses)
        self.requests: list[CompletionRequest] = []

    def complete(self, request: CompletionRequest) -> dict[str, Any]:
        # Snapshot the transcript as it was sent
        self.requests.append(
            CompletionRequest(
                model=request.model,
                messages=json.loads(json.dumps(request.messages)),
                temperature=request.temperature,
                max_tokens=request.max_tokens,
                tools=request.tools,
                tool_choice=request.tool_choice,
            )
        )
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


def text_response(content: str) -> dict[str, Any]:
    """Completion response carrying plain content."""
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


def tool_call_response(*calls: tuple[str, str, dict[str, Any] | str]) -> dict[str, Any]:
    """Completion response requesting tool calls given as (id, name, arguments)."""
    return {
        "choices": [
            {
                "index": 0,
                "message": {
                    "role": "assistant",
                    "content": None,
                    "tool_calls": [
                        {
                            "id": call_id,
                            "type": "function",
                            "function": {
                                "name": name,
                                "arguments": args if isinstance(args, str) else json.dumps(args),
                            },
                        }
                        for call_id, name, args in calls
                    ],
                },
            }
        ]
    }


def get_movies(path: str, recurse: bool = False) -> dict[str, Any]:
    """Get the movies stored in a directory.

    Args:
        path: Directory containing the movies
        recurse: Also search subdirectories
    """
    return {"movies": ["Movie1", "Movie2"], "path": path}


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def mock_lmsbridge_home(
    temp_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Path, None, None]:
    """Provide an isolated ~/.lmsbridge directory and working directory."""
    lmsbridge_home = temp_dir / ".lmsbridge"
    lmsbridge_home.mkdir()

    workdir = temp_dir / "work"
    workdir.mkdir()

    monkeypatch.setenv("LMSBRIDGE_HOME", str(lmsbridge_home))
    monkeypatch.chdir(workdir)
    clear_config_cache()
    clear_client()

    yield lmsbridge_home

    clear_config_cache()
    clear_client()


@pytest.fixture
def fake_service_factory():
    """Build a FakeCompletionService from a list of responses."""
    return FakeCompletionService


@pytest.fixture
def movie_registry() -> CommandRegistry:
    """Registry holding a Get-Movies command in module MediaTools."""
    registry = CommandRegistry()
    registry.register(get_movies, name="Get-Movies", module="MediaTools")
    return registry


@pytest.fixture
def movie_command() -> HostCommand:
    """Get-Movies exposure with only ``path`` allow-listed."""
    return HostCommand(name="Get-Movies", allowed_params=["path"])
