"""
lmsbridge query - Ask the model a question, letting it call host commands.

Usage:
    lmsbridge query "Your question here"
    lmsbridge query "Question" --model qwen2.5-14b-instruct
    lmsbridge query "Describe this" --attach notes.txt --attach photo.png
    lmsbridge query "List my files" --yes
"""

import mimetypes
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markdown import Markdown

from lmsbridge.agent import AgentConfig, Attachment, ConversationLoop, RequestOptions
from lmsbridge.agent.models import AgentEvent, EventType
from lmsbridge.cli.commands.tools import load_host_commands
from lmsbridge.cli.output import print_json, setup_logging
from lmsbridge.config import ConfigurationError, get_config
from lmsbridge.providers import AuthenticationError, ProviderError, get_client
from lmsbridge.tools.models import ToolArgumentsError, ToolCallInvocationResult
from lmsbridge.tools.registry import CommandRegistry

console = Console()


def load_attachment(path: Path) -> Attachment:
    """Read a file into a text or image attachment."""
    mime_type, _ = mimetypes.guess_type(path.name)
    if mime_type and mime_type.startswith("image/"):
        return Attachment.image(path.name, path.read_bytes(), mime_type)
    return Attachment.text(path.name, path.read_text(encoding="utf-8"), mime_type or "text/plain")


def _confirm(preview: str, resolved: ToolCallInvocationResult) -> bool:
    console.print("\n[yellow]Tool Approval Request:[/yellow]")
    console.print(f"  {preview}", markup=False, highlight=False)
    return typer.confirm("Allow this command to run?", default=False)


def _auto_approve(preview: str, resolved: ToolCallInvocationResult) -> bool:
    return True


def _show_event(event: AgentEvent) -> None:
    if event.event_type == EventType.TOOL_START:
        console.print(f"[dim]→ {event.tool_name}[/dim]")
    elif event.event_type == EventType.TOOL_ERROR:
        console.print(f"[dim red]✗ {event.tool_name}: {event.message}[/dim red]")
    elif event.event_type == EventType.THOUGHT:
        console.print(f"[dim italic]{event.message}[/dim italic]")


def query(
    text: Annotated[
        str,
        typer.Argument(
            help="The question to send to the model.",
        ),
    ],
    model: Annotated[
        str | None,
        typer.Option(
            "--model",
            "-m",
            help="Model identifier (defaults to server.model).",
        ),
    ] = None,
    system: Annotated[
        str | None,
        typer.Option(
            "--system",
            "-s",
            help="System instructions.",
        ),
    ] = None,
    attach: Annotated[
        list[Path] | None,
        typer.Option(
            "--attach",
            "-a",
            help="File to attach (repeatable).",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
    use_tools: Annotated[
        bool,
        typer.Option(
            "--tools/--no-tools",
            help="Expose host commands to the model.",
        ),
    ] = True,
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Allow every command without asking.",
        ),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output the result as JSON.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show debug logging.",
        ),
    ] = False,
) -> None:
    """Send a question to the model and print its answer."""
    try:
        config = get_config()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)

    setup_logging(config.logging.level, verbose)

    registry = CommandRegistry()
    host_commands = []
    if use_tools and config.tools.enable:
        try:
            host_commands = load_host_commands(config, registry)
        except ConfigurationError as e:
            console.print(f"[red]Configuration error:[/red] {e}")
            raise typer.Exit(1)

    loop = ConversationLoop(
        get_client(),
        registry=registry,
        config=AgentConfig(
            max_rounds=config.agent.max_rounds,
            include_thoughts=config.agent.include_thoughts,
            thought_markers=config.agent.thought_markers,
            json_depth=config.tools.json_depth,
        ),
        confirm=_auto_approve if yes else _confirm,
        event_callback=None if json_output else _show_event,
    )
    options = RequestOptions(
        model=model or config.server.model,
        temperature=config.agent.temperature,
        max_tokens=config.agent.max_tokens,
    )

    try:
        result = loop.run(
            text,
            system_instructions=system,
            attachments=[load_attachment(path) for path in attach or []],
            host_commands=host_commands,
            no_confirmation=config.tools.no_confirmation,
            options=options,
        )
    except AuthenticationError as e:
        console.print(f"[red]Authentication error:[/red] {e}")
        raise typer.Exit(1)
    except ProviderError as e:
        console.print(f"[red]Server error:[/red] {e}")
        console.print(f"[dim]Is LM Studio running at {config.server.base_url}?[/dim]")
        raise typer.Exit(1)
    except ToolArgumentsError as e:
        console.print(f"[red]Malformed tool call:[/red] {e}")
        raise typer.Exit(1)

    if json_output:
        print_json(
            {
                "success": result.success,
                "response": result.final_response,
                "rounds": result.rounds,
                "thoughts": result.thoughts,
                "stopped_reason": result.stopped_reason,
                "tool_calls": [
                    {
                        "name": r.function_name,
                        "arguments": r.filtered_arguments,
                        "exposed": r.command_exposed,
                        "result": r.to_message_content(),
                    }
                    for r in result.tool_results
                ],
            }
        )
    elif result.success:
        console.print(Markdown(result.final_response))
    else:
        console.print(f"[red]✗ Failed:[/red] {result.error}")
        console.print(f"Stopped after {result.rounds} round(s)")

    if not result.success:
        raise typer.Exit(1)
