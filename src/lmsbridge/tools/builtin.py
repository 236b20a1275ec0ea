"""Built-in host commands available to the CLI."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from lmsbridge.tools.models import HostCommand
from lmsbridge.tools.registry import CommandRegistry

logger = logging.getLogger(__name__)

BUILTIN_MODULE = "lmsbridge"

MAX_READ_BYTES = 256 * 1024


def get_current_time(utc: bool = False) -> str:
    """Get the current date and time in ISO 8601 format.

    Args:
        utc: Return UTC time instead of local time
    """
    now = datetime.now(timezone.utc) if utc else datetime.now()
    return now.isoformat(timespec="seconds")


def get_child_item(path: str = ".", pattern: str = "*") -> list[dict[str, Any]]:
    """List files and directories in a directory.

    Args:
        path: Directory to list. Can be absolute or relative to the
            current directory.
        pattern: Glob pattern entries must match, e.g. '*.py'
    """
    directory = Path(path).expanduser().resolve()
    if not directory.is_dir():
        raise NotADirectoryError(f"Not a directory: {path}")

    logger.info(f"Listing directory: {directory}")
    entries = []
    for entry in sorted(directory.glob(pattern)):
        is_dir = entry.is_dir()
        entries.append(
            {
                "name": entry.name,
                "type": "directory" if is_dir else "file",
                "size": None if is_dir else entry.stat().st_size,
            }
        )
    return entries


def get_content(path: str, encoding: str = "utf-8") -> str:
    """Read the contents of a text file.

    Args:
        path: Path to the file to read
        encoding: File encoding, e.g. 'utf-8' or 'latin-1'
    """
    file_path = Path(path).expanduser().resolve()
    if not file_path.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    if file_path.stat().st_size > MAX_READ_BYTES:
        raise ValueError(f"File too large to read ({file_path.stat().st_size} bytes): {path}")

    logger.info(f"Reading file: {file_path}")
    return file_path.read_text(encoding=encoding)


def register_builtin_commands(registry: CommandRegistry) -> list[HostCommand]:
    """Register the built-in commands and return their default exposure.

    Read-only commands are exposed without confirmation.
    """
    registry.register(get_current_time, name="Get-CurrentTime", module=BUILTIN_MODULE)
    registry.register(get_child_item, name="Get-ChildItem", module=BUILTIN_MODULE)
    registry.register(get_content, name="Get-Content", module=BUILTIN_MODULE)

    logger.info("Registered 3 built-in commands")
    return [
        HostCommand(name="Get-CurrentTime", allowed_params=["utc"], requires_confirmation=False),
        HostCommand(
            name="Get-ChildItem", allowed_params=["path", "pattern"], requires_confirmation=False
        ),
        HostCommand(name="Get-Content", allowed_params=["path", "encoding"]),
    ]
