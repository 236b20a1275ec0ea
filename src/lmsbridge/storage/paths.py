"""
Path utilities for lmsbridge.

Provides consistent path resolution for configuration files.
"""

import os
from pathlib import Path

PROJECT_DIR_NAME = ".lmsbridge"
PROJECT_CONFIG_NAME = "project.yaml"


def get_lmsbridge_home() -> Path:
    """
    Get the lmsbridge home directory.

    Resolution order:
    1. LMSBRIDGE_HOME environment variable
    2. Default: ~/.lmsbridge

    Returns:
        Path to the lmsbridge home directory.
    """
    env_home = os.environ.get("LMSBRIDGE_HOME")
    if env_home:
        return Path(env_home).expanduser().resolve()
    return Path.home() / PROJECT_DIR_NAME


def get_global_config_path() -> Path:
    """
    Get the path to the global configuration file.

    Returns:
        Path to ~/.lmsbridge/config.yaml
    """
    return get_lmsbridge_home() / "config.yaml"


def find_project_config(start_path: Path | None = None) -> Path | None:
    """
    Find the project configuration file by traversing up the directory tree.

    Looks for .lmsbridge/project.yaml starting from the given path
    (or current directory) and moving up to the root.

    Args:
        start_path: Starting directory to search from. Defaults to cwd.

    Returns:
        Path to the project config if found, None otherwise.
    """
    current = Path.cwd() if start_path is None else Path(start_path).resolve()

    for directory in (current, *current.parents):
        project_config = directory / PROJECT_DIR_NAME / PROJECT_CONFIG_NAME
        if project_config.exists():
            return project_config

    return None
