"""Storage utilities for lmsbridge."""

from lmsbridge.storage.paths import (
    find_project_config,
    get_global_config_path,
    get_lmsbridge_home,
)

__all__ = [
    "find_project_config",
    "get_global_config_path",
    "get_lmsbridge_home",
]
