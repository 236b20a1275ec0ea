"""Configuration loading and schema for lmsbridge."""

from lmsbridge.config.loader import (
    ConfigurationError,
    clear_config_cache,
    get_config,
    load_config,
)
from lmsbridge.config.schema import (
    AgentConfigSchema,
    CommandEntry,
    Config,
    LoggingConfig,
    ServerConfig,
    ToolsConfig,
)

__all__ = [
    "AgentConfigSchema",
    "CommandEntry",
    "Config",
    "ConfigurationError",
    "LoggingConfig",
    "ServerConfig",
    "ToolsConfig",
    "clear_config_cache",
    "get_config",
    "load_config",
]
