"""
Pydantic configuration schema for lmsbridge.

This module defines all configuration models with validation.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from lmsbridge.tools.models import HostCommand

# =============================================================================
# Server Configuration
# =============================================================================


class ServerConfig(BaseModel):
    """LM Studio server connection configuration."""

    model_config = ConfigDict(extra="allow")

    base_url: str = "http://localhost:1234/v1"
    api_key: str = "lm-studio"  # LM Studio accepts any key
    provider: str = Field(
        default="openai",
        description="LiteLLM provider used to talk to the OpenAI-compatible endpoint",
    )
    model: str = "qwen2.5-14b-instruct"
    embedding_model: str = "text-embedding-nomic-embed-text-v1.5"
    timeout: float = Field(
        default=3600.0,
        gt=0,
        le=86400,
        description="Request timeout in seconds",
    )


# =============================================================================
# Agent Configuration
# =============================================================================


class AgentConfigSchema(BaseModel):
    """Conversation loop configuration."""

    model_config = ConfigDict(extra="allow")

    max_rounds: int = Field(
        default=25,
        ge=1,
        le=200,
        description="Maximum completion rounds per query",
    )

    temperature: float = Field(default=0.2, ge=0.0, le=2.0)

    max_tokens: int = Field(
        default=-1,
        ge=-1,
        description="Maximum tokens per completion (-1 = server default)",
    )

    include_thoughts: bool = Field(
        default=False,
        description="Echo the model's thoughts separately from the answer",
    )

    thought_markers: tuple[str, str] = ("<think>", "</think>")


# =============================================================================
# Tool Configuration
# =============================================================================


class CommandEntry(HostCommand):
    """A host command definition from the configuration file.

    ``target`` is an import path (``package.module:function``) registered
    under ``name`` before schemas are built.
    """

    target: str | None = None

    def to_host_command(self) -> HostCommand:
        return HostCommand.model_validate(self.model_dump(exclude={"target"}))


class ToolsConfig(BaseModel):
    """Tool exposure configuration."""

    model_config = ConfigDict(extra="allow")

    enable: bool = True
    builtin: bool = Field(default=True, description="Expose the built-in commands")
    no_confirmation: list[str] = Field(
        default_factory=list,
        description="Command names that never ask for confirmation",
    )
    json_depth: int = Field(default=3, ge=1, le=100)
    commands: list[CommandEntry] = Field(default_factory=list)


# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"


# =============================================================================
# Root Configuration Model
# =============================================================================


class Config(BaseModel):
    """
    Root configuration model for lmsbridge.

    Configuration can be loaded from YAML files and environment
    variables, merged in order of priority.
    """

    model_config = ConfigDict(extra="allow")

    server: ServerConfig = Field(default_factory=ServerConfig)
    agent: AgentConfigSchema = Field(default_factory=AgentConfigSchema)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def host_commands(self) -> list[HostCommand]:
        """Configured host commands without their import targets."""
        return [entry.to_host_command() for entry in self.tools.commands]
