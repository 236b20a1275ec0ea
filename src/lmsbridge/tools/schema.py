"""Build LLM function schemas from host command definitions."""

import logging
from collections.abc import Iterable, Sequence

from lmsbridge.tools.invocable import BoundCommand
from lmsbridge.tools.models import (
    AllowedParam,
    FunctionDescriptor,
    FunctionParameters,
    HostCommand,
    PropertySchema,
)
from lmsbridge.tools.registry import (
    CommandMetadata,
    CommandNotFoundError,
    CommandRegistry,
    ParameterInfo,
)
from lmsbridge.tools.types import map_type, normalize_type

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "No description available."


def normalize_names(names: Iterable[str]) -> frozenset[str]:
    """Casefold a collection of command names for membership tests."""
    return frozenset(name.casefold() for name in names)


class FunctionSchemaBuilder:
    """Turns HostCommand definitions into FunctionDescriptors.

    Only allow-listed parameters are exposed. Commands that cannot be
    resolved against the registry are skipped with a warning so that one
    bad definition does not take the whole tool set down.
    """

    def __init__(self, registry: CommandRegistry, no_confirmation: Iterable[str] = ()):
        """Initialize the builder.

        Args:
            registry: Registry used to resolve command names
            no_confirmation: Command names that never need user confirmation
        """
        self.registry = registry
        self.no_confirmation = normalize_names(no_confirmation)

    def build(self, host_commands: Sequence[HostCommand]) -> list[FunctionDescriptor]:
        """Build descriptors for all resolvable commands, preserving order."""
        descriptors = []
        for host_command in host_commands:
            try:
                descriptors.append(self.build_one(host_command))
            except CommandNotFoundError:
                logger.warning(f"Skipping host command that cannot be resolved: {host_command.name}")
        return descriptors

    def build_one(self, host_command: HostCommand) -> FunctionDescriptor:
        """Build the descriptor for a single command.

        Raises:
            CommandNotFoundError: If the command is not registered
        """
        metadata = self.registry.resolve(host_command.name)

        properties: dict[str, PropertySchema] = {}
        required: list[str] = []

        for param in metadata.parameters:
            allowed = host_command.find_allowed(param.name)
            if allowed is None:
                if param.mandatory:
                    logger.warning(
                        f"Mandatory parameter '{param.name}' of '{metadata.qualified_name}' "
                        f"is not allow-listed; calls to this function cannot succeed"
                    )
                continue

            properties[param.name] = self._build_property(param, allowed, metadata)
            if param.mandatory:
                required.append(param.name)

        return FunctionDescriptor(
            name=metadata.name,
            module=metadata.module,
            description=self._describe(host_command, metadata),
            parameters=FunctionParameters(properties=properties, required=required),
            user_confirmation_required=self._requires_confirmation(metadata),
            callback=BoundCommand(metadata),
        )

    def _build_property(
        self, param: ParameterInfo, allowed: AllowedParam, metadata: CommandMetadata
    ) -> PropertySchema:
        schema_type = normalize_type(allowed.type) if allowed.type else None
        if allowed.type and schema_type is None:
            logger.warning(
                f"Unknown type override '{allowed.type}' for parameter '{param.name}' "
                f"of '{metadata.qualified_name}'; using the declared type"
            )
        schema = PropertySchema(type=schema_type or map_type(param.native_type))

        if param.enum_values:
            schema.type = "string"
            schema.enum = list(param.enum_values)

        # Help lookup is best-effort
        try:
            help_text = metadata.get_parameter_help(param.name)
        except Exception as e:
            logger.debug(f"No help for parameter '{param.name}' of {metadata.qualified_name}: {e}")
            help_text = None
        if help_text:
            schema.description = help_text

        return schema

    def _describe(self, host_command: HostCommand, metadata: CommandMetadata) -> str:
        if host_command.description:
            return host_command.description
        if metadata.description:
            return metadata.description
        try:
            help_text = metadata.get_help()
        except Exception as e:
            logger.debug(f"No help for {metadata.qualified_name}: {e}")
            help_text = None
        return help_text or DEFAULT_DESCRIPTION

    def _requires_confirmation(self, metadata: CommandMetadata) -> bool:
        names = {metadata.name.casefold(), metadata.qualified_name.casefold()}
        return not (names & self.no_confirmation)
