"""Mapping of host parameter types onto the JSON-schema type vocabulary."""

from typing import Literal

SchemaType = Literal["string", "number", "boolean", "array", "object"]

# Python annotation names and the .NET names used by PowerShell-style hosts
_TYPE_MAP: dict[str, SchemaType] = {
    # Python
    "str": "string",
    "bytes": "string",
    "Path": "string",
    "PurePath": "string",
    "int": "number",
    "float": "number",
    "Decimal": "number",
    "bool": "boolean",
    "list": "array",
    "tuple": "array",
    "set": "array",
    "frozenset": "array",
    "Sequence": "array",
    "Iterable": "array",
    "dict": "object",
    "Mapping": "object",
    "Any": "object",
    "object": "object",
    # .NET
    "System.Management.Automation.SwitchParameter": "boolean",
    "System.Management.Automation.PSObject": "object",
    "System.String": "string",
    "System.Int32": "number",
    "System.Int64": "number",
    "System.Double": "number",
    "System.Boolean": "boolean",
    "System.Object[]": "object",
    "System.Collections.Generic.List`1": "object",
    "System.Collections.Hashtable": "object",
    "System.Collections.Generic.Dictionary`2": "object",
}

SCHEMA_TYPES: frozenset[str] = frozenset({"string", "number", "boolean", "array", "object"})


def map_type(native_type_name: str) -> SchemaType:
    """Map a host type name to a JSON-schema type.

    Unknown names map to ``"object"``.

    Args:
        native_type_name: Type name as reported by the command registry,
            e.g. ``"str"``, ``"int"`` or ``"System.String"``.

    Returns:
        One of string, number, boolean, array or object.
    """
    return _TYPE_MAP.get(native_type_name, "object")


def normalize_type(type_name: str) -> SchemaType | None:
    """Resolve a type override to a JSON-schema type.

    Schema type names pass through unchanged and known host type names
    are mapped. Anything else gives ``None``.
    """
    if type_name in SCHEMA_TYPES:
        return type_name  # type: ignore[return-value]
    return _TYPE_MAP.get(type_name)
