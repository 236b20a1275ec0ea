"""
Configuration merger for lmsbridge.

Implements deep merge with list append/remove operations (+/- key prefixes).
"""

from typing import Any


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Merge rules:
    - Scalars and lists: override replaces base
    - Dicts: merged recursively
    - ``+key`` with a list: items appended to ``key`` (duplicates skipped)
    - ``-key`` with a list: items removed from ``key``
    - ``None`` value: key removed from the result

    Args:
        base: Base configuration dictionary.
        override: Override configuration dictionary.

    Returns:
        A new merged dictionary; neither input is modified.

    Examples:
        >>> deep_merge({"tools": {"no_confirmation": ["A"]}},
        ...            {"tools": {"+no_confirmation": ["B"]}})
        {'tools': {'no_confirmation': ['A', 'B']}}
    """
    result = dict(base)

    for key, value in override.items():
        prefix, name = key[:1], key[1:]

        if prefix == "+" and isinstance(value, list):
            existing = result.get(name)
            if isinstance(existing, list):
                result[name] = existing + [item for item in value if item not in existing]
            else:
                result[name] = list(value)

        elif prefix == "-" and isinstance(value, list):
            existing = result.get(name)
            if isinstance(existing, list):
                result[name] = [item for item in existing if item not in value]

        elif value is None:
            result.pop(key, None)

        elif isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)

        else:
            result[key] = value

    return result


def set_nested_value(config: dict[str, Any], key_path: str, value: Any) -> dict[str, Any]:
    """
    Set a value at a dot-separated key path, creating dicts as needed.

    Args:
        config: Configuration dictionary (modified in place).
        key_path: Dot-separated path, e.g. ``"server.base_url"``.
        value: Value to set.

    Returns:
        The modified dictionary.
    """
    *parents, leaf = key_path.split(".")
    current = config

    for key in parents:
        if not isinstance(current.get(key), dict):
            current[key] = {}
        current = current[key]

    current[leaf] = value
    return config
