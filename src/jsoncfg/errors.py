"""Error types and error formatting utilities for jsoncfg."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class ConfigError(RuntimeError):
    pass


class ConfigIOError(ConfigError):
    """A config file could not be opened, read or written."""

    def __init__(self, message: str, path: Optional[Union[str, Path]] = None) -> None:
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class ConfigPathError(ConfigIOError):
    """No file path is bound to the config."""


class ConfigParseError(ConfigError, ValueError):
    """File content is not a JSON object, or a value does not fit the requested shape."""


class NotFoundError(ConfigError, KeyError):
    """Raised by ``value_as`` when the key is absent."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else ""


class EncodeError(ConfigError, TypeError):
    """Values could not be serialized to JSON."""


def format_config_error(error: Exception) -> str:
    """Format configuration-related error messages."""
    error_str = str(error)

    if isinstance(error, ConfigPathError):
        return (
            "No configuration file given. Please either:\n"
            "  • Pass --file /path/to/config.json, or\n"
            "  • Set CFGCTL_CONFIG=/path/to/config.json"
        )

    if isinstance(error, ConfigParseError):
        return (
            f"Configuration file is not a valid JSON object: {error_str}\n"
            "Fix the file by hand or recreate it with 'cfgctl set --create'."
        )

    if isinstance(error, ConfigIOError):
        where = f" ({error.path})" if error.path else ""
        return f"Could not access configuration file{where}: {error_str}"

    if isinstance(error, NotFoundError):
        return f"Key not found: {error_str}"

    return f"Configuration error: {error_str}"


def suggest_troubleshooting_steps(operation: str, error: Exception) -> list[str]:
    """Suggest troubleshooting steps based on the operation and error."""
    error_str = str(error).lower()
    suggestions = []

    if isinstance(error, ConfigPathError):
        suggestions.extend([
            "Pass the file explicitly with --file",
            "Export CFGCTL_CONFIG with the path to your config file",
            "Run 'cfgctl dirs' to see the standard config locations",
        ])

    elif isinstance(error, ConfigParseError):
        suggestions.extend([
            "Check the file for trailing commas or unquoted keys",
            "Make sure the top-level value is an object ({...}), not a list",
        ])

    elif isinstance(error, ConfigIOError):
        if "permission" in error_str:
            suggestions.append("Check the file and directory permissions")
        if "no such file" in error_str or "not found" in error_str:
            if "set" in operation.lower():
                suggestions.append("Use --create to create the file on first write")
            suggestions.append("Check the file path spelling")
        suggestions.append("Make sure the parent directory exists")

    if not suggestions:
        suggestions.extend([
            "Check the logs with -v/--verbose flag for more details",
            "Verify your configuration file is correct",
        ])

    return suggestions
