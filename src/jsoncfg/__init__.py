"""Simple JSON config files with typed, defaulted access.

Contains the config container, XDG config directory lookup, and error types
shared with the cfgctl command-line tool.
"""

__all__ = [
    "config",
    "errors",
    "locations",
]
