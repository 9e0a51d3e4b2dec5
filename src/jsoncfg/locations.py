"""Candidate config directories following the XDG base directory convention.

See http://standards.freedesktop.org/basedir-spec/basedir-spec-latest.html
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import List, Optional

DEFAULT_SYSTEM_DIRS = ("/usr/local/etc/xdg", "/usr/local/etc")


def _home_dir() -> Optional[Path]:
    try:
        return Path.home()
    except (RuntimeError, KeyError):
        # no HOME and no password database entry for this uid
        return None


def user_config_dirs() -> List[Path]:
    """Per-user config directories, most specific first.

    ``$XDG_CONFIG_HOME`` wins when set and non-empty. Otherwise this is
    ``~/.config``, or an empty list if the current user has no home directory.
    """
    override = os.environ.get("XDG_CONFIG_HOME")
    if override:
        return [Path(override)]

    home = _home_dir()
    if home is None:
        return []
    return [home / ".config"]


def system_config_dirs() -> List[Path]:
    """System-wide config directories in priority order, without duplicates.

    Entries from ``$XDG_CONFIG_DIRS`` come first, in the order given. Built-in
    defaults the override does not already list are appended after them.
    """
    env_dirs = os.environ.get("XDG_CONFIG_DIRS")
    if not env_dirs:
        return [Path(d) for d in DEFAULT_SYSTEM_DIRS]

    locations: List[str] = []
    for entry in env_dirs.split(":"):
        if not entry:
            continue
        # normpath keeps a leading "//"; collapse it like any other repeated slash
        cleaned = re.sub(r"^/+", "/", os.path.normpath(entry))
        if cleaned not in locations:
            locations.append(cleaned)

    for default in DEFAULT_SYSTEM_DIRS:
        if default not in locations:
            locations.append(default)

    return [Path(d) for d in locations]


def config_file_candidates(app: str, filename: str = "config.json") -> List[Path]:
    """Paths ``<dir>/<app>/<filename>`` for every user dir, then every system dir."""
    return [d / app / filename for d in user_config_dirs() + system_config_dirs()]


def find_config_file(app: str, filename: str = "config.json") -> Optional[Path]:
    """Return the first existing candidate from :func:`config_file_candidates`."""
    for candidate in config_file_candidates(app, filename):
        if candidate.is_file():
            return candidate
    return None
