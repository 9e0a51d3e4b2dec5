"""A simple JSON config file: load it, read typed values with defaults, write it back.

The file holds one JSON object. Every top-level key is a config entry and its
value may be any JSON value. Files are meant to be easy to read and edit by hand,
so writes are always indented.

A :class:`Config` is not safe for concurrent mutation. Callers that share one
across threads must hold their own lock around reads, writes and ``save()``.
"""

from __future__ import annotations

import contextlib
import copy
import dataclasses
import json
import logging
import math
import os
import tempfile
import types
import typing
from pathlib import Path
from typing import Any, Dict, KeysView, List, Optional, Union

from .errors import (
    ConfigError,
    ConfigIOError,
    ConfigParseError,
    ConfigPathError,
    EncodeError,
    NotFoundError,
)

log = logging.getLogger(__name__)

PathArg = Union[str, "os.PathLike[str]"]

_INDENT = 4
_NEW_FILE_MODE = 0o644


def file_exists(path: PathArg) -> bool:
    """Report whether ``path`` should be treated as an existing file.

    Only "not found" counts as missing. Any other open failure (permission
    denied, a directory in the way) reports the file as present, so
    ``load_or_create`` never overwrites something it could not read.
    """
    try:
        with open(path, "rb"):
            pass
    except FileNotFoundError:
        return False
    except OSError:
        return True
    return True


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def _parse_number(text: str) -> float:
    # every JSON number is a double; literals past its range are rejected
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number out of range: {text[:32]}")
    return value


def _for_json(value: Any) -> Any:
    """Copy of ``value`` with whole floats written as integers (``8080``, not ``8080.0``)."""
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return int(value)
    if isinstance(value, dict):
        return {k: _for_json(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_for_json(v) for v in value]
    return value


class Config:
    """In-memory view of one JSON config file.

    Use :meth:`load` for a file that must already exist, or
    :meth:`load_or_create` to create it on first run. A config created by
    ``load_or_create`` runs in auto-persist mode: the first time a typed getter
    falls back to its default for a missing key, the default is stored and the
    file is rewritten, so the file ends up listing every setting the program
    reads.
    """

    def __init__(
        self,
        path: Optional[PathArg] = None,
        values: Optional[Dict[str, Any]] = None,
        *,
        auto_persist: bool = False,
    ) -> None:
        self._path: Optional[Path] = Path(path) if path not in (None, "") else None
        self._values: Dict[str, Any] = copy.deepcopy(dict(values)) if values else {}
        self._auto_persist = auto_persist

    # -- construction -------------------------------------------------------

    @classmethod
    def load(cls, path: PathArg) -> "Config":
        """Load the config file at ``path``.

        Raises ConfigIOError if the file cannot be read and ConfigParseError if it
        is not valid JSON or its top-level value is not an object.
        """
        cfg = cls(path)
        cfg.reload()
        return cfg

    @classmethod
    def load_or_create(cls, path: PathArg) -> "Config":
        """Load ``path``, or create it holding ``{}`` if it does not exist yet.

        A newly created config has auto-persist enabled. Raises ConfigIOError if
        the new file cannot be written.
        """
        if file_exists(path):
            return cls.load(path)
        cfg = cls(path, auto_persist=True)
        cfg.save()
        log.info("Created config file %s", cfg.path)
        return cfg

    # -- properties ---------------------------------------------------------

    @property
    def path(self) -> Optional[Path]:
        return self._path

    @property
    def auto_persist(self) -> bool:
        return self._auto_persist

    def file_exists(self) -> bool:
        if self._path is None:
            return False
        return file_exists(self._path)

    # -- reading ------------------------------------------------------------

    def reload(self) -> None:
        """Replace the in-memory values with the current file contents."""
        path = self._require_path("load")
        try:
            raw = path.read_bytes()
        except OSError as e:
            raise ConfigIOError(f"cannot read {path}: {e.strerror or e}", path) from e

        try:
            data = json.loads(
                raw.decode("utf-8"),
                parse_int=_parse_number,
                parse_float=_parse_number,
                parse_constant=_reject_constant,
            )
        except (UnicodeDecodeError, ValueError) as e:
            raise ConfigParseError(f"{path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigParseError(
                f"{path}: top-level JSON value must be an object, got {_json_type(data)}"
            )
        self._values = data
        log.debug("Loaded %d keys from %s", len(data), path)

    def value(self, name: str, default: Any = None) -> Any:
        """Return the raw value stored under ``name``, or ``default`` if absent.

        Arrays and objects come back as copies. Never auto-persists.
        """
        if name not in self._values:
            return default
        return copy.deepcopy(self._values[name])

    def value_as(self, name: str, shape: Any) -> Any:
        """Decode the value stored under ``name`` into ``shape``.

        ``shape`` may be a dataclass, a builtin JSON type (``bool``, ``int``,
        ``float``, ``str``, ``list``, ``dict``), a parameterized ``list[...]``,
        ``tuple[...]`` or ``dict[str, ...]``, an ``Optional``/union of those,
        or ``Any``. Dataclass fields missing from the value keep their defaults;
        keys without a matching field are ignored.

        Raises NotFoundError if ``name`` is absent and ConfigParseError if the
        value does not fit ``shape``.
        """
        if name not in self._values:
            raise NotFoundError(f"value not found: {name}")
        try:
            data = json.loads(json.dumps(self._values[name], allow_nan=False))
        except (TypeError, ValueError) as e:
            raise EncodeError(f"cannot encode value {name!r}: {e}") from e
        return _decode(data, shape, name)

    def get_int(self, name: str, default: int) -> int:
        value = self._values.get(name)
        if _is_number(value) and math.isfinite(value):
            return int(value)
        return self._defaulted(name, default)

    def get_float(self, name: str, default: float) -> float:
        value = self._values.get(name)
        if _is_number(value):
            try:
                return float(value)
            except OverflowError:
                # an int set in code that no double can hold
                pass
        return self._defaulted(name, default)

    def get_str(self, name: str, default: str) -> str:
        value = self._values.get(name)
        if isinstance(value, str):
            return value
        return self._defaulted(name, default)

    def get_bool(self, name: str, default: bool) -> bool:
        value = self._values.get(name)
        if isinstance(value, bool):
            return value
        return self._defaulted(name, default)

    def _defaulted(self, name: str, default: Any) -> Any:
        # Only absent keys are written back; a value of the wrong type is left alone.
        if self._auto_persist and name not in self._values:
            self._values[name] = default
            try:
                self.save()
            except ConfigError as e:
                log.warning("Could not persist default for %r to %s: %s", name, self._path, e)
            else:
                log.info("Persisted default %s=%r to %s", name, default, self._path)
        return default

    def keys(self) -> KeysView[str]:
        return self._values.keys()

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._values)

    def to_json(self) -> str:
        try:
            return json.dumps(
                _for_json(self._values), indent=_INDENT, ensure_ascii=False, allow_nan=False
            )
        except (TypeError, ValueError) as e:
            raise EncodeError(f"cannot encode config values: {e}") from e

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Config(path={str(self._path)!r}, keys={len(self._values)}, auto_persist={self._auto_persist})"

    # -- writing ------------------------------------------------------------

    def set_value(self, name: str, value: Any) -> None:
        """Set ``name`` to ``value`` in memory. Call :meth:`save` to write it out."""
        self._values[name] = copy.deepcopy(value)

    def save(self) -> None:
        """Write all values to the bound file as indented JSON.

        The file is written to a temporary sibling and moved into place. A
        symlinked path is followed, so the link stays and its target is updated.
        """
        path = self._require_path("save")
        text = self.to_json() + "\n"
        target = path.resolve()

        mode = _NEW_FILE_MODE
        with contextlib.suppress(OSError):
            mode = target.stat().st_mode & 0o777

        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
            )
        except OSError as e:
            raise ConfigIOError(f"cannot write {path}: {e.strerror or e}", path) from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(text)
            os.chmod(tmp_path, mode)
            os.replace(tmp_path, target)
        except OSError as e:
            raise ConfigIOError(f"cannot write {path}: {e.strerror or e}", path) from e
        finally:
            if os.path.exists(tmp_path):
                with contextlib.suppress(OSError):
                    os.remove(tmp_path)
        log.debug("Wrote %d keys to %s", len(self._values), path)

    write = save

    def _require_path(self, operation: str) -> Path:
        if self._path is None:
            raise ConfigPathError(f"cannot {operation} config: no file path set")
        return self._path


def load_config(path: PathArg) -> Config:
    return Config.load(path)


def load_or_create(path: PathArg) -> Config:
    return Config.load_or_create(path)


# -- value_as decoding ------------------------------------------------------


def _mismatch(data: Any, shape: Any, where: str) -> ConfigParseError:
    name = getattr(shape, "__name__", None) or repr(shape)
    return ConfigParseError(f"{where}: cannot decode JSON {_json_type(data)} into {name}")


def _decode(data: Any, shape: Any, where: str) -> Any:
    if shape is Any or shape is object:
        return data

    origin = typing.get_origin(shape)
    args = typing.get_args(shape)

    if origin is Union or origin is types.UnionType:
        for option in args:
            try:
                return _decode(data, option, where)
            except ConfigParseError:
                continue
        raise _mismatch(data, shape, where)

    if shape is None or shape is type(None):
        if data is None:
            return None
        raise _mismatch(data, shape, where)

    if shape is list or origin is list:
        if not isinstance(data, list):
            raise _mismatch(data, shape, where)
        item = args[0] if args else Any
        return [_decode(v, item, f"{where}[{i}]") for i, v in enumerate(data)]

    if shape is tuple or origin is tuple:
        if not isinstance(data, list):
            raise _mismatch(data, shape, where)
        if not args or (len(args) == 2 and args[1] is Ellipsis):
            item = args[0] if args else Any
            return tuple(_decode(v, item, f"{where}[{i}]") for i, v in enumerate(data))
        if len(args) != len(data):
            raise ConfigParseError(f"{where}: expected {len(args)} items, got {len(data)}")
        return tuple(_decode(v, a, f"{where}[{i}]") for i, (v, a) in enumerate(zip(data, args)))

    if shape is dict or origin is dict:
        if not isinstance(data, dict):
            raise _mismatch(data, shape, where)
        value_shape = args[1] if len(args) == 2 else Any
        return {k: _decode(v, value_shape, f"{where}.{k}") for k, v in data.items()}

    if isinstance(shape, type) and dataclasses.is_dataclass(shape):
        return _decode_dataclass(data, shape, where)

    if shape is bool:
        if isinstance(data, bool):
            return data
    elif shape is int:
        if isinstance(data, int) and not isinstance(data, bool):
            return data
        if isinstance(data, float) and data.is_integer():
            return int(data)
    elif shape is float:
        if _is_number(data):
            return float(data)
    elif shape is str:
        if isinstance(data, str):
            return data
    elif isinstance(shape, type):
        if isinstance(data, shape):
            return data
    else:
        raise TypeError(f"unsupported shape for value_as: {shape!r}")

    raise _mismatch(data, shape, where)


def _decode_dataclass(data: Any, shape: type, where: str) -> Any:
    if not isinstance(data, dict):
        raise _mismatch(data, shape, where)

    hints = typing.get_type_hints(shape)
    kwargs: Dict[str, Any] = {}
    missing: List[str] = []
    for f in dataclasses.fields(shape):
        if not f.init:
            continue
        if f.name in data:
            kwargs[f.name] = _decode(data[f.name], hints.get(f.name, Any), f"{where}.{f.name}")
        elif f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            missing.append(f.name)

    if missing:
        raise ConfigParseError(f"{where}: missing required field(s): {', '.join(missing)}")
    return shape(**kwargs)
