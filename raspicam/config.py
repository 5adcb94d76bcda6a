"""Capture configuration files.

A configuration file describes one capture command. Keys mirror the
attribute names of the command classes; anything left out keeps the tool's
default, so it is not emitted on the command line.

Supports JSON by default.
YAML is supported if PyYAML is installed and the file extension is .yml/.yaml.

Schema (all keys optional):
{
  "kind": "still",                 # still | yuv | vid
  "command": "/usr/bin/raspistill",
  "timeout": 2.5,                  # seconds
  "width": 1280,
  "height": 720,
  "quality": 90,
  "encoding": "png",
  "camera": {
    "sharpness": 10,
    "exposure_mode": "night",
    "colour_effects": {"enabled": true, "u": 128, "v": 64},
    "region_of_interest": {"x": 0.25, "y": 0.25, "w": 0.5, "h": 0.5},
    "shutter_speed": 0.008         # seconds
  },
  "preview": {"mode": "nopreview"},
  "args": ["--verbose"]
}
"""

from __future__ import annotations

import json
import logging
from dataclasses import fields, is_dataclass, replace
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Any

from .commands import CaptureCommand, new_command
from .commands.still import Still

log = logging.getLogger(__name__)

DEFAULT_KIND = "still"


class ConfigError(ValueError):
    pass


def _coerce_enum(enum_cls: type[Enum], raw: Any, path: str) -> Enum:
    if isinstance(raw, enum_cls):
        return raw
    text = str(raw)
    for member in enum_cls:
        if member.value == text or member.name == text.upper():
            return member
    choices = ", ".join(m.value for m in enum_cls)
    raise ConfigError(f"{path}: invalid value {raw!r} (expected one of: {choices})")


_TRUE = {"true", "yes", "on", "1"}
_FALSE = {"false", "no", "off", "0"}


def _coerce_bool(raw: Any, path: str) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        word = raw.strip().lower()
        if word in _TRUE:
            return True
        if word in _FALSE:
            return False
    raise ConfigError(f"{path}: invalid boolean {raw!r} (expected true or false)")


def _coerce(current: Any, raw: Any, path: str) -> Any:
    if is_dataclass(current):
        if not isinstance(raw, dict):
            raise ConfigError(f"{path}: expected a mapping, got {type(raw).__name__}")
        return apply_overrides(current, raw, f"{path}.")
    if isinstance(current, Enum):
        return _coerce_enum(type(current), raw, path)
    if isinstance(current, timedelta):
        return timedelta(seconds=float(raw))
    if isinstance(current, list):
        if not isinstance(raw, list):
            raise ConfigError(f"{path}: expected a list, got {type(raw).__name__}")
        return [str(v) for v in raw]
    if isinstance(current, bool):
        return _coerce_bool(raw, path)
    if isinstance(current, int):
        return int(raw)
    if isinstance(current, float):
        return float(raw)
    if isinstance(current, str):
        return str(raw)
    return raw


def apply_overrides(base: Any, overrides: dict[str, Any], path: str = "") -> Any:
    """Return a copy of base with overrides applied for matching dataclass fields.

    Values are coerced to the type of the field they replace. Unknown keys
    are logged and ignored.
    """

    names = {f.name for f in fields(base)}
    for key in overrides:
        if key not in names:
            log.warning("Ignoring unknown config key: %s", f"{path}{key}")

    updates: dict[str, Any] = {}
    for f in fields(base):
        if f.name not in overrides:
            continue
        try:
            updates[f.name] = _coerce(getattr(base, f.name), overrides[f.name], f"{path}{f.name}")
        except ConfigError:
            raise
        except (TypeError, ValueError) as e:
            raise ConfigError(f"{path}{f.name}: {e}") from e

    return replace(base, **updates)


def command_from_dict(raw: dict[str, Any]) -> CaptureCommand:
    """Build a capture command from a parsed config mapping."""

    if not isinstance(raw, dict):
        raise ConfigError("config root must be a mapping")

    raw = dict(raw)
    kind = str(raw.pop("kind", DEFAULT_KIND))
    try:
        base = new_command(kind)
    except ValueError as e:
        raise ConfigError(str(e)) from e

    return apply_overrides(base, raw)


def _read_mapping(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() not in {".yml", ".yaml"}:
        try:
            return json.loads(text) or {}
        except json.JSONDecodeError as e:
            raise ConfigError(f"{path.name}: not valid JSON: {e}") from e

    try:
        import yaml  # type: ignore
    except ImportError as e:  # pragma: no cover
        raise ConfigError(f"{path.name}: YAML configs need PyYAML (pip install 'raspicam[yaml]')") from e
    try:
        return yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"{path.name}: not valid YAML: {e}") from e


def load_config(path: Path | None) -> CaptureCommand:
    """Load a capture command from a JSON or YAML file.

    Returns a default Still when path is None.
    """

    if path is None:
        return Still()

    path = path.expanduser().resolve()
    if not path.is_file():
        raise FileNotFoundError(f"capture config not found: {path}")

    command = command_from_dict(_read_mapping(path))
    log.debug("Loaded %s config from %s", getattr(command, "name", "?"), path)
    return command
