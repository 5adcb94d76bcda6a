"""Capture command registry and factory.

Commands register via the @register_command decorator.
The factory auto-discovers modules within raspicam.commands.

new_command() always returns a *new* instance built from the class defaults,
so callers can mutate it freely.
"""

from __future__ import annotations

import importlib
import pkgutil

from .base import CaptureCommand


_REGISTRY: dict[str, type[CaptureCommand]] = {}


def register_command(cls: type[CaptureCommand]) -> type[CaptureCommand]:
    name = getattr(cls, "name", None)
    if not isinstance(name, str) or not name:
        raise ValueError(f"{cls.__qualname__} needs a config kind in 'name', e.g. 'still'")
    existing = _REGISTRY.get(name)
    if existing is not None and existing is not cls:
        raise ValueError(f"capture kind {name!r} is already taken by {existing.__qualname__}")
    _REGISTRY[name] = cls
    return cls


def _auto_import_plugins() -> None:
    # One module per camera tool (still.py, vid.py); importing it registers its kinds.
    for tool in pkgutil.iter_modules(__path__):  # type: ignore[name-defined]
        if not tool.ispkg and tool.name != "base":
            importlib.import_module(f"{__name__}.{tool.name}")


def available_commands() -> list[str]:
    _auto_import_plugins()
    return sorted(_REGISTRY)


def get_command_class(name: str) -> type[CaptureCommand]:
    _auto_import_plugins()
    try:
        return _REGISTRY[name]
    except KeyError:
        known = ", ".join(sorted(_REGISTRY))
        raise ValueError(f"Unknown capture command {name!r} (known: {known})") from None


def new_command(name: str) -> CaptureCommand:
    return get_command_class(name)()


__all__ = [
    "CaptureCommand",
    "available_commands",
    "get_command_class",
    "new_command",
    "register_command",
]
