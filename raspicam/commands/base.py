"""Capture command interface."""

from __future__ import annotations

import abc


class CaptureCommand(abc.ABC):
    """Abstract base class for prepared capture commands.

    A command is a pure descriptor: rendering it has no side effects and the
    same instance can be captured any number of times.
    """

    name: str
    default_command: str

    @abc.abstractmethod
    def cmd(self) -> str:
        """Return the executable to run."""

    @abc.abstractmethod
    def params(self) -> list[str]:
        """Return the ordered argument tokens, without the executable."""

    def command_line(self) -> list[str]:
        return [self.cmd(), *self.params()]

    def __str__(self) -> str:
        return " ".join(self.params())
