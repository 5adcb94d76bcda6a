"""Video capture command: `raspivid`."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta

from ..camera import Camera, Preview, milliseconds
from . import register_command
from .base import CaptureCommand

DEFAULT_RASPIVID_COMMAND = "raspivid"


@register_command
@dataclass
class Vid(CaptureCommand):
    """Configuration for a `raspivid` capture.

    The stream is written to standard output as raw H.264.
    """

    name = "vid"
    default_command = DEFAULT_RASPIVID_COMMAND

    timeout: timedelta = timedelta(seconds=5)  # length of the recording
    width: int = 1920
    height: int = 1080
    bitrate: int = 17000000  # bits per second
    framerate: int = 30  # fps
    intra_period: int = 0  # key frame rate; 0 leaves the encoder default
    camera: Camera = field(default_factory=Camera)
    preview: Preview = field(default_factory=Preview)

    command: str = ""
    args: list[str] = field(default_factory=list)

    def cmd(self) -> str:
        return self.command or self.default_command

    def params(self) -> list[str]:
        d = _DEFAULT_VID
        out: list[str] = ["--output", "-"]
        if self.timeout != d.timeout:
            out.extend(["--timeout", str(milliseconds(self.timeout))])
        if self.width != d.width:
            out.extend(["--width", str(int(self.width))])
        if self.height != d.height:
            out.extend(["--height", str(int(self.height))])
        if self.bitrate != d.bitrate:
            out.extend(["--bitrate", str(int(self.bitrate))])
        if self.framerate != d.framerate:
            out.extend(["--framerate", str(int(self.framerate))])
        if self.intra_period != d.intra_period:
            out.extend(["--intra", str(int(self.intra_period))])
        out.extend(self.camera.params())
        out.extend(self.preview.params())
        out.extend(self.args)
        return out


_DEFAULT_VID = Vid()


def new_vid() -> Vid:
    """Return a Vid with the defaults of the raspivid command."""

    return Vid()
