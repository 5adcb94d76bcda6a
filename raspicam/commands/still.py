"""Still capture commands: `raspistill` and `raspiyuv`.

Both tools share the options described by BaseStill (see RaspiStill.c and
RaspiStillYUV.c). The image is always written to standard output
(`--output -`); everything else is emitted only when it differs from the
tool's compiled-in default.

Rendering order:
- output, timeout, width, height
- camera section
- preview section
- tool-specific options (quality/raw/encoding, or rgb)
- extra args, verbatim
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum

from ..camera import Camera, Preview, milliseconds
from . import register_command
from .base import CaptureCommand

DEFAULT_RASPISTILL_COMMAND = "raspistill"
DEFAULT_RASPIYUV_COMMAND = "raspiyuv"


class Encoding(Enum):
    JPEG = "jpg"
    BMP = "bmp"
    GIF = "gif"
    PNG = "png"


@dataclass
class BaseStill(CaptureCommand):
    """Options common to Still and StillYUV."""

    timeout: timedelta = timedelta(seconds=5)  # delay before the image is taken
    width: int = 2592
    height: int = 1944
    camera: Camera = field(default_factory=Camera)
    preview: Preview = field(default_factory=Preview)

    # Executable to run. Empty means the class default.
    command: str = ""

    # Additional arguments, appended last.
    args: list[str] = field(default_factory=list)

    def cmd(self) -> str:
        return self.command or self.default_command

    def _base_params(self, d: BaseStill) -> list[str]:
        out: list[str] = ["--output", "-"]
        if self.timeout != d.timeout:
            out.extend(["--timeout", str(milliseconds(self.timeout))])
        if self.width != d.width:
            out.extend(["--width", str(int(self.width))])
        if self.height != d.height:
            out.extend(["--height", str(int(self.height))])
        out.extend(self.camera.params())
        out.extend(self.preview.params())
        return out


@register_command
@dataclass
class Still(BaseStill):
    """Configuration for a `raspistill` capture."""

    name = "still"
    default_command = DEFAULT_RASPISTILL_COMMAND

    quality: int = 85  # for lossy encodings
    raw: bool = False  # append raw Bayer data to the JPEG metadata
    encoding: Encoding = Encoding.JPEG

    def params(self) -> list[str]:
        d = _DEFAULT_STILL
        out = self._base_params(d)
        if self.quality != d.quality:
            out.extend(["--quality", str(int(self.quality))])
        if self.raw:
            out.append("--raw")
        if self.encoding != d.encoding:
            out.extend(["--encoding", self.encoding.value])
        out.extend(self.args)
        return out


@register_command
@dataclass
class StillYUV(BaseStill):
    """Configuration for a `raspiyuv` capture."""

    name = "yuv"
    default_command = DEFAULT_RASPIYUV_COMMAND

    use_rgb: bool = False  # output RGB data rather than YUV

    def params(self) -> list[str]:
        out = self._base_params(_DEFAULT_STILL_YUV)
        if self.use_rgb:
            out.append("--rgb")
        out.extend(self.args)
        return out


_DEFAULT_STILL = Still()
_DEFAULT_STILL_YUV = StillYUV()


def new_still() -> Still:
    """Return a Still with the defaults of the raspistill command."""

    return Still()


def new_still_yuv() -> StillYUV:
    return StillYUV()
