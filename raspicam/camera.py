"""Camera and preview settings shared by every capture command.

Each section renders to command-line tokens with a "changed-from-default"
policy: a flag is emitted only when its field differs from the baseline
instance defined in this module. The baselines mirror the defaults compiled
into the raspicam tools (see RaspiCamControl.c and RaspiPreview.c), so an
unmodified section renders to nothing.

Values are not range-checked. Out-of-range settings are passed through and
left for the executable to reject.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum


class ExposureMode(Enum):
    OFF = "off"
    AUTO = "auto"
    NIGHT = "night"
    NIGHT_PREVIEW = "nightpreview"
    BACKLIGHT = "backlight"
    SPOTLIGHT = "spotlight"
    SPORTS = "sports"
    SNOW = "snow"
    BEACH = "beach"
    VERY_LONG = "verylong"
    FIXED_FPS = "fixedfps"
    ANTISHAKE = "antishake"
    FIREWORKS = "fireworks"


class MeteringMode(Enum):
    AVERAGE = "average"
    SPOT = "spot"
    BACKLIT = "backlit"
    MATRIX = "matrix"


class AWBMode(Enum):
    OFF = "off"
    AUTO = "auto"
    SUNLIGHT = "sun"
    CLOUDY = "cloud"
    SHADE = "shade"
    TUNGSTEN = "tungsten"
    FLUORESCENT = "fluorescent"
    INCANDESCENT = "incandescent"
    FLASH = "flash"
    HORIZON = "horizon"


class ImageFX(Enum):
    NONE = "none"
    NEGATIVE = "negative"
    SOLARISE = "solarise"
    SKETCH = "sketch"
    DENOISE = "denoise"
    EMBOSS = "emboss"
    OILPAINT = "oilpaint"
    HATCH = "hatch"
    GPEN = "gpen"
    PASTEL = "pastel"
    WATERCOLOUR = "watercolour"
    FILM = "film"
    BLUR = "blur"
    SATURATION = "saturation"
    COLOURSWAP = "colourswap"
    WASHEDOUT = "washedout"
    POSTERISE = "posterise"
    COLOURPOINT = "colourpoint"
    COLOURBALANCE = "colourbalance"
    CARTOON = "cartoon"


class PreviewMode(Enum):
    FULLSCREEN = "fullscreen"
    WINDOW = "preview"
    DISABLED = "nopreview"


def milliseconds(d: timedelta) -> int:
    """Whole milliseconds in d, truncated toward zero."""

    return int(d / timedelta(milliseconds=1))


def microseconds(d: timedelta) -> int:
    return int(d / timedelta(microseconds=1))


def _number(v: float) -> str:
    v = float(v)
    if v.is_integer():
        return str(int(v))
    return repr(v)


@dataclass(frozen=True)
class ColourFX:
    """Fixed U/V chroma values applied when enabled."""

    enabled: bool = False
    u: int = 128
    v: int = 128

    def __str__(self) -> str:
        return f"{self.u}:{self.v}"


@dataclass(frozen=True)
class FloatRect:
    """Rectangle normalised to [0.0, 1.0]."""

    x: float = 0.0
    y: float = 0.0
    w: float = 1.0
    h: float = 1.0

    def __str__(self) -> str:
        return ",".join(_number(n) for n in (self.x, self.y, self.w, self.h))


@dataclass(frozen=True)
class Rect:
    x: int = 0
    y: int = 0
    width: int = 1024
    height: int = 768

    def __str__(self) -> str:
        return f"{self.x},{self.y},{self.width},{self.height}"


@dataclass
class Camera:
    sharpness: int = 0  # -100 to 100
    contrast: int = 0  # -100 to 100
    brightness: int = 50  # 0 to 100
    saturation: int = 0  # -100 to 100
    iso: int = 400
    video_stabilisation: bool = False
    exposure_compensation: int = 0  # -10 to 10
    exposure_mode: ExposureMode = ExposureMode.AUTO
    metering_mode: MeteringMode = MeteringMode.AVERAGE
    awb_mode: AWBMode = AWBMode.AUTO
    image_effect: ImageFX = ImageFX.NONE
    colour_effects: ColourFX = field(default_factory=ColourFX)
    rotation: int = 0  # 0 to 359
    hflip: bool = False
    vflip: bool = False
    region_of_interest: FloatRect = field(default_factory=FloatRect)
    shutter_speed: timedelta = timedelta(0)

    def params(self) -> list[str]:
        return camera_params(self)

    def __str__(self) -> str:
        return " ".join(self.params())


@dataclass
class Preview:
    mode: PreviewMode = PreviewMode.FULLSCREEN
    opacity: int = 255  # 0 = transparent, 255 = opaque
    rect: Rect = field(default_factory=Rect)  # used when mode is WINDOW

    def params(self) -> list[str]:
        return preview_params(self)

    def __str__(self) -> str:
        return " ".join(self.params())


_DEFAULT_CAMERA = Camera()
_DEFAULT_PREVIEW = Preview()


def camera_params(c: Camera) -> list[str]:
    d = _DEFAULT_CAMERA
    out: list[str] = []

    if c.sharpness != d.sharpness:
        out.extend(["--sharpness", str(int(c.sharpness))])
    if c.contrast != d.contrast:
        out.extend(["--contrast", str(int(c.contrast))])
    if c.brightness != d.brightness:
        out.extend(["--brightness", str(int(c.brightness))])
    if c.saturation != d.saturation:
        out.extend(["--saturation", str(int(c.saturation))])
    if c.iso != d.iso:
        out.extend(["--ISO", str(int(c.iso))])
    if c.video_stabilisation:
        out.append("--vstab")
    if c.exposure_compensation != d.exposure_compensation:
        out.extend(["--ev", str(int(c.exposure_compensation))])
    if c.exposure_mode != d.exposure_mode:
        out.extend(["--exposure", c.exposure_mode.value])
    if c.metering_mode != d.metering_mode:
        out.extend(["--metering", c.metering_mode.value])
    if c.awb_mode != d.awb_mode:
        out.extend(["--awb", c.awb_mode.value])
    if c.image_effect != d.image_effect:
        out.extend(["--imxfx", c.image_effect.value])
    if c.colour_effects.enabled:
        out.extend(["--colfx", str(c.colour_effects)])
    if c.rotation != d.rotation:
        out.extend(["--rotation", str(int(c.rotation))])
    if c.hflip:
        out.append("--hflip")
    if c.vflip:
        out.append("--vflip")
    if c.region_of_interest != d.region_of_interest:
        out.extend(["--roi", str(c.region_of_interest)])
    if c.shutter_speed != d.shutter_speed:
        # The tools take the shutter speed in microseconds.
        out.extend(["--shutter", str(microseconds(c.shutter_speed))])

    return out


def preview_params(p: Preview) -> list[str]:
    d = _DEFAULT_PREVIEW
    out: list[str] = []

    if p.mode is PreviewMode.WINDOW:
        out.extend(["--" + p.mode.value, str(p.rect)])
    elif p.mode != d.mode:
        out.append("--" + p.mode.value)

    if p.opacity != d.opacity:
        out.extend(["--opacity", str(int(p.opacity))])

    return out
