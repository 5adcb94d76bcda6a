"""raspicam

Configure and run the Raspberry Pi camera tools (raspistill, raspiyuv,
raspivid), streaming the captured data into any writable sink.

All captures are prepared by first creating a CaptureCommand (Still,
StillYUV or Vid). capture() then runs it, copies the image or video into a
sink, and reports every problem as an ErrorEvent on an error channel that it
closes when the run is over:

    errors = ErrorChannel()
    with open("photo.jpg", "wb") as f:
        capture(Still(width=1280, height=720), f, errors)
    for event in errors:
        print(event)

Primary entrypoints:
- python -m raspicam.cli
- console script: raspicam
"""

from __future__ import annotations

from .camera import (
    AWBMode,
    Camera,
    ColourFX,
    ExposureMode,
    FloatRect,
    ImageFX,
    MeteringMode,
    Preview,
    PreviewMode,
    Rect,
)
from .capture import (
    BackgroundCapture,
    CaptureError,
    ChannelClosed,
    ErrorChannel,
    ErrorEvent,
    EventKind,
    EventSink,
    Sink,
    capture,
    capture_bytes,
    run_capture,
    start_capture,
)
from .commands import CaptureCommand
from .commands.still import Encoding, Still, StillYUV, new_still, new_still_yuv
from .commands.vid import Vid, new_vid

__all__ = [
    "AWBMode",
    "BackgroundCapture",
    "Camera",
    "CaptureCommand",
    "CaptureError",
    "ChannelClosed",
    "ColourFX",
    "Encoding",
    "ErrorChannel",
    "ErrorEvent",
    "EventKind",
    "EventSink",
    "ExposureMode",
    "FloatRect",
    "ImageFX",
    "MeteringMode",
    "Preview",
    "PreviewMode",
    "Rect",
    "Sink",
    "Still",
    "StillYUV",
    "Vid",
    "__version__",
    "capture",
    "capture_bytes",
    "new_still",
    "new_still_yuv",
    "new_vid",
    "run_capture",
    "start_capture",
]

__version__ = "0.1.0"
