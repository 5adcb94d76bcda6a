"""Capture runner.

run_capture() executes one capture command to completion. Standard output is
copied, byte for byte, into a caller-supplied sink; standard error is scanned
line by line on a separate thread and every line is forwarded as an
ErrorEvent.

Faults never raise out of run_capture(). Each one is delivered on the error
channel, and the channel is closed exactly once, as the very last action of
the invocation. A closed channel that carried no events means the capture
succeeded.
"""

from __future__ import annotations

import io
import logging
import os
import queue
import signal
import subprocess
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, BinaryIO, Iterator, Protocol, Sequence

from .commands.base import CaptureCommand

log = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


class EventKind(Enum):
    SETUP = "setup"  # pipes for stdout/stderr could not be created
    LAUNCH = "launch"  # the process did not start
    DIAGNOSTIC = "diagnostic"  # one line of standard error
    TRANSPORT = "transport"  # reading standard error failed
    COPY = "copy"  # reading standard output or writing the sink failed
    EXIT = "exit"  # abnormal exit, or the wait itself failed


@dataclass(frozen=True)
class ErrorEvent:
    """A forwarded diagnostic line or a lifecycle fault of one capture.

    For DIAGNOSTIC events `text` is the raw line without its terminator.
    For every other kind `text` is the complete message, e.g.
    "starting: ..." or "waiting: exit status 1".
    """

    kind: EventKind
    command: str
    text: str
    cause: BaseException | None = field(default=None, compare=False)

    @property
    def is_diagnostic(self) -> bool:
        return self.kind is EventKind.DIAGNOSTIC

    def __str__(self) -> str:
        if self.is_diagnostic:
            return f"{self.command}: {self.text}"
        return self.text


class Sink(Protocol):
    """Destination of the captured bytes. Owned, and closed, by the caller."""

    def write(self, data: bytes, /) -> Any: ...


class EventSink(Protocol):
    """Receiver of ErrorEvents. ErrorChannel is the stock implementation."""

    def put(self, event: ErrorEvent, /) -> None: ...

    def close(self) -> None: ...


class ChannelClosed(RuntimeError):
    pass


_CLOSED = object()


class ErrorChannel:
    """Unbounded, thread-safe conduit of ErrorEvents.

    Any number of threads may put(); close() may be called once. Iterating
    blocks until the channel is closed and yields every event in arrival
    order.
    """

    def __init__(self) -> None:
        self._queue: queue.Queue[Any] = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def put(self, event: ErrorEvent) -> None:
        with self._lock:
            if self._closed:
                raise ChannelClosed("put on a closed error channel")
            self._queue.put(event)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                raise ChannelClosed("error channel already closed")
            self._closed = True
            self._queue.put(_CLOSED)

    def __iter__(self) -> Iterator[ErrorEvent]:
        while True:
            item = self._queue.get()
            if item is _CLOSED:
                # Leave the marker in place for other readers.
                self._queue.put(_CLOSED)
                return
            yield item

    def drain(self) -> list[ErrorEvent]:
        """Block until closed and return all remaining events."""

        return list(self)


class CaptureState(Enum):
    INIT = "init"
    STREAMS_ACQUIRED = "streams_acquired"
    STARTED = "started"
    RUNNING = "running"
    DRAINING = "draining"
    CLOSED = "closed"


def _open_pipe() -> tuple[BinaryIO, int]:
    r, w = os.pipe()
    return os.fdopen(r, "rb"), w


def _decode_line(raw: bytes) -> str:
    # Drop the terminator ("\n" or "\r\n") and nothing else.
    if raw.endswith(b"\n"):
        raw = raw[:-1]
    if raw.endswith(b"\r"):
        raw = raw[:-1]
    return raw.decode("utf-8", errors="replace")


def _write_all(sink: Sink, data: bytes) -> None:
    while data:
        n = sink.write(data)
        if n is None:
            # Buffered writers and plain callables consume everything.
            return
        if n <= 0:
            raise OSError("short write")
        data = data[n:]


def _signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return str(signum)


class _Invocation:
    """State of a single run_capture() call."""

    def __init__(self, argv: list[str], sink: Sink, errors: EventSink, chunk_size: int) -> None:
        self.argv = argv
        self.command = argv[0]
        self.sink = sink
        self.errors = errors
        self.chunk_size = chunk_size
        self.state = CaptureState.INIT
        self._scanned: threading.Event | None = None

    def _enter(self, state: CaptureState) -> None:
        log.debug("%s: %s -> %s", self.command, self.state.value, state.value)
        self.state = state

    def _report(self, kind: EventKind, text: str, cause: BaseException | None = None) -> None:
        self.errors.put(ErrorEvent(kind=kind, command=self.command, text=text, cause=cause))

    def run(self) -> None:
        try:
            self._run()
        finally:
            if self._scanned is not None:
                self._scanned.wait()
            self._enter(CaptureState.CLOSED)
            self.errors.close()

    def _run(self) -> None:
        try:
            stdout, stdout_w = _open_pipe()
        except OSError as e:
            self._report(EventKind.SETUP, f"stdout pipe: {e}", e)
            return
        try:
            stderr, stderr_w = _open_pipe()
        except OSError as e:
            stdout.close()
            os.close(stdout_w)
            self._report(EventKind.SETUP, f"stderr pipe: {e}", e)
            return
        self._enter(CaptureState.STREAMS_ACQUIRED)

        with stdout, stderr:
            try:
                proc = subprocess.Popen(
                    self.argv,
                    stdin=subprocess.DEVNULL,
                    stdout=stdout_w,
                    stderr=stderr_w,
                )
            except (OSError, ValueError, subprocess.SubprocessError) as e:
                self._report(EventKind.LAUNCH, f"starting: {e}", e)
                return
            finally:
                # The child holds its own copies; ours must go so EOF is seen.
                os.close(stdout_w)
                os.close(stderr_w)

            self._enter(CaptureState.STARTED)
            log.debug("%s: started pid %d", self.command, proc.pid)

            try:
                self._start_scanner(stderr)
                self._enter(CaptureState.RUNNING)
                self._copy_output(stdout)
            except BaseException:
                proc.kill()
                raise
            finally:
                self._enter(CaptureState.DRAINING)
                self._wait(proc)
                if self._scanned is not None:
                    self._scanned.wait()

    def _start_scanner(self, stream: BinaryIO) -> None:
        done = threading.Event()
        thread = threading.Thread(
            target=self._scan_diagnostics,
            args=(stream, done),
            name=f"{os.path.basename(self.command)}-stderr",
            daemon=True,
        )
        thread.start()
        self._scanned = done

    def _scan_diagnostics(self, stream: BinaryIO, done: threading.Event) -> None:
        try:
            for raw in stream:
                self._report(EventKind.DIAGNOSTIC, _decode_line(raw))
        except (OSError, ValueError) as e:
            self._report(EventKind.TRANSPORT, f"reading diagnostics: {e}", e)
            # Nobody reads stderr any more; let the child see EPIPE instead of blocking.
            stream.close()
        finally:
            done.set()

    def _copy_output(self, stream: BinaryIO) -> None:
        copied = 0
        sink_ok = True
        while True:
            try:
                chunk = stream.read1(self.chunk_size)  # type: ignore[attr-defined]
            except OSError as e:
                self._report(EventKind.COPY, f"reading output: {e}", e)
                # Release the read end before waiting, or a writing child never exits.
                stream.close()
                break
            if not chunk:
                break
            if not sink_ok:
                # Keep draining so the process is never blocked on a full pipe.
                continue
            try:
                _write_all(self.sink, chunk)
            except Exception as e:
                sink_ok = False
                self._report(EventKind.COPY, f"writing output: {e}", e)
                continue
            copied += len(chunk)
        log.debug("%s: copied %d bytes to sink", self.command, copied)

    def _wait(self, proc: subprocess.Popen) -> None:
        try:
            returncode = proc.wait()
        except OSError as e:
            self._report(EventKind.EXIT, f"waiting: {e}", e)
            return

        if returncode == 0:
            log.info("%s exited successfully", self.command)
            return

        log.info("%s exited with status %d", self.command, returncode)
        if returncode < 0:
            text = f"waiting: signal: {_signal_name(-returncode)}"
        else:
            text = f"waiting: exit status {returncode}"
        self._report(EventKind.EXIT, text, subprocess.CalledProcessError(returncode, self.argv))


def run_capture(
    cmd: str,
    args: Sequence[str],
    sink: Sink,
    errors: EventSink,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> None:
    """Run `cmd args...`, copy its stdout into sink and report faults on errors.

    sink is never closed here. errors is closed exactly once, after the process
    has been waited for and its standard error fully scanned.
    """

    argv = [str(cmd), *(str(a) for a in args)]
    log.debug("Executing command: %s", " ".join(argv))
    _Invocation(argv, sink, errors, chunk_size).run()


def capture(command: CaptureCommand, sink: Sink, errors: EventSink) -> None:
    """Run a prepared CaptureCommand. See run_capture()."""

    run_capture(command.cmd(), command.params(), sink, errors)


class BackgroundCapture:
    """A capture running on its own thread.

    Iterate it to receive events as they are produced; iteration ends when
    the capture has finished.
    """

    def __init__(self, command: CaptureCommand, sink: Sink, errors: ErrorChannel | None = None) -> None:
        self.command = command
        self.errors = errors if errors is not None else ErrorChannel()
        self._thread = threading.Thread(
            target=capture,
            args=(command, sink, self.errors),
            name=f"capture-{command.cmd()}",
            daemon=True,
        )

    def start(self) -> BackgroundCapture:
        self._thread.start()
        return self

    def __iter__(self) -> Iterator[ErrorEvent]:
        return iter(self.errors)

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the capture thread. Returns True once it has finished."""

        self._thread.join(timeout)
        return not self._thread.is_alive()


def start_capture(command: CaptureCommand, sink: Sink, errors: ErrorChannel | None = None) -> BackgroundCapture:
    return BackgroundCapture(command, sink, errors).start()


class CaptureError(RuntimeError):
    def __init__(self, message: str, events: list[ErrorEvent], output: bytes):
        super().__init__(message)
        self.events = events
        self.output = output


def capture_bytes(command: CaptureCommand) -> bytes:
    """Capture into memory.

    Raises CaptureError if any event was reported.
    """

    buf = io.BytesIO()
    errors = ErrorChannel()
    capture(command, buf, errors)

    events = errors.drain()
    output = buf.getvalue()
    if events:
        # Include the event tail for signal.
        tail_text = "\n".join(str(e) for e in events[-20:])
        raise CaptureError(
            f"Capture failed: {' '.join(command.command_line())}\n{tail_text}",
            events,
            output,
        )
    return output
