"""Command line interface for raspicam."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from datetime import timedelta
from pathlib import Path

from .capture import start_capture
from .commands import CaptureCommand, available_commands, new_command
from .config import ConfigError, load_config
from .utils.files import open_sink

log = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="raspicam",
        description=(
            "Run a Raspberry Pi camera capture (raspistill, raspiyuv or raspivid)\n"
            "and write its output to a file or standard output."
        ),
    )

    p.add_argument("kind", choices=available_commands(), help="Capture command to run")
    p.add_argument("-o", "--output", default="-", help="Output file ('-' for stdout)")
    p.add_argument("--config", type=Path, default=None, help="Optional JSON/YAML capture config")
    p.add_argument("--command", default=None, help="Executable to run instead of the default")
    p.add_argument("--timeout", type=float, default=None, help="Capture timeout in seconds")
    p.add_argument("--width", type=int, default=None, help="Image width")
    p.add_argument("--height", type=int, default=None, help="Image height")
    p.add_argument("--overwrite", action="store_true", help="Overwrite an existing output file")
    p.add_argument("--dry-run", action="store_true", help="Print the command line without running it")
    p.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    return p


def _build_command(ns: argparse.Namespace, extra: list[str]) -> CaptureCommand:
    if ns.config is not None:
        command = load_config(ns.config)
        if command.name != ns.kind:
            raise ConfigError(f"config describes a {command.name!r} capture, not {ns.kind!r}")
    else:
        command = new_command(ns.kind)

    updates: dict[str, object] = {}
    if ns.command:
        updates["command"] = ns.command
    if ns.timeout is not None:
        updates["timeout"] = timedelta(seconds=ns.timeout)
    if ns.width is not None:
        updates["width"] = ns.width
    if ns.height is not None:
        updates["height"] = ns.height

    if extra:
        updates["args"] = [*command.args, *extra]  # type: ignore[attr-defined]

    return replace(command, **updates) if updates else command  # type: ignore[type-var]


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = _build_parser()
    # Everything after "--" is handed to the executable untouched.
    extra: list[str] = []
    if "--" in argv:
        i = argv.index("--")
        argv, extra = argv[:i], argv[i + 1 :]
    ns = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )

    try:
        command = _build_command(ns, extra)
    except (ConfigError, FileNotFoundError) as e:
        log.error(str(e))
        return 2

    if ns.dry_run:
        print(" ".join(command.command_line()))
        return 0

    try:
        with open_sink(ns.output, overwrite=ns.overwrite) as sink:
            job = start_capture(command, sink)
            failures = 0
            for event in job:
                failures += 1
                log.warning("%s", event)
            job.join()
    except OSError as e:
        log.error(str(e))
        return 2

    if failures:
        log.error("Capture reported %d error(s)", failures)
        return 1
    if ns.output != "-":
        log.info("Capture written to %s", ns.output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
