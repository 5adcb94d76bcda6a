"""Output sink helpers."""

from __future__ import annotations

import contextlib
import sys
from pathlib import Path
from typing import BinaryIO, Iterator


def ensure_parent_dir(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


@contextlib.contextmanager
def open_sink(output: str | Path, *, overwrite: bool = False) -> Iterator[BinaryIO]:
    """Yield a binary sink for output.

    "-" means standard output, which is flushed but left open. Any other
    value is a file path; parent directories are created as needed.
    """

    if str(output) == "-":
        yield sys.stdout.buffer
        sys.stdout.buffer.flush()
        return

    path = Path(output).expanduser().resolve()
    if path.exists() and not overwrite:
        raise FileExistsError(f"output exists (use --overwrite): {path}")
    ensure_parent_dir(path)
    with path.open("wb") as f:
        yield f
