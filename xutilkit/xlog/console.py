"""Writer that prints log records to a text stream, optionally coloured."""

from __future__ import annotations

import sys
from typing import TextIO

from .log import Level, Record

_LEVEL_COLORS = {
    Level.TRACE: "34",
    Level.DEBUG: "34",
    Level.INFO: "32",
    Level.WARNING: "33",
    Level.ERROR: "31",
    Level.FATAL: "35",
    Level.PUBLIC: "36",
}


def color_format(record: Record) -> str:
    """Render a record with ANSI colours; unknown levels render as ''."""
    color = _LEVEL_COLORS.get(record.level)
    if color is None:
        return ""
    level = Level(record.level)
    info = record.info
    if level is Level.PUBLIC:
        info = f"\033[36m{info}\033[0m"
    return (
        f"\033[36m{record.time}\033[0m [\033[{color}m{level.flag}\033[0m] "
        f"\033[47;30m{record.code}\033[0m {info}\n"
    )


class ConsoleWriter:
    """Writes every record to a stream, standard output by default."""

    def __init__(self, color: bool = False, stream: TextIO | None = None) -> None:
        self.color = color
        self.stream = stream

    def init(self) -> None:
        """Check that a given stream can be written to."""
        if self.stream is not None and not callable(getattr(self.stream, "write", None)):
            raise TypeError(f"stream {self.stream!r} has no write method")

    def write(self, record: Record) -> None:
        stream = self.stream if self.stream is not None else sys.stdout
        stream.write(color_format(record) if self.color else str(record))