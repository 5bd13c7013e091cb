"""Buffered file writer with time-pattern based rotation."""

from __future__ import annotations

import os
from datetime import datetime
from typing import Callable, TextIO

from .log import Level, Record

_BUFFER_SIZE = 8192

_PATH_VARIABLES: dict[str, Callable[[datetime], int]] = {
    "Y": lambda moment: moment.year,
    "M": lambda moment: moment.month,
    "D": lambda moment: moment.day,
    "H": lambda moment: moment.hour,
    "m": lambda moment: moment.minute,
}

_PATTERN_FORMATS = (
    ("%Y", "%d"),
    ("%M", "%02d"),
    ("%D", "%02d"),
    ("%H", "%02d"),
    ("%m", "%02d"),
)


def convert_pattern_to_fmt(pattern: str) -> str:
    """Turn a rotation pattern such as 'app.%Y%M%D.log' into a %-format string."""
    for spec, replacement in _PATTERN_FORMATS:
        pattern = pattern.replace(spec, replacement)
    return pattern


class FileWriter:
    """Appends records whose level lies in [level_floor, level_ceil] to a file."""

    def __init__(
        self,
        filename: str = "",
        level_floor: int = Level.TRACE,
        level_ceil: int = Level.FATAL,
    ) -> None:
        self.filename = filename
        self.level_floor = Level(level_floor)
        self.level_ceil = Level(level_ceil)
        self.path_fmt = ""
        self._actions: list[Callable[[datetime], int]] = []
        self._variables: list[int] = []
        self._file: TextIO | None = None

    def init(self) -> None:
        self.create_log_file()

    def set_path_pattern(self, pattern: str) -> None:
        """Set where rotated files go; %Y %M %D %H %m stand for time fields."""
        if "%" not in pattern:
            self.path_fmt = pattern
            self._actions = []
            self._variables = []
            return
        actions = []
        chars = iter(pattern)
        for char in chars:
            if char != "%":
                continue
            action = _PATH_VARIABLES.get(next(chars, ""))
            if action is None:
                raise ValueError(f"Invalid rotate pattern ({pattern})")
            actions.append(action)
        now = datetime.now()
        self._actions = actions
        self._variables = [action(now) for action in actions]
        self.path_fmt = convert_pattern_to_fmt(pattern)

    def write(self, record: Record) -> None:
        if not self.level_floor <= record.level <= self.level_ceil:
            return
        if self._file is None:
            raise RuntimeError("no opened file")
        self._file.write(str(record))

    def create_log_file(self) -> None:
        directory = os.path.dirname(self.filename)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._file = open(self.filename, "a", buffering=_BUFFER_SIZE, encoding="utf-8")

    def rotate(self, now: datetime | None = None) -> bool:
        """Move the file aside if a time field changed; return whether it did."""
        moment = now if now is not None else datetime.now()
        fresh = [action(moment) for action in self._actions]
        if fresh == self._variables:
            return False
        old, self._variables = self._variables, fresh
        if self._file is not None:
            self._file.close()
            self._file = None
            os.replace(self.filename, self.path_fmt % tuple(old))
        self.create_log_file()
        return True

    def flush(self) -> None:
        if self._file is not None:
            self._file.flush()

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None