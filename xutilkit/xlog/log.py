"""Asynchronous levelled logger that hands records to pluggable writers."""

from __future__ import annotations

import os
import queue
import sys
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import Any, Protocol

DEFAULT_LAYOUT = "%Y-%m-%dT%H:%M:%S"

_TUNNEL_SIZE = 1024
_FIRST_FLUSH_DELAY = 0.5
_FLUSH_INTERVAL = 1.0
_ROTATE_INTERVAL = 10.0
_STOP = object()


class Level(IntEnum):
    """Severity of a log record, lowest first."""

    TRACE = 0
    DEBUG = 1
    INFO = 2
    PUBLIC = 3
    WARNING = 4
    ERROR = 5
    FATAL = 6

    @property
    def flag(self) -> str:
        """The tag printed for this level."""
        return _FLAGS[self]


_FLAGS = {
    Level.TRACE: "TRACE",
    Level.DEBUG: "DEBUG",
    Level.INFO: "INFO",
    Level.PUBLIC: "PUBLIC",
    Level.WARNING: "WARN",
    Level.ERROR: "ERROR",
    Level.FATAL: "FATAL",
}


@dataclass(frozen=True)
class Record:
    """One formatted log entry."""

    time: str
    code: str
    info: str
    level: Level

    def __str__(self) -> str:
        return f"[{Level(self.level).flag}][{self.time}][{self.code}] {self.info}\n"


class Writer(Protocol):
    def init(self) -> None: ...

    def write(self, record: Record) -> None: ...


def _render(msg: str, args: tuple[Any, ...]) -> str:
    if not msg:
        return " ".join(str(arg) for arg in args)
    if not args:
        return msg
    try:
        return msg % args
    except (TypeError, ValueError):
        return msg + " " + " ".join(repr(arg) for arg in args)


def _caller(depth: int) -> str:
    try:
        frame = sys._getframe(depth)
    except ValueError:
        return ""
    return f"{os.path.basename(frame.f_code.co_filename)}:{frame.f_lineno}"


def _report(exc: BaseException) -> None:
    print(f"xlog: {exc}", file=sys.stderr)


class Logger:
    """Formats records on the calling thread and writes them on a worker thread."""

    def __init__(self) -> None:
        self.writers: list[Writer] = []
        self.level = Level.DEBUG
        self.layout = DEFAULT_LAYOUT
        self._queue: queue.Queue[Any] = queue.Queue(maxsize=_TUNNEL_SIZE)
        self._lock = threading.Lock()
        self._worker: threading.Thread | None = None
        self._last_second: int | None = None
        self._last_time_str = ""

    def register(self, writer: Writer) -> None:
        """Initialise a writer and start sending records to it."""
        writer.init()
        self.writers.append(writer)

    def set_level(self, level: int) -> None:
        self.level = Level(level)

    def set_layout(self, layout: str) -> None:
        """Set the strftime layout used for record timestamps."""
        self.layout = layout
        self._last_second = None

    def trace(self, msg: str, *args: Any) -> None:
        self._deliver(Level.TRACE, msg, args)

    def debug(self, msg: str, *args: Any) -> None:
        self._deliver(Level.DEBUG, msg, args)

    def info(self, msg: str, *args: Any) -> None:
        self._deliver(Level.INFO, msg, args)

    def warn(self, msg: str, *args: Any) -> None:
        self._deliver(Level.WARNING, msg, args)

    def error(self, msg: str, *args: Any) -> None:
        self._deliver(Level.ERROR, msg, args)

    def fatal(self, msg: str, *args: Any) -> None:
        self._deliver(Level.FATAL, msg, args)

    def public(self, msg: str, *args: Any) -> None:
        self._deliver(Level.PUBLIC, msg, args)

    def close(self) -> None:
        """Drain pending records, stop the worker and flush the writers."""
        with self._lock:
            worker, self._worker = self._worker, None
            if worker is not None:
                self._queue.put(_STOP)
                worker.join()
        self._call_each("flush")

    def _deliver(self, level: Level, msg: str, args: tuple[Any, ...]) -> None:
        if level < self.level:
            return
        info = _render(msg, args)
        code = _caller(3)
        second = int(time.time())
        if second != self._last_second:
            self._last_second = second
            self._last_time_str = datetime.fromtimestamp(second).strftime(self.layout)
        record = Record(time=self._last_time_str, code=code, info=info, level=level)
        self._ensure_worker()
        self._queue.put(record)

    def _ensure_worker(self) -> None:
        with self._lock:
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(
                    target=self._run, name="xlog-writer", daemon=True
                )
                self._worker.start()

    def _run(self) -> None:
        flush_at = time.monotonic() + _FIRST_FLUSH_DELAY
        rotate_at = time.monotonic() + _ROTATE_INTERVAL
        while True:
            timeout = max(0.0, min(flush_at, rotate_at) - time.monotonic())
            try:
                item = self._queue.get(timeout=timeout)
            except queue.Empty:
                item = None
            if item is _STOP:
                return
            if item is not None:
                self._dispatch(item)
            now = time.monotonic()
            if now >= flush_at:
                self._call_each("flush")
                flush_at = now + _FLUSH_INTERVAL
            if now >= rotate_at:
                self._call_each("rotate")
                rotate_at = now + _ROTATE_INTERVAL

    def _dispatch(self, record: Record) -> None:
        for writer in tuple(self.writers):
            try:
                writer.write(record)
            except Exception as exc:  # a failing writer must not stop the others
                _report(exc)

    def _call_each(self, name: str) -> None:
        for writer in tuple(self.writers):
            action = getattr(writer, name, None)
            if not callable(action):
                continue
            try:
                action()
            except Exception as exc:
                _report(exc)


_DEFAULT = Logger()


def default_logger() -> Logger:
    """The process-wide logger used by the module-level functions."""
    return _DEFAULT


def set_level(level: int) -> None:
    _DEFAULT.set_level(level)


def set_layout(layout: str) -> None:
    _DEFAULT.set_layout(layout)


def trace(msg: str, *args: Any) -> None:
    _DEFAULT._deliver(Level.TRACE, msg, args)


def debug(msg: str, *args: Any) -> None:
    _DEFAULT._deliver(Level.DEBUG, msg, args)


def info(msg: str, *args: Any) -> None:
    _DEFAULT._deliver(Level.INFO, msg, args)


def warn(msg: str, *args: Any) -> None:
    _DEFAULT._deliver(Level.WARNING, msg, args)


def error(msg: str, *args: Any) -> None:
    _DEFAULT._deliver(Level.ERROR, msg, args)


def fatal(msg: str, *args: Any) -> None:
    _DEFAULT._deliver(Level.FATAL, msg, args)


def public(msg: str, *args: Any) -> None:
    _DEFAULT._deliver(Level.PUBLIC, msg, args)


def register(writer: Writer) -> None:
    _DEFAULT.register(writer)


def close() -> None:
    _DEFAULT.close()