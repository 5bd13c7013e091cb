"""Configure the default logger from a dictionary or a JSON file."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping

from .console import ConsoleWriter
from .file_writer import FileWriter
from .log import Level, register, set_level

_LEVELS = {
    "trace": Level.TRACE,
    "debug": Level.DEBUG,
    "info": Level.INFO,
    "warning": Level.WARNING,
    "error": Level.ERROR,
    "fatal": Level.FATAL,
}


def _lookup(data: Mapping[str, Any], key: str, kind: type, default: Any) -> Any:
    if key in data:
        value = data[key]
    else:
        lowered = key.lower()
        value = next(
            (v for k, v in data.items() if isinstance(k, str) and k.lower() == lowered),
            default,
        )
    if value is None:
        return default
    if not isinstance(value, kind):
        raise ValueError(f"field {key!r} must be {kind.__name__}, got {value!r}")
    return value


@dataclass
class FileWriterConfig:
    on: bool = False
    log_path: str = ""
    rotate_log_path: str = ""
    wf_log_path: str = ""
    rotate_wf_log_path: str = ""
    public_log_path: str = ""
    rotate_public_log_path: str = ""


@dataclass
class ConsoleWriterConfig:
    on: bool = False
    color: bool = False


@dataclass
class LogConfig:
    level: str = ""
    file_writer: FileWriterConfig = field(default_factory=FileWriterConfig)
    console_writer: ConsoleWriterConfig = field(default_factory=ConsoleWriterConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LogConfig:
        """Build a config from the JSON layout; keys match case-insensitively."""
        fw = _lookup(data, "FileWriter", dict, {})
        cw = _lookup(data, "ConsoleWriter", dict, {})
        return cls(
            level=_lookup(data, "LogLevel", str, ""),
            file_writer=FileWriterConfig(
                on=_lookup(fw, "On", bool, False),
                log_path=_lookup(fw, "LogPath", str, ""),
                rotate_log_path=_lookup(fw, "RotateLogPath", str, ""),
                wf_log_path=_lookup(fw, "WfLogPath", str, ""),
                rotate_wf_log_path=_lookup(fw, "RotateWfLogPath", str, ""),
                public_log_path=_lookup(fw, "PublicLogPath", str, ""),
                rotate_public_log_path=_lookup(fw, "RotatePublicLogPath", str, ""),
            ),
            console_writer=ConsoleWriterConfig(
                on=_lookup(cw, "On", bool, False),
                color=_lookup(cw, "Color", bool, False),
            ),
        )


def _register_file(path: str, rotate_path: str, floor: Level, ceil: Level) -> None:
    writer = FileWriter(path, floor, ceil)
    writer.set_path_pattern(rotate_path)
    register(writer)


def setup_log_default() -> None:
    """Log everything from DEBUG up to a coloured console."""
    setup_log_with_conf(
        LogConfig(level="debug", console_writer=ConsoleWriterConfig(on=True, color=True))
    )


def setup_log_with_conf_file(path: str) -> None:
    with open(path, encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError("log config must be a JSON object")
    setup_log_with_conf(LogConfig.from_dict(data))


def setup_log_with_conf(config: LogConfig) -> None:
    """Register the configured writers, then set the level.

    Raises ValueError for an unknown level; the writers stay registered.
    """
    fw = config.file_writer
    if fw.on:
        if fw.log_path:
            ceil = Level.PUBLIC if fw.wf_log_path else Level.FATAL
            _register_file(fw.log_path, fw.rotate_log_path, Level.TRACE, ceil)
        if fw.wf_log_path:
            _register_file(fw.wf_log_path, fw.rotate_wf_log_path, Level.WARNING, Level.FATAL)
        if fw.public_log_path:
            _register_file(
                fw.public_log_path, fw.rotate_public_log_path, Level.PUBLIC, Level.PUBLIC
            )
    if config.console_writer.on:
        register(ConsoleWriter(color=config.console_writer.color))
    try:
        level = _LEVELS[config.level]
    except KeyError:
        raise ValueError("Invalid log level") from None
    set_level(level)