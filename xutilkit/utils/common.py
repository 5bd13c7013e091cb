"""Assorted conversion, hashing, time and geometry helpers."""

from __future__ import annotations

import base64
import dataclasses
import hashlib
import inspect
import json
import math
import re
import traceback
from datetime import date, datetime, timedelta, timezone
from types import TracebackType
from typing import Any, Mapping

from ..xlog import log as xlog

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_INT32_SPAN = 1 << 32
_INT32_MIN = -(1 << 31)
_DECIMAL = re.compile(r"[+-]?[0-9]+")
_DAY_START_ZONE = timezone(timedelta(hours=1))
_EPSILON = 0.00001
_EARTH_RADIUS = 6371000.0

_BUILTIN_TYPES = {
    "int": int,
    "float": float,
    "str": str,
    "bool": bool,
    "list": list,
    "dict": dict,
    "bytes": bytes,
}

_JSON_ESCAPES = str.maketrans(
    {
        "<": "\\u003c",
        ">": "\\u003e",
        "&": "\\u0026",
        "\u2028": "\\u2028",
        "\u2029": "\\u2029",
    }
)


def md5_sum(text: str) -> str:
    """Hex MD5 digest of the UTF-8 text."""
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def get_day_start_ts(ts: int) -> int:
    """Midnight, at UTC+1, of the local calendar day holding ts."""
    local = datetime.fromtimestamp(ts)
    start = datetime(local.year, local.month, local.day, tzinfo=_DAY_START_ZONE)
    return int(start.timestamp())


def get_day_str(ts: int) -> str:
    """Local date of ts as YYYYMMDD."""
    return datetime.fromtimestamp(ts).strftime("%Y%m%d")


def _to_int32(value: int) -> int:
    return (value - _INT32_MIN) % _INT32_SPAN + _INT32_MIN


def convert_map_int32(data: Any) -> dict[str, int]:
    """Convert every value of a mapping to a 32-bit integer.

    Raises TypeError when data is not a mapping.
    """
    if not isinstance(data, Mapping):
        message = f"illegal data type||data={data!r}||data.type={type(data).__name__}"
        xlog.error("%s", message)
        raise TypeError(message)
    return {key: _to_int32(must_int(value)) for key, value in data.items()}


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return list(value)
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    raise TypeError(f"cannot encode {type(value).__name__} as JSON")


def _marshal(data: Any, indent: int | None = None) -> str:
    separators = (",", ":") if indent is None else (",", ": ")
    text = json.dumps(
        data,
        default=_json_default,
        sort_keys=True,
        ensure_ascii=False,
        allow_nan=False,
        indent=indent,
        separators=separators,
    )
    return text.translate(_JSON_ESCAPES)


def must_string(data: Any) -> str:
    """Compact JSON of data, or its str() when it cannot be encoded."""
    try:
        return _marshal(data)
    except (TypeError, ValueError, RecursionError):
        return str(data)


def must_string_indent(data: Any) -> str:
    """JSON of data indented by three spaces, or its str() on failure."""
    try:
        return _marshal(data, indent=3)
    except (TypeError, ValueError, RecursionError):
        return str(data)


def must_bytes(data: Any) -> bytes:
    """UTF-8 bytes of must_string(data)."""
    return must_string(data).encode("utf-8")


def must_int(data: Any) -> int:
    """Integer value of a number or decimal string; -1 when it has none."""
    if isinstance(data, bool):
        xlog.error("illegal data type||data=%r||data.type=%s", data, type(data).__name__)
        return -1
    if isinstance(data, int):
        return data
    if isinstance(data, float):
        try:
            return int(data)
        except (ValueError, OverflowError):
            xlog.error("cant convert data to int||data=%r", data)
            return -1
    if isinstance(data, str):
        if _DECIMAL.fullmatch(data):
            value = int(data)
            if _INT64_MIN <= value <= _INT64_MAX:
                return value
        xlog.error("cant convert data to int||data=%r", data)
        return -1
    xlog.error("illegal data type||data=%r||data.type=%s", data, type(data).__name__)
    return -1


def earth_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in metres between two points given in degrees."""
    rad = math.pi / 180.0
    lat1, lng1, lat2, lng2 = lat1 * rad, lng1 * rad, lat2 * rad, lng2 * rad
    theta = lng2 - lng1
    if abs(theta) < _EPSILON and abs(lat2 - lat1) < _EPSILON:
        return 0.0
    cosine = math.sin(lat1) * math.sin(lat2) + math.cos(lat1) * math.cos(lat2) * math.cos(
        theta
    )
    if not -1.0 <= cosine <= 1.0:
        return math.nan
    return math.acos(cosine) * _EARTH_RADIUS


def cal_timecost(start: datetime) -> float:
    """Whole milliseconds elapsed since start."""
    now = datetime.now(start.tzinfo) if start.tzinfo is not None else datetime.now()
    return float(int((now - start).total_seconds() * 1000))


def _key_part(value: Any) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def get_key(prefix: str, *args: Any) -> str:
    """prefix followed by each argument, separated by colons."""
    return prefix + "".join(":" + _key_part(arg) for arg in args)


def _resolve_annotation(annotation: Any, owner: type) -> Any:
    """Turn a simple string annotation into the type it names, when it can be found."""
    if not isinstance(annotation, str):
        return annotation
    name = annotation.strip()
    if name in _BUILTIN_TYPES:
        return _BUILTIN_TYPES[name]
    if name.isidentifier():
        module = inspect.getmodule(owner)
        found = getattr(module, name, None) if module is not None else None
        if isinstance(found, type):
            return found
    return annotation


def _build(payload: Any, target: Any) -> Any:
    if isinstance(target, type) and dataclasses.is_dataclass(target):
        if not isinstance(payload, dict):
            raise TypeError(
                f"cannot convert {type(payload).__name__} into {target.__name__}"
            )
        lowered = {key.lower(): key for key in payload if isinstance(key, str)}
        kwargs = {}
        for item in dataclasses.fields(target):
            if not item.init:
                continue
            key = item.name if item.name in payload else lowered.get(item.name.lower())
            if key is None:
                continue
            kwargs[item.name] = _build(payload[key], _resolve_annotation(item.type, target))
        return target(**kwargs)
    if not isinstance(target, type):
        return payload
    if target is bool:
        if not isinstance(payload, bool):
            raise TypeError(f"cannot convert {payload!r} into bool")
        return payload
    if target is int:
        if isinstance(payload, bool) or not isinstance(payload, int):
            raise TypeError(f"cannot convert {payload!r} into int")
        return payload
    if target is float:
        if isinstance(payload, bool) or not isinstance(payload, (int, float)):
            raise TypeError(f"cannot convert {payload!r} into float")
        return float(payload)
    if target in (str, list, dict):
        if not isinstance(payload, target):
            raise TypeError(f"cannot convert {payload!r} into {target.__name__}")
        return payload
    if isinstance(payload, dict):
        return target(**payload)
    return target(payload)


def convert_struct(source: Any, target_type: Any) -> Any:
    """Convert source into target_type by way of its JSON form.

    Dataclass fields are matched by name, ignoring case. Errors are logged
    and raised again.
    """
    try:
        return _build(json.loads(_marshal(source)), target_type)
    except (TypeError, ValueError) as exc:
        xlog.error("convert data failed | data: %s | error: %s", source, exc)
        raise


class _PanicGuard:
    """Context manager that logs and swallows an exception raised in its body."""

    def __init__(self) -> None:
        self.error: Exception | None = None

    def __enter__(self) -> _PanicGuard:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if not isinstance(exc, Exception):
            return False
        self.error = exc
        stack = "".join(traceback.format_exception(exc_type, exc, tb))
        xlog.fatal("catch panic | %s\n%s", exc, stack)
        return True


def catch_panic() -> _PanicGuard:
    """A context manager that logs an exception at FATAL and keeps it in .error."""
    return _PanicGuard()


def format_date(moment: date) -> str:
    """The date as YYYYMMDD."""
    return f"{moment.year:4d}{moment.month:02d}{moment.day:02d}"


def get_hour_one_hot() -> list[float]:
    """24 slots, 1.0 at the current local hour and 0.0 elsewhere."""
    result = [0.0] * 24
    result[datetime.now().hour] = 1.0
    return result


def get_current_day_start_time() -> int:
    """Timestamp of today's local date taken as midnight UTC."""
    today = date.today()
    return int(datetime(today.year, today.month, today.day, tzinfo=timezone.utc).timestamp())


def bool2int(value: bool) -> int:
    """1 for a true value, 0 otherwise."""
    return int(bool(value))


def user_reg_transfer(cur_timestamp: int, user_reg_time: int) -> int:
    """Bucket account age: 0 none, 1 about a week, 2 up to 30 days, 3 older."""
    gap = cur_timestamp - user_reg_time
    if gap <= 0:
        return 0
    if gap <= 84000 * 7:
        return 1
    if gap <= 30 * 86400:
        return 2
    return 3


def str2int64(text: str) -> int:
    """Decimal 64-bit integer in text, or 0 when it is not one."""
    if not _DECIMAL.fullmatch(text):
        return 0
    value = int(text)
    return value if _INT64_MIN <= value <= _INT64_MAX else 0