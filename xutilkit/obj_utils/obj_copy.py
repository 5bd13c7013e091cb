"""Copy matching fields between dataclass instances, converting numbers and times."""

from __future__ import annotations

import dataclasses
import inspect
import math
import re
import struct
import sys
import types
import typing
from dataclasses import MISSING, dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Optional

from ..xlog import log as xlog

_INT64_MAX = (1 << 63) - 1
_TWO_63 = 1 << 63
_TWO_64 = 1 << 64
_FLOAT32_MAX = 3.4028234663852886e38
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_RESERVED_FIELDS = ("id_str", "id")
_AGGREGATE_PREFIX = re.compile(r"^(.*\s+)")


class NumericKind(Enum):
    """Category a numeric field belongs to when values are converted."""

    INT = "int"
    UINT = "uint"
    FLOAT = "float"
    TIME = "time"


_NUMERIC_KINDS: dict[str, tuple[NumericKind, int]] = {
    "int": (NumericKind.INT, 64),
    "int8": (NumericKind.INT, 8),
    "int16": (NumericKind.INT, 16),
    "int32": (NumericKind.INT, 32),
    "int64": (NumericKind.INT, 64),
    "uint": (NumericKind.UINT, 64),
    "uint8": (NumericKind.UINT, 8),
    "uint16": (NumericKind.UINT, 16),
    "uint32": (NumericKind.UINT, 32),
    "uint64": (NumericKind.UINT, 64),
    "float32": (NumericKind.FLOAT, 32),
    "float64": (NumericKind.FLOAT, 64),
    "time": (NumericKind.TIME, 64),
}

_ZERO_VALUES: dict[str, Any] = {
    **{name: 0 for name, (kind, _) in _NUMERIC_KINDS.items() if kind in (NumericKind.INT, NumericKind.UINT)},
    "float32": 0.0,
    "float64": 0.0,
    "time": _ZERO_TIME,
    "string": "",
    "bool": False,
}

_SKIPPED_KINDS = ("struct", "ptr")

_NAMED_TYPES: dict[str, Any] = {
    "bool": bool,
    "int": int,
    "float": float,
    "str": str,
    "datetime": datetime,
    "datetime.datetime": datetime,
}


def field_spec(
    kind: str | None = None,
    json: str | None = None,
    gorm: str | None = None,
    default: Any = MISSING,
) -> Any:
    """A dataclass field carrying its storage kind and its json and gorm tags.

    kind is one of int, int8..int64, uint, uint8..uint64, float32, float64,
    time, string or bool; without a default the field gets the kind's zero.
    """
    if kind is not None and kind not in _ZERO_VALUES:
        raise ValueError(f"unknown field kind {kind!r}")
    metadata = {"kind": kind, "json": json, "gorm": gorm}
    if default is MISSING and kind is not None:
        default = _ZERO_VALUES[kind]
    if isinstance(default, (list, dict, set)):
        template = default
        return dataclasses.field(default_factory=lambda: type(template)(template), metadata=metadata)
    return dataclasses.field(default=default, metadata=metadata)


@dataclass(frozen=True)
class _FieldInfo:
    name: str
    kind: str
    type_key: Any
    json_tag: str

    @property
    def numeric(self) -> Optional[tuple[NumericKind, int]]:
        return _NUMERIC_KINDS.get(self.kind)

    @property
    def skipped(self) -> bool:
        return self.kind in _SKIPPED_KINDS


def _kind_of(annotation: Any) -> str:
    if annotation is bool:
        return "bool"
    if annotation is int:
        return "int"
    if annotation is float:
        return "float64"
    if annotation is str:
        return "string"
    if annotation is datetime:
        return "time"
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        if type(None) in typing.get_args(annotation):
            return "ptr"
    if isinstance(annotation, type) and dataclasses.is_dataclass(annotation):
        return "struct"
    return "other"


def _is_optional_text(text: str) -> bool:
    if text.startswith(("Optional[", "typing.Optional[")):
        return True
    if text.startswith(("Union[", "typing.Union[")):
        inner = text[text.index("[") + 1 : -1]
        return "None" in (part.strip() for part in inner.split(","))
    parts = [part.strip() for part in text.split("|")]
    return len(parts) > 1 and "None" in parts


def _resolve_name(text: str, owner: type) -> Any:
    if text in _NAMED_TYPES:
        return _NAMED_TYPES[text]
    if text.isidentifier():
        module = inspect.getmodule(owner)
        found = getattr(module, text, None) if module is not None else None
        if isinstance(found, type):
            return found
    return None


def _annotation_kind(annotation: Any, owner: type) -> tuple[str, Any]:
    """Kind of an annotation, given as a type or as the text of one."""
    if isinstance(annotation, str):
        text = annotation.strip()
        if _is_optional_text(text):
            return "ptr", text
        resolved = _resolve_name(text, owner)
        if resolved is None:
            return "other", text
        annotation = resolved
    kind = _kind_of(annotation)
    return kind, (annotation if kind == "other" else kind)


def _describe(cls: type) -> list[_FieldInfo]:
    infos = []
    for item in dataclasses.fields(cls):
        declared = item.metadata.get("kind")
        if declared:
            kind, type_key = declared, declared
        else:
            kind, type_key = _annotation_kind(item.type, cls)
        tag = (item.metadata.get("json") or "").split(",", 1)[0]
        infos.append(_FieldInfo(item.name, kind, type_key, tag))
    return infos


def _signed(value: int, bits: int) -> int:
    half = 1 << (bits - 1)
    return (value + half) % (1 << bits) - half


def _to_float32(value: float) -> float:
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _float_to_int64(value: float) -> int:
    if math.isnan(value) or not -_TWO_63 <= value < _TWO_63:
        return -_TWO_63
    return int(value)


def _float_to_uint64(value: float) -> int:
    if math.isnan(value) or value >= _TWO_64 or value < -_TWO_63:
        return _TWO_63
    return int(value) % _TWO_64


def _unix(moment: datetime) -> int:
    if moment.tzinfo is None:
        try:
            moment = moment.astimezone()
        except (OverflowError, OSError, ValueError):
            moment = moment.replace(tzinfo=timezone.utc)
    return (moment - _EPOCH) // timedelta(seconds=1)


def _from_unix(seconds: int) -> datetime:
    return _EPOCH + timedelta(seconds=seconds)


def _int_max(bits: int) -> int:
    return (1 << (bits - 1)) - 1


def _uint_max(bits: int) -> int:
    return (1 << bits) - 1


def _float_max(bits: int) -> float:
    return _FLOAT32_MAX if bits == 32 else sys.float_info.max


def _as_time(value: Any) -> datetime:
    if not isinstance(value, datetime):
        raise TypeError(f"expected datetime, got {type(value).__name__}")
    return value


def _reader(numeric: tuple[NumericKind, int]) -> Callable[[Any], Any]:
    kind, bits = numeric
    if kind is NumericKind.INT:
        return lambda value: _signed(int(value), bits)
    if kind is NumericKind.UINT:
        return lambda value: int(value) % (1 << bits)
    if kind is NumericKind.FLOAT:
        return (lambda value: _to_float32(float(value))) if bits == 32 else float
    return _as_time


Check = tuple[Callable[[Any], bool], str]


def _range_checks(src: tuple[NumericKind, int], dest: tuple[NumericKind, int]) -> list[Check]:
    skind, sbits = src
    dkind, dbits = dest
    negative: Check = (lambda v: v < 0, "min 0")
    if dkind is NumericKind.UINT:
        dmax = _uint_max(dbits)
        if skind is NumericKind.UINT and dmax < _uint_max(sbits):
            return [(lambda v: v > dmax, f"max {dmax}")]
        if skind is NumericKind.FLOAT:
            if dmax >= _float_to_uint64(_float_max(sbits)):
                return [negative]
            return [negative, (lambda v: _float_to_uint64(v) > dmax, f"max {dmax}")]
        if skind is NumericKind.INT:
            if dmax >= _int_max(sbits):
                return [negative]
            return [negative, (lambda v: v > dmax, f"max {dmax}")]
        if skind is NumericKind.TIME and dmax < _INT64_MAX:
            return [(lambda v: _unix(v) % _TWO_64 > dmax, f"max {dmax}")]
        return []
    if dkind is NumericKind.FLOAT:
        dmax_f = _float_max(dbits)
        if skind is NumericKind.UINT:
            limit = _float_to_uint64(dmax_f)
            if limit < _uint_max(sbits):
                return [(lambda v: v > limit, f"max {dmax_f}")]
        elif skind is NumericKind.FLOAT and dmax_f < _float_max(sbits):
            return [(lambda v: v > dmax_f, f"max {dmax_f}")]
        elif skind is NumericKind.INT and dmax_f < float(_int_max(sbits)):
            return [(lambda v: float(v) > dmax_f, f"max {dmax_f}")]
        elif skind is NumericKind.TIME and dmax_f < float(_INT64_MAX):
            return [(lambda v: float(_unix(v)) > dmax_f, f"max {dmax_f}")]
        return []
    if dkind is NumericKind.INT:
        dmax = _int_max(dbits)
        if skind is NumericKind.UINT and dmax < _uint_max(sbits):
            return [(lambda v: v > dmax, f"max {dmax}")]
        if skind is NumericKind.FLOAT and float(dmax) < _float_max(sbits):
            return [(lambda v: v > float(dmax), f"max {dmax}")]
        if skind is NumericKind.INT and dmax < _int_max(sbits):
            return [(lambda v: v > dmax, f"max {dmax}")]
        if skind is NumericKind.TIME and dmax < _INT64_MAX:
            return [(lambda v: _unix(v) > dmax, f"max {dmax}")]
        return []
    if skind is NumericKind.UINT and _INT64_MAX < _uint_max(sbits):
        return [(lambda v: v > _INT64_MAX, f"max {_INT64_MAX}")]
    return []


def _validator(src: _FieldInfo, dest: _FieldInfo) -> Optional[Callable[[Any], None]]:
    checks = _range_checks(src.numeric, dest.numeric)
    if not checks:
        return None
    xlog.warn(
        "possible precision loss if src value exceed dest||srcType=%s||destType=%s",
        src.kind,
        dest.kind,
    )

    def validate(value: Any) -> None:
        for failed, bound in checks:
            if failed(value):
                raise ValueError(
                    f"src val exceed {bound} val for dest||val={value!r}"
                    f"||srcType={src.kind}||destType={dest.kind}"
                )

    return validate


def _converter(src: tuple[NumericKind, int], dest: tuple[NumericKind, int]) -> Callable[[Any], Any]:
    skind, _ = src
    dkind, dbits = dest

    def as_int64(value: Any) -> int:
        if skind is NumericKind.FLOAT:
            return _float_to_int64(value)
        if skind is NumericKind.TIME:
            return _unix(value)
        return value

    if dkind is NumericKind.TIME:
        if skind is NumericKind.TIME:
            return lambda value: value
        if skind is NumericKind.UINT:
            return lambda value: _from_unix(_signed(value, 64))
        return lambda value: _from_unix(as_int64(value))
    if dkind is NumericKind.INT:
        return lambda value: _signed(as_int64(value), dbits)
    if dkind is NumericKind.UINT:
        if skind is NumericKind.FLOAT:
            return lambda value: _float_to_uint64(value) % (1 << dbits)
        return lambda value: as_int64(value) % (1 << dbits)
    if skind is NumericKind.TIME:
        number: Callable[[Any], float] = lambda value: float(_unix(value))
    else:
        number = float
    if dbits == 32:
        return lambda value: _to_float32(number(value))
    return number


def _identity(value: Any) -> Any:
    return value


@dataclass(frozen=True)
class _Mapping:
    dest_name: str
    alias: str
    src_name: str
    read: Callable[[Any], Any]
    validate: Optional[Callable[[Any], None]]
    convert: Callable[[Any], Any]


def _name_index(infos: list[_FieldInfo]) -> dict[str, int]:
    names: dict[str, int] = {}
    for idx, info in enumerate(infos):
        if info.skipped or info.json_tag == "-":
            continue
        if info.json_tag:
            names[info.json_tag] = idx
        names[info.name] = idx
    return names


def _dataclass_type(value: Any, role: str) -> type:
    if value is None:
        raise ValueError(f"src or dest nil||{role}=None")
    cls = value if isinstance(value, type) else type(value)
    if not dataclasses.is_dataclass(cls):
        raise TypeError(f"{role} not struct")
    return cls


class CopyFieldWrapper:
    """Precompiled plan for copying fields from one dataclass type to another."""

    def __init__(self, src_type: type, dest_type: type) -> None:
        self.src_type = src_type
        self.dest_type = dest_type
        self._src_fields = _describe(src_type)
        self._dest_fields = _describe(dest_type)
        self._src_names = _name_index(self._src_fields)
        self._dest_names = _name_index(self._dest_fields)
        self._mapping: dict[int, _Mapping] = {}
        for idx, dest in enumerate(self._dest_fields):
            if dest.skipped:
                continue
            src_idx = self._src_names.get(dest.name)
            if src_idx is None:
                src_idx = self._src_names.get(dest.json_tag)
            if src_idx is None:
                continue
            src = self._src_fields[src_idx]
            if src.type_key == dest.type_key:
                mapping = _Mapping(dest.name, dest.json_tag, src.name, _identity, None, _identity)
            elif src.numeric is not None and dest.numeric is not None:
                mapping = _Mapping(
                    dest.name,
                    dest.json_tag,
                    src.name,
                    _reader(src.numeric),
                    _validator(src, dest),
                    _converter(src.numeric, dest.numeric),
                )
            else:
                continue
            self._mapping[idx] = mapping

    def skipped_fields(self) -> list[str]:
        """Names of plain destination fields that no source field fills."""
        return [
            info.name
            for idx, info in enumerate(self._dest_fields)
            if info.kind not in (*_SKIPPED_KINDS, "time")
            and info.json_tag != "-"
            and idx not in self._mapping
        ]

    def copy_field_values(self, src: Any, dest: Any, *args: str) -> list[str]:
        """Copy src into dest and return the names of the fields left alone.

        With projection names in args only those fields, plus id and id_str,
        are copied; a leading 'expr as ' in a name is ignored.
        """
        if src is None or dest is None:
            raise ValueError(f"src or dest nil||src={src!r}||dest={dest!r}")
        if type(src) is not self.src_type:
            raise TypeError(
                f"illegal src type||want({self.src_type.__name__}) get({type(src).__name__})"
            )
        if type(dest) is not self.dest_type:
            raise TypeError(
                f"illegal dest type||want({self.dest_type.__name__}) get({type(dest).__name__})"
            )
        skipped: list[str] = []
        if args:
            for name in _RESERVED_FIELDS:
                mapping = self._lookup(name)
                if mapping is not None and not self._transfer(mapping, src, dest, name):
                    skipped.append(name)
            for raw in args:
                name = _AGGREGATE_PREFIX.sub("", raw, count=1)
                mapping = self._lookup(name)
                if mapping is None or not self._transfer(mapping, src, dest, name):
                    skipped.append(name)
        else:
            for idx, info in enumerate(self._dest_fields):
                mapping = self._mapping.get(idx)
                if mapping is None or not self._transfer(mapping, src, dest, info.name):
                    skipped.append(info.name)
        return skipped

    def _lookup(self, name: str) -> Optional[_Mapping]:
        idx = self._dest_names.get(name)
        return None if idx is None else self._mapping.get(idx)

    @staticmethod
    def _transfer(mapping: _Mapping, src: Any, dest: Any, label: str) -> bool:
        try:
            value = mapping.read(getattr(src, mapping.src_name))
            if mapping.validate is not None:
                mapping.validate(value)
        except (ValueError, TypeError, OverflowError) as exc:
            xlog.warn("failed to valid value||field=%s||err=%s", label, exc)
            return False
        try:
            setattr(dest, mapping.dest_name, mapping.convert(value))
        except (ValueError, TypeError, OverflowError, OSError) as exc:
            xlog.error("failed to copy value||field=%s||err=%s", label, exc)
            return False
        return True


def compile_copy_field_wrapper(src_type: Any, dest_type: Any) -> CopyFieldWrapper:
    """Build a wrapper from two dataclass types or instances of them."""
    if src_type is None or dest_type is None:
        raise ValueError(f"src or dest nil||src={src_type!r}||dest={dest_type!r}")
    return CopyFieldWrapper(_dataclass_type(src_type, "src"), _dataclass_type(dest_type, "dest"))


def copy_field_values(src: Any, dest: Any, *args: str) -> list[str]:
    """Copy between two dataclass instances without a precompiled wrapper."""
    if src is None or dest is None:
        raise ValueError(f"src or dest nil||src={src!r}||dest={dest!r}")
    if isinstance(src, type) or not dataclasses.is_dataclass(src):
        raise TypeError("src not ptr")
    if isinstance(dest, type) or not dataclasses.is_dataclass(dest):
        raise TypeError("dest not ptr")
    wrapper = CopyFieldWrapper(type(src), type(dest))
    return wrapper.copy_field_values(src, dest, *args)