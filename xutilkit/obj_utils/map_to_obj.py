"""Fill dataclass instances from dictionaries keyed by gorm column, json tag or field name."""

from __future__ import annotations

import dataclasses
import inspect
import types
import typing
from datetime import datetime
from typing import Any, Mapping

from ..xlog import log as xlog

_SIZED_INTS = {
    "int": (True, 64),
    "int8": (True, 8),
    "int16": (True, 16),
    "int32": (True, 32),
    "int64": (True, 64),
    "uint": (False, 64),
    "uint8": (False, 8),
    "uint16": (False, 16),
    "uint32": (False, 32),
    "uint64": (False, 64),
}

_BUILTIN_TYPES = {
    "int": int,
    "float": float,
    "str": str,
    "bool": bool,
    "list": list,
    "dict": dict,
    "bytes": bytes,
}


def _entity_type(entity_type: Any) -> type:
    if entity_type is None:
        raise ValueError(f"src or dest nil||src={entity_type!r}")
    cls = entity_type if isinstance(entity_type, type) else type(entity_type)
    if not dataclasses.is_dataclass(cls):
        xlog.warn("entity type =%s", cls.__name__)
        raise TypeError("src not struct")
    return cls


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


def _kind_accepts(kind: str, value: Any) -> bool:
    if kind in _SIZED_INTS:
        if isinstance(value, bool) or not isinstance(value, int):
            return False
        signed, bits = _SIZED_INTS[kind]
        if signed:
            return -(1 << (bits - 1)) <= value < (1 << (bits - 1))
        return 0 <= value < (1 << bits)
    if kind in ("float32", "float64"):
        return isinstance(value, float)
    if kind == "time":
        return isinstance(value, datetime)
    if kind == "string":
        return isinstance(value, str)
    if kind == "bool":
        return isinstance(value, bool)
    return True


def _annotation_accepts(annotation: Any, value: Any) -> bool:
    if annotation is Any or isinstance(annotation, str):
        return True
    if annotation is None or annotation is type(None):
        return value is None
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        return any(_annotation_accepts(arg, value) for arg in typing.get_args(annotation))
    if origin is not None:
        return isinstance(origin, type) and isinstance(value, origin)
    if annotation is int:
        return isinstance(value, int) and not isinstance(value, bool)
    if annotation is float:
        return isinstance(value, float)
    if isinstance(annotation, type):
        return isinstance(value, annotation)
    return True


@dataclasses.dataclass(frozen=True)
class _Target:
    name: str
    kind: str
    annotation: Any

    def accepts(self, value: Any) -> bool:
        if self.kind:
            return _kind_accepts(self.kind, value)
        return _annotation_accepts(self.annotation, value)


class CopyMap2EntityWrapper:
    """Precompiled lookup from dictionary keys to the fields of one dataclass type."""

    def __init__(self, entity_type: type) -> None:
        self.entity_type = entity_type
        self._targets: list[_Target] = []
        self._field_index: dict[str, int] = {}
        self._priority: dict[str, int] = {}
        priority = 0
        for idx, item in enumerate(dataclasses.fields(entity_type)):
            self._targets.append(
                _Target(
                    item.name,
                    item.metadata.get("kind") or "",
                    _resolve_annotation(item.type, entity_type),
                )
            )
            gorm_tag = item.metadata.get("gorm") or ""
            if gorm_tag == "-":
                continue
            gorm_tag = gorm_tag.replace("column:", "", 1)
            json_tag = item.metadata.get("json") or ""
            if json_tag == "-":
                continue
            for key in (gorm_tag, json_tag, item.name):
                if not key:
                    continue
                self._field_index[key] = idx
                self._priority[key] = priority
                priority += idx

    def convert_map_to_entity(self, src: Mapping[str, Any], dest: Any) -> list[str]:
        """Assign the values of src to dest and return the keys that lost out.

        When several keys name the same field, the one of higher priority
        (field name over json tag over gorm column) is used. Raises TypeError
        when dest is of another type or a value does not fit its field.
        """
        if dest is None:
            raise ValueError("dest ptr is nil")
        if isinstance(dest, type) or type(dest) is not self.entity_type:
            raise TypeError(
                f"illegal data type||want=({self.entity_type.__name__}) "
                f"get=({type(dest).__name__})"
            )
        chosen: dict[int, str] = {}
        skipped: list[str] = []
        for key in src:
            idx = self._field_index.get(key)
            if idx is None:
                continue
            other = chosen.get(idx)
            if other is None:
                chosen[idx] = key
            elif self._priority[other] < self._priority[key]:
                chosen[idx] = key
                skipped.append(other)
            else:
                skipped.append(key)
        for idx, key in chosen.items():
            target = self._targets[idx]
            value = src[key]
            if not target.accepts(value):
                wanted = target.kind or getattr(target.annotation, "__name__", str(target.annotation))
                raise TypeError(
                    f"value of type {type(value).__name__} is not assignable "
                    f"to field {target.name} of type {wanted}"
                )
        for idx, key in chosen.items():
            setattr(dest, self._targets[idx].name, src[key])
        return skipped


def compile_copy_map2entity_wrapper(entity_type: Any) -> CopyMap2EntityWrapper:
    """Build a wrapper for a dataclass type or an instance of one."""
    return CopyMap2EntityWrapper(_entity_type(entity_type))


def must_copy_map2entity_wrapper(entity_type: Any) -> CopyMap2EntityWrapper:
    """Like compile_copy_map2entity_wrapper; meant for module-level setup."""
    return compile_copy_map2entity_wrapper(entity_type)