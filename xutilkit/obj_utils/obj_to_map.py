"""Read selected fields of a dataclass instance into a dictionary keyed by gorm column."""

from __future__ import annotations

import dataclasses
from typing import Any, Iterable

from ..xlog import log as xlog


def _entity_type(entity_type: Any) -> type:
    if entity_type is None:
        raise ValueError(f"src or dest nil||src={entity_type!r}")
    cls = entity_type if isinstance(entity_type, type) else type(entity_type)
    if not dataclasses.is_dataclass(cls):
        xlog.warn("entity type =%s", cls.__name__)
        raise TypeError("src not struct")
    return cls


class CopyEntity2MapWrapper:
    """Precompiled lookup from gorm column names to fields of one dataclass type."""

    def __init__(self, entity_type: type) -> None:
        self.entity_type = entity_type
        self._columns: dict[str, str] = {}
        for item in dataclasses.fields(entity_type):
            tag = item.metadata.get("gorm") or ""
            if tag == "-":
                continue
            self._columns[tag.replace("column:", "", 1)] = item.name

    def convert_entity_to_map(
        self, data: Any, fields: Iterable[str]
    ) -> tuple[dict[str, Any], list[str]]:
        """Return the requested columns of data and the names that matched nothing."""
        if isinstance(data, type) or type(data) is not self.entity_type:
            raise TypeError(
                f"illegal data type||want=({self.entity_type.__name__}) "
                f"get=({type(data).__name__})"
            )
        output: dict[str, Any] = {}
        skipped: list[str] = []
        for name in fields:
            attr = self._columns.get(name)
            if attr is None:
                skipped.append(name)
            else:
                output[name] = getattr(data, attr)
        return output, skipped


def compile_copy_entity2map_wrapper(entity_type: Any) -> CopyEntity2MapWrapper:
    """Build a wrapper for a dataclass type or an instance of one."""
    return CopyEntity2MapWrapper(_entity_type(entity_type))


def must_compile_copy_entity2map_wrapper(entity_type: Any) -> CopyEntity2MapWrapper:
    """Like compile_copy_entity2map_wrapper; meant for module-level setup."""
    return compile_copy_entity2map_wrapper(entity_type)