import itertools
from dataclasses import dataclass, make_dataclass
from datetime import datetime, timezone

import pytest

from xutilkit.obj_utils.obj_copy import (
    CopyFieldWrapper,
    compile_copy_field_wrapper,
    copy_field_values,
    field_spec,
)

EPOCH_PLUS_100 = datetime(1970, 1, 1, 0, 1, 40, tzinfo=timezone.utc)


@dataclass
class Src1:
    F1: int = 0
    F11: int = field_spec("int64")
    F2: str = ""
    F3: float = 0.0
    F5: str = ""
    F6: int = 0
    FT: datetime = field_spec("time")
    FTint: int = field_spec("int64")
    FTT: datetime = field_spec("time")


@dataclass
class Dst1:
    F1: int = 0
    F11: int = field_spec("uint64")
    F2: str = ""
    F3: float = field_spec("float32")
    F5: int = 0
    F10: int = 0
    FT: float = 0.0
    FTint: datetime = field_spec("time")
    FTT: datetime = field_spec("time")


@dataclass
class Dst3:
    F0: int = field_spec("uint64", json="F1")
    F1: float = field_spec("float32")
    F: int = field_spec("int", json="F2")


@dataclass
class Proj1:
    F1: int = field_spec("int", json="f1")
    F11: int = field_spec("int64")
    F3: int = 0


@dataclass
class Proj2:
    F1: int = 0
    F11: int = field_spec("int64", json="f11")
    F3: int = 0


@dataclass
class Cmp1:
    F1: int = 0
    F11: int = field_spec("int64")
    F2: str = ""
    F3: float = 0.0
    F5: str = ""
    F6: int = 0


@dataclass
class Cmp2:
    F1: int = 0
    F11: int = field_spec("uint64")
    F2: str = ""
    F3: float = field_spec("float32")
    F5: int = 0
    F10: int = 0


@dataclass
class Inner:
    x: int = 0


@dataclass
class WithNested:
    F: int = 0
    nested: Inner = None


@dataclass
class Record:
    id: int = 0
    name: str = ""
    score: int = 0


@dataclass
class HiddenSrc:
    F: int = field_spec("int", json="-")


@dataclass
class PlainDst:
    F: int = 0


KINDS = [
    "int", "int8", "int16", "int32", "int64",
    "uint", "uint8", "uint16", "uint32", "uint64",
    "float32", "float64", "time",
]


def _holder(kind):
    annotation = {"float32": float, "float64": float, "time": datetime}.get(kind, int)
    return make_dataclass(f"Holder_{kind}", [("F", annotation, field_spec(kind))])


def _value_of(obj):
    value = obj.F
    if isinstance(value, datetime):
        return int(value.timestamp())
    return value


def _copy_single(src_kind, value, dest_kind):
    src = _holder(src_kind)(F=value)
    dest = _holder(dest_kind)()
    skipped = copy_field_values(src, dest)
    return dest, skipped


def test_copy_field_values_struct():
    now_ts = datetime.now(timezone.utc)
    o1 = Src1(
        F1=1,
        F11=11,
        F2="2",
        F3=3.0,
        F5="5",
        F6=6,
        FT=now_ts,
        FTint=int(now_ts.timestamp()) + 1,
        FTT=now_ts.replace(hour=(now_ts.hour + 1) % 24),
    )
    o2 = Dst1()
    skipped = copy_field_values(o1, o2)
    assert skipped == ["F5", "F10"]
    assert o2.F1 == o1.F1
    assert o2.F11 == 11
    assert o2.F2 == o1.F2
    assert o2.F3 == 3.0
    assert o2.F5 == 0
    assert int(o2.FT) == int(o1.FT.timestamp())
    assert int(o2.FTint.timestamp()) == o1.FTint
    assert o2.FTT == o1.FTT


def test_copy_field_values_nil_arguments():
    with pytest.raises(ValueError):
        copy_field_values(None, Dst1())
    with pytest.raises(ValueError):
        copy_field_values(Src1(), None)


def test_copy_field_values_projection():
    o1 = Src1(F1=1, F11=11, F2="2", F3=3.0, F5="5", F6=6)
    o3 = Dst1()
    skipped = copy_field_values(o1, o3, "F1", "F2", "F6")
    assert skipped == ["F6"]
    assert o3.F1 == 1
    assert o3.F11 == 0
    assert o3.F2 == "2"
    assert o3.F3 == 0.0
    assert o3.F5 == 0


def test_copy_field_values_json_alias():
    o1 = Src1(F1=1, F2="2")
    o4 = Dst3()
    skipped = copy_field_values(o1, o4)
    assert o4.F0 == 1
    assert o4.F1 == 1.0
    assert o4.F == 0
    assert skipped == ["F"]


def test_json_projection():
    w = compile_copy_field_wrapper(Proj1, Proj2)
    o1 = Proj1(F1=10, F11=1111, F3=2222)
    o2 = Proj2()
    skipped = w.copy_field_values(o1, o2, "F1", "f11")
    assert skipped == []
    assert o2.F11 == o1.F11
    assert o2.F1 == o1.F1
    assert o2.F3 == 0


def test_compile_copy_field_wrapper():
    w = compile_copy_field_wrapper(Cmp1(), Cmp2())
    assert isinstance(w, CopyFieldWrapper) and w.skipped_fields() == ["F5", "F10"]
    o1 = Cmp1(F1=1, F11=11, F2="2", F3=3.0, F5="5", F6=6)
    o2 = Cmp2()
    with pytest.raises(ValueError):
        w.copy_field_values(None, o2)
    with pytest.raises(ValueError):
        w.copy_field_values(o1, None)

    skipped = w.copy_field_values(o1, o2)
    assert skipped == ["F5", "F10"]
    assert o2.F1 == 1
    assert o2.F11 == 11
    assert o2.F2 == "2"
    assert o2.F3 == 3.0
    assert o2.F5 == 0

    o3 = Cmp2()
    w.copy_field_values(o1, o3, "F1", "F2", "F6")
    assert o3.F1 == 1
    assert o3.F11 == 0
    assert o3.F2 == "2"
    assert o3.F3 == 0.0
    assert o3.F5 == 0


@pytest.mark.parametrize("src_kind,dest_kind", list(itertools.product(KINDS, KINDS)))
def test_copy_all_kind_pairs(src_kind, dest_kind):
    value = EPOCH_PLUS_100 if src_kind == "time" else 100
    dest, skipped = _copy_single(src_kind, value, dest_kind)
    assert skipped == []
    assert _value_of(dest) == 100


@pytest.mark.parametrize(
    "src_kind,value,dest_kind",
    [
        ("int64", 300, "int8"),
        ("int", -5, "uint8"),
        ("float64", -1.5, "uint32"),
        ("uint64", 2**63, "int64"),
        ("uint64", 2**63 + 5, "float64"),
        ("float64", 1e300, "float32"),
        ("uint8", 200, "int8"),
        ("uint64", 2**63 + 1, "time"),
        ("time", datetime(1970, 1, 1, 0, 16, 40, tzinfo=timezone.utc), "int8"),
    ],
)
def test_out_of_range_values_are_skipped(src_kind, value, dest_kind):
    dest, skipped = _copy_single(src_kind, value, dest_kind)
    assert skipped == ["F"]
    fresh = _holder(dest_kind)()
    assert dest.F == fresh.F


@pytest.mark.parametrize(
    "src_kind,value,dest_kind,expected",
    [
        ("float64", 3.9, "int", 3),
        ("float64", -3.9, "int", -3),
        ("float64", 2.5, "float32", 2.5),
        ("uint8", 200, "int16", 200),
        ("int8", 100, "uint64", 100),
        ("float32", 7.0, "uint8", 7),
    ],
)
def test_numeric_conversions(src_kind, value, dest_kind, expected):
    dest, skipped = _copy_single(src_kind, value, dest_kind)
    assert skipped == []
    assert dest.F == expected


def test_aggregate_projection_prefix_is_stripped():
    src = Proj2(F1=5, F11=6, F3=7)
    dest = Proj2()
    skipped = copy_field_values(src, dest, "max(F3) as F3", "missing")
    assert skipped == ["missing"]
    assert dest.F3 == 7
    assert dest.F1 == 0


def test_reserved_id_is_copied_with_projection():
    src = Record(id=42, name="alpha", score=9)
    dest = Record()
    skipped = copy_field_values(src, dest, "name")
    assert skipped == []
    assert dest.id == 42
    assert dest.name == "alpha"
    assert dest.score == 0


def test_hidden_source_field_is_not_copied():
    dest = PlainDst()
    skipped = copy_field_values(HiddenSrc(F=3), dest)
    assert skipped == ["F"]
    assert dest.F == 0


def test_nested_struct_fields_not_reported_as_skipped():
    w = compile_copy_field_wrapper(WithNested, WithNested)
    assert w.skipped_fields() == []
    dest = WithNested()
    skipped = w.copy_field_values(WithNested(F=4, nested=Inner(1)), dest)
    assert skipped == ["nested"]
    assert dest.F == 4
    assert dest.nested is None


def test_wrapper_rejects_wrong_types():
    w = compile_copy_field_wrapper(Cmp1, Cmp2)
    with pytest.raises(TypeError):
        w.copy_field_values(Cmp2(), Cmp2())
    with pytest.raises(TypeError):
        w.copy_field_values(Cmp1(), Cmp1())


def test_compile_rejects_bad_arguments():
    with pytest.raises(ValueError):
        compile_copy_field_wrapper(None, Cmp2)
    with pytest.raises(TypeError):
        compile_copy_field_wrapper(int, Cmp2)
    with pytest.raises(TypeError):
        compile_copy_field_wrapper(Cmp1, "text")


def test_copy_field_values_rejects_classes():
    with pytest.raises(TypeError):
        copy_field_values(Cmp1, Cmp2())
    with pytest.raises(TypeError):
        copy_field_values(Cmp1(), Cmp2)


def test_field_spec_zero_defaults():
    holder = make_dataclass(
        "Defaults",
        [
            ("a", int, field_spec("int8")),
            ("b", float, field_spec("float32")),
            ("c", datetime, field_spec("time")),
            ("d", str, field_spec("string")),
        ],
    )()
    assert holder.a == 0
    assert holder.b == 0.0
    assert holder.c == datetime(1, 1, 1, tzinfo=timezone.utc)
    assert holder.d == ""


def test_field_spec_mutable_default_not_shared():
    cls = make_dataclass("Lists", [("items", list, field_spec(default=[1]))])
    first, second = cls(), cls()
    first.items.append(2)
    assert second.items == [1]


def test_field_spec_unknown_kind():
    with pytest.raises(ValueError):
        field_spec("int128")