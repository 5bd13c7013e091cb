import math
import time
from dataclasses import dataclass
from datetime import date, datetime, timedelta

import pytest

from xutilkit.utils.common import (
    bool2int,
    cal_timecost,
    catch_panic,
    convert_map_int32,
    convert_struct,
    earth_distance,
    format_date,
    get_current_day_start_time,
    get_day_start_ts,
    get_day_str,
    get_hour_one_hot,
    get_key,
    md5_sum,
    must_bytes,
    must_int,
    must_string,
    must_string_indent,
    str2int64,
    user_reg_transfer,
)


@pytest.mark.parametrize("data, expected", [(1.000, 1), (2.0, 2), ("3", 3)])
def test_must_int(data, expected):
    assert must_int(data) == expected


@pytest.mark.parametrize("data", ["abc", "1.5", " 3", None, True, [1]])
def test_must_int_failure(data):
    assert must_int(data) == -1


def test_must_int_truncates_and_signs():
    assert must_int(-2.9) == -2
    assert must_int("-17") == -17


def test_get_day_start_ts():
    ts = int(time.time())
    start = get_day_start_ts(ts)
    assert start % 86400 == 86400 - 3600
    assert abs(start - ts) < 2 * 86400


def test_get_day_str():
    ts = int(time.time())
    assert get_day_str(ts) == datetime.fromtimestamp(ts).strftime("%Y%m%d")


def test_earth_distance_same_point():
    assert earth_distance(6.505989, 3.392925, 6.505989, 3.392925) == 0


def test_earth_distance_symmetric_and_positive():
    a = earth_distance(6.5, 3.39, 6.6, 3.5)
    b = earth_distance(6.6, 3.5, 6.5, 3.39)
    assert a > 0
    assert math.isclose(a, b)


def test_md5_sum():
    assert md5_sum("") == "d41d8cd98f00b204e9800998ecf8427e"


def test_must_string_compact_sorted():
    assert must_string({"b": 1, "a": [1, 2]}) == '{"a":[1,2],"b":1}'


def test_must_string_escapes_html():
    assert must_string("<a&b>") == '"\\u003ca\\u0026b\\u003e"'


def test_must_string_falls_back():
    value = object()
    assert must_string(value) == str(value)


def test_must_string_indent():
    assert must_string_indent({"a": 1}) == '{\n   "a": 1\n}'


def test_must_bytes():
    assert must_bytes([1, "x"]) == b'[1,"x"]'


def test_convert_map_int32():
    assert convert_map_int32({"a": "5", "b": 2.7, "c": 7}) == {"a": 5, "b": 2, "c": 7}
    assert convert_map_int32({"big": 2**31}) == {"big": -(2**31)}


def test_convert_map_int32_rejects_non_mapping():
    with pytest.raises(TypeError):
        convert_map_int32([1, 2])


def test_get_key():
    assert get_key("user", 1, "x") == "user:1:x"
    assert get_key("p", True, None) == "p:true:<nil>"
    assert get_key("solo") == "solo"


@dataclass
class _Inner:
    value: int


@dataclass
class _Source:
    name: str
    count: int
    inner: _Inner


@dataclass
class _Target:
    Name: str
    inner: _Inner
    extra: int = 9


def test_convert_struct_dataclass():
    result = convert_struct(_Source("n", 3, _Inner(4)), _Target)
    assert result == _Target(Name="n", inner=_Inner(4), extra=9)


def test_convert_struct_dict():
    assert convert_struct(_Inner(5), dict) == {"value": 5}


def test_convert_struct_type_error():
    with pytest.raises(TypeError):
        convert_struct("text", _Inner)


def _explode():
    raise ValueError("boom")


def test_catch_panic_swallows():
    with catch_panic() as guard:
        _explode()
    assert type(guard.error) is ValueError
    assert guard.error.args == ("boom",)


def test_catch_panic_without_error():
    with catch_panic() as guard:
        pass
    assert guard.error is None


def test_format_date():
    assert format_date(date(2021, 3, 4)) == "20210304"
    assert format_date(datetime(999, 12, 1, 5)) == " 9991201"


def test_get_hour_one_hot():
    before = datetime.now().hour
    one_hot = get_hour_one_hot()
    after = datetime.now().hour
    assert len(one_hot) == 24
    assert sum(one_hot) == 1.0
    assert one_hot.index(1.0) in {before, after}


def test_get_current_day_start_time():
    start = get_current_day_start_time()
    assert start % 86400 == 0
    assert datetime.utcfromtimestamp(start).date() == date.today()


def test_cal_timecost():
    cost = cal_timecost(datetime.now() - timedelta(seconds=2))
    assert 2000 <= cost < 60000
    assert cost == int(cost)


def test_bool2int():
    assert bool2int(True) == 1
    assert bool2int(False) == 0


@pytest.mark.parametrize(
    "gap, expected",
    [
        (-5, 0),
        (0, 0),
        (1, 1),
        (84000 * 7, 1),
        (84000 * 7 + 1, 2),
        (30 * 86400, 2),
        (30 * 86400 + 1, 3),
    ],
)
def test_user_reg_transfer(gap, expected):
    now = 1_700_000_000
    assert user_reg_transfer(now, now - gap) == expected


@pytest.mark.parametrize(
    "text, expected",
    [
        ("42", 42),
        ("-7", -7),
        ("+8", 8),
        ("", 0),
        ("abc", 0),
        ("1_000", 0),
        ("9223372036854775807", 9223372036854775807),
        ("9223372036854775808", 0),
    ],
)
def test_str2int64(text, expected):
    assert str2int64(text) == expected