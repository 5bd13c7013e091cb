# xutilkit

A small library for services. It has no dependencies beyond the standard library.

- `xutilkit.xlog`: a levelled logger. It formats records on the calling thread
  and writes them to the registered writers on a background thread. There is a
  console writer and a buffered file writer that can rotate on a time pattern.
- `xutilkit.utils`: helpers for integer lists, numbers, unique ids, wait groups,
  conversions and time formatting.
- `xutilkit.obj_utils`: copies fields between dataclass instances, fills
  dataclasses from dictionaries and reads dataclass fields into dictionaries.

## Install

```
pip install .
pip install ".[test]"   # also installs pytest
```

## Logging

```python
from xutilkit.xlog import log, config

config.setup_log_default()          # coloured console output, level DEBUG
log.info("started %s", "worker")
log.warn("queue length %d", 42)
log.close()                         # drain queued records and flush writers
```

The levels, from lowest to highest, are `Level.TRACE`, `DEBUG`, `INFO`,
`PUBLIC`, `WARNING` (printed as `WARN`), `ERROR` and `FATAL`. A record below
the logger's level is dropped. The message is filled in with `msg % args`.
A record carries the time, the caller's `file:line` and the text. The
module-level functions (`trace`, `debug`, `info`, `warn`, `error`, `fatal`,
`public`, `register`, `set_level`, `set_layout`, `close`) act on the logger
that `default_logger()` returns. You can also create your own `Logger()`.

Writers:

- `ConsoleWriter(color=False, stream=None)` writes each record to the stream,
  which is standard output by default. With `color=True` the record is
  rendered with ANSI colours (`color_format`).
- `FileWriter(filename, level_floor, level_ceil)` appends records whose
  level lies between the floor and the ceiling, both included.
  `set_path_pattern(pattern)` sets the name a file is moved to on rotation.
  In the pattern, `%Y` is the year, `%M` the month, `%D` the day, `%H` the hour
  and `%m` the minute. Any other `%` sequence raises `ValueError`.
  `rotate()` moves the file aside when one of these fields has changed and
  opens a new one. The logger's worker calls `flush()` about once a second
  and `rotate()` about every ten seconds.

To configure the default logger from a JSON file:

```json
{
  "LogLevel": "info",
  "FileWriter": {
    "On": true,
    "LogPath": "logs/app.log",
    "RotateLogPath": "logs/app.log.%Y%M%D%H",
    "WfLogPath": "logs/app.wf.log",
    "RotateWfLogPath": "logs/app.wf.log.%Y%M%D%H",
    "PublicLogPath": "",
    "RotatePublicLogPath": ""
  },
  "ConsoleWriter": {"On": false, "Color": false}
}
```

```python
config.setup_log_with_conf_file("log.json")
```

Keys match without regard to case. When a `WfLogPath` is given, the main log
takes TRACE to PUBLIC and the second file takes WARNING to FATAL. A public
log takes PUBLIC only. `LogLevel` must be one of `trace`, `debug`, `info`,
`warning`, `error` or `fatal`. Any other value raises `ValueError`, after the
writers have been registered. `LogConfig.from_dict` and `setup_log_with_conf`
take the same settings from a dictionary or a `LogConfig`.

## Utilities

```python
from xutilkit.utils.lists import int_list_intersect, int_list_joins
from xutilkit.utils.mathx import ceil_mode, round_int
from xutilkit.utils.common import md5_sum, get_key
from xutilkit.utils.time2 import offset_ts

int_list_intersect([1, 2, 3, 4], [2, 3, 4, 6, 7])   # [2, 3, 4]
int_list_joins([1, 2, 3], ",")                      # "1,2,3"
ceil_mode(7, 2)                                     # 4
round_int(2.5)                                      # 3
get_key("user", 1, "profile")                       # "user:1:profile"
offset_ts(3661)                                     # "01:01:01"
```

- `utils.mathx`: `max_of`, `min_of`, `b2i`, `iif`, `int_range` (inclusive),
  `in_array` and `to_int32_list` (wraps values to 32 bits).
- `utils.strings.generate_uid()` returns a 20-character, time-sortable id.
- `utils.sync`: `WaitGroup` has `add`, `done` and `wait(timeout)`.
  `wait_timeout(group, timeout)` returns `False` if the timeout runs out
  first. The timeout is given in seconds or as a `timedelta`.
- `utils.common` covers:
  - JSON helpers: `must_string`, `must_string_indent` and `must_bytes`, which
    fall back to `str()` when the data cannot be encoded.
  - Number parsing: `must_int` returns -1 for bad input. `str2int64` returns 0
    for bad input.
  - Conversions: `convert_map_int32` and `convert_struct(source, target_type)`,
    which goes through JSON into a dataclass.
  - Date and time: `get_day_start_ts`, `get_day_str`, `format_date`,
    `get_current_day_start_time`, `get_hour_one_hot` and `cal_timecost`.
  - Other helpers: `md5_sum`, `earth_distance` (metres), `bool2int` and
    `user_reg_transfer`.
  - `catch_panic()`, a context manager. It logs an exception at FATAL,
    swallows it and keeps it in `.error`.
- `utils.time2`: `now`, `today_start`, `format_time`, `format_d` (`YYYYMMDD`),
  `format_dt` (`YYYY-MM-DD HH:MM:SS`) and `offset_ts`. Each takes an optional
  `tzinfo` and otherwise uses the local zone.

## Object copying

```python
from dataclasses import dataclass
from xutilkit.obj_utils.obj_copy import copy_field_values, field_spec

@dataclass
class Src:
    F1: int = 0
    F2: str = ""

@dataclass
class Dest:
    F1: int = field_spec("uint32")
    F2: str = ""

src, dest = Src(1, "two"), Dest()
skipped = copy_field_values(src, dest)   # names of fields not copied
```

Fields are matched by name or by json tag. A field with the same kind on both
sides is copied as it is. Numeric fields and `datetime` fields are converted:
a time becomes Unix seconds and Unix seconds become a UTC time. A value that
does not fit the destination's range is skipped.

`field_spec(kind, json, gorm, default)` declares a field's storage kind and
its tags. The kinds are `int`, `int8` to `int64`, `uint`, `uint8` to `uint64`,
`float32`, `float64`, `time`, `string` and `bool`. Extra names passed to
`copy_field_values` restrict the copy to those fields, plus `id` and `id_str`.
`compile_copy_field_wrapper(src_type, dest_type)` builds a reusable
`CopyFieldWrapper`, which also offers `skipped_fields()`.

`obj_utils.map_to_obj.compile_copy_map2entity_wrapper(type)` returns a
wrapper whose `convert_map_to_entity(mapping, obj)` assigns dictionary values
to the fields named by gorm column, json tag or field name. When several keys
name one field, a single key wins and the others are returned. A value that
does not fit its field raises `TypeError`.

`obj_utils.obj_to_map.compile_copy_entity2map_wrapper(type)` returns a
wrapper whose `convert_entity_to_map(obj, columns)` returns the requested gorm
columns as a dictionary, together with the names that matched no field.

## What it does not do

The package is a library only. It installs no command-line program. Its
loggers write to streams and local files. It does not ship log records
anywhere else.