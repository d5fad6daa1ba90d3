# hoyparse

Decoders for the reply payloads that Hoymiles micro-inverters send over
their radio link. You pass the fragments of a reply to a parser and read
the decoded values back.

## Installation

```
pip install .
```

Only the standard library is needed.

## Parsers

| Module | Class | Decodes |
| --- | --- | --- |
| `hoyparse.statistics` | `StatisticsParser` | Live values per channel (voltage, current, power, yield, temperature and so on), laid out by a table of `ByteAssignment` entries |
| `hoyparse.dev_info` | `DevInfoParser` | Firmware build version and time, bootloader version, hardware part number and version, model name and rated power |
| `hoyparse.alarm_log` | `AlarmLogParser` | Alarm log entries with texts in English, German or French |
| `hoyparse.grid_profile` | `GridProfileParser` | Grid profile name, version, raw bytes and its sections of values |
| `hoyparse.system_config` | `SystemConfigParaParser` | The active power limit in percent (capped at 100) |
| `hoyparse.power_command` | `PowerCommandParser` | Status and time of the last power command |

All parsers derive from `hoyparse.parser.Parser`, which holds the time of
the last update (`last_update`) and a lock. `Parser.appending()` is a
context manager that holds that lock while fragments are appended;
`begin_append_fragment()` and `end_append_fragment()` do the same by hand.
Fragments are stored in a `PayloadBuffer`; appending past the end of the
buffer raises `ValueError`. `CommandStatus` (`OK`, `NOK`, `PENDING`) records
the outcome of a command, and `Fragment` describes a single radio packet of
at most 32 bytes.

## Device information

```python
from hoyparse.dev_info import DevInfoParser

info = DevInfoParser()
with info.appending():
    info.append_fragment_all(0, bytes.fromhex("271c07e50401072d00010000"))
with info.appending():
    info.append_fragment_simple(0, bytes.fromhex("271c10127101010000"))

print(info.fw_build_version)       # 10012
print(info.fw_build_datetime_str)  # 2021-10-25 18:37:00
print(info.hw_model_name)          # HMS-2000-4T
print(info.max_power)              # 2000
```

The model is looked up in `DEVICE_MODELS` first on all four part-number
bytes, then on the first three. `contains_valid_data()` is true once the
firmware build year is after 2016.

## Statistics

```python
from hoyparse.statistics import (
    ByteAssignment, ChannelNum, ChannelType, FieldId, StatisticsParser, UnitId,
)

stats = StatisticsParser()
stats.set_byte_assignment([
    ByteAssignment(ChannelType.DC, ChannelNum.CH1, FieldId.UDC, UnitId.V,
                   start=2, num=2, div=10, digits=1),
])
with stats.appending():
    stats.append_fragment(0, bytes.fromhex("0000012c"))

print(stats.expected_byte_count)                                            # 4
print(stats.get_field_value_string(ChannelType.DC, ChannelNum.CH1, FieldId.UDC))  # 30.0
print(stats.get_field_unit(ChannelType.DC, ChannelNum.CH1, FieldId.UDC))          # V
```

Fields whose `div` is `CMD_CALC` are computed from other fields (totals,
efficiency, irradiation); `start` names the `Calc` to run. Reading a field
that is not in the table gives `0.0`; asking for its unit, name or digits
raises `KeyError`. With `yield_day_correction` switched on,
`end_append_fragment()` keeps the daily yield from dropping when the
inverter restarts its counter.

## Alarm log and grid profile

`AlarmLogParser.get_log_entry(entry_id, locale)` decodes one entry and
`AlarmLogParser.entries(locale)` yields all of them, as `AlarmLogEntry`
objects; `entry_count` tells how many are held. Start and end times are
shifted by the local time zone offset. Set `message_type` to
`AlarmMessageType.HMT` to get the three-phase texts where they differ.

`GridProfileParser.get_profile()` returns a list of `GridProfileSection`
objects, each with its `GridProfileItem` values. Decoding stops at the
first unknown section id; a known section of unknown version comes back
without items. `profile_name`, `profile_version` and `raw_data` give the
header and the received bytes.

## What the package does not do

It does no radio I/O, builds and sends no commands and keeps no queue of
them. It only decodes payloads handed to it and keeps the status values
that the caller sets.

## Tests

```
pip install ".[test]"
pytest
```