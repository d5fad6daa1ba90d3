import struct

import pytest

from hoyparse.grid_profile import (
    GRID_PROFILE_SIZE,
    GridProfileItem,
    GridProfileParser,
)

HEADER = bytes([0x0A, 0x00, 0x20, 0x01])


def _word(value, divider):
    return struct.pack(">h", round(value * divider))


def _parser_with(data):
    parser = GridProfileParser()
    parser.append_fragment(0, data)
    return parser


def test_empty_parser():
    parser = GridProfileParser()
    assert parser.profile_name == "Unknown"
    assert parser.get_profile() == []
    assert parser.raw_data == b""
    assert not parser.contains_valid_data()


def test_header_from_documented_example():
    parser = _parser_with(HEADER)
    assert parser.profile_name == "XX - EN 50549-1:2019"
    assert parser.profile_version == "2.0.1"


def test_unknown_profile_name():
    parser = _parser_with(bytes([0x0A, 0x05, 0x00, 0x00]))
    assert parser.profile_name == "Unknown"


def test_header_only_gives_no_sections():
    assert _parser_with(HEADER).get_profile() == []


def test_island_detection_section():
    parser = _parser_with(HEADER + bytes([0x20, 0x00]) + _word(1, 1))
    profile = parser.get_profile()
    assert len(profile) == 1
    assert profile[0].name == "Island Detection (ID)"
    assert profile[0].items == [GridProfileItem("ID Function Activated", "bool", 1.0)]


def test_voltage_section_values_round_trip():
    values = [230.0, 184.0, 3.0, 253.0, 0.1]
    dividers = [10, 10, 10, 10, 10]
    body = b"".join(_word(v, d) for v, d in zip(values, dividers))
    parser = _parser_with(HEADER + bytes([0x00, 0x00]) + body)
    (section,) = parser.get_profile()
    assert section.name == "Voltage (H/LVRT)"
    assert [item.name for item in section.items] == [
        "Nominale Voltage (NV)",
        "Low Voltage 1 (LV1)",
        "LV1 Maximum Trip Time (MTT)",
        "High Voltage 1 (HV1)",
        "HV1 Maximum Trip Time (MTT)",
    ]
    assert [item.unit for item in section.items] == ["V", "V", "s", "V", "s"]
    assert [item.value for item in section.items] == pytest.approx(values)


def test_negative_values_are_signed():
    parser = _parser_with(HEADER + bytes([0xA0, 0x02]) + _word(1, 1) + _word(-5, 1))
    (section,) = parser.get_profile()
    assert section.name == "Reactive Power Control (RPC)"
    assert section.items[1].name == "Reactive Power (VAR)"
    assert section.items[1].value == -5.0


def test_multiple_sections_in_order():
    data = (
        HEADER
        + bytes([0x20, 0x00]) + _word(1, 1)
        + bytes([0x70, 0x02]) + _word(0, 1) + _word(0.5, 100)
    )
    profile = _parser_with(data).get_profile()
    assert [s.name for s in profile] == [
        "Island Detection (ID)",
        "Active Power Control (APC)",
    ]
    assert profile[1].items[1].name == "Power Ramp Rate (PRR)"
    assert profile[1].items[1].value == pytest.approx(0.5)


def test_unknown_value_item():
    body = b"".join(_word(v, 10) for v in (1, 2, 3, 4, 5)) + _word(7, 1)
    (section,) = _parser_with(HEADER + bytes([0x00, 0x08]) + body).get_profile()
    assert section.items[-1] == GridProfileItem("Unknown Value", "", 7.0)


def test_unknown_section_stops_parsing():
    data = HEADER + bytes([0x20, 0x00]) + _word(1, 1) + bytes([0x05, 0x00, 0x00, 0x01])
    profile = _parser_with(data).get_profile()
    assert [s.name for s in profile] == ["Island Detection (ID)"]


def test_unknown_version_gives_empty_section_and_continues():
    data = HEADER + bytes([0x20, 0x09]) + bytes([0x20, 0x00]) + _word(1, 1)
    profile = _parser_with(data).get_profile()
    assert [s.name for s in profile] == ["Island Detection (ID)"] * 2
    assert profile[0].items == []
    assert len(profile[1].items) == 1


def test_raw_data_from_fragments():
    parser = GridProfileParser()
    parser.append_fragment(0, HEADER)
    parser.append_fragment(4, bytes([0x20, 0x00, 0x00, 0x01]))
    assert parser.raw_data == HEADER + bytes([0x20, 0x00, 0x00, 0x01])


def test_append_too_large_raises():
    parser = GridProfileParser()
    with pytest.raises(ValueError):
        parser.append_fragment(GRID_PROFILE_SIZE - 2, b"\x00\x00\x00")


def test_contains_valid_data_threshold():
    assert not _parser_with(bytes(6)).contains_valid_data()
    assert _parser_with(bytes(7)).contains_valid_data()


def test_clear_buffer_resets():
    parser = _parser_with(HEADER + bytes([0x20, 0x00]) + _word(1, 1))
    parser.clear_buffer()
    assert parser.raw_data == b""
    assert parser.get_profile() == []
    assert parser.profile_name == "Unknown"
    assert parser.profile_version == "0.0.0"