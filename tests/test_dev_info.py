import calendar

import pytest

from hoyparse.dev_info import DEV_INFO_SIZE, DEVICE_MODELS, DevInfoParser, timegm

ALL_EXAMPLE = bytes.fromhex("271C 07E5 0401 072D 0001 0000 0000 DFDD")
SIMPLE_EXAMPLE = bytes.fromhex("271C 1012 7101 0100 0A00 2001 0000 E5F8")


def _parser(all_payload=ALL_EXAMPLE, simple_payload=SIMPLE_EXAMPLE):
    p = DevInfoParser()
    p.append_fragment_all(0, all_payload)
    p.append_fragment_simple(0, simple_payload)
    return p


@pytest.mark.parametrize(
    "stamp",
    [
        (1970, 1, 1, 0, 0, 0),
        (2000, 2, 29, 12, 0, 0),
        (2000, 3, 1, 0, 0, 0),
        (2021, 10, 25, 18, 37, 0),
        (1968, 1, 1, 0, 0, 0),
        (2100, 12, 31, 23, 59, 59),
    ],
)
def test_timegm_matches_calendar(stamp):
    assert timegm(*stamp) == calendar.timegm(stamp + (0, 0, 0))


def test_timegm_month_rolls_over():
    assert timegm(2020, 13, 1, 0, 0, 0) == timegm(2021, 1, 1, 0, 0, 0)


def test_firmware_fields_from_example():
    p = _parser()
    assert p.fw_build_version == 0x271C
    assert p.fw_bootloader_version == 1
    assert p.fw_build_datetime == calendar.timegm((2021, 10, 25, 18, 37, 0, 0, 0, 0))
    assert p.fw_build_datetime_str == "2021-10-25 18:37:00"


def test_hardware_fields_from_example():
    p = _parser()
    assert p.hw_part_number == 0x10127101
    assert p.hw_version == "01.00"
    assert p.hw_model_name == "HMS-2000-4T"
    assert p.max_power == 2000


def test_example_contains_valid_data():
    assert _parser().contains_valid_data() is True


def test_empty_parser_has_no_model_and_no_valid_data():
    p = DevInfoParser()
    assert p.max_power == 0
    assert p.hw_model_name == ""
    assert p.contains_valid_data() is False


def test_known_invalid_part_number_rejected():
    simple = bytes.fromhex("0000 0001 E4C1")
    p = _parser(simple_payload=simple)
    assert p.hw_part_number == 124097
    assert p.contains_valid_data() is False


def test_exact_four_byte_match_preferred():
    limited = _parser(simple_payload=bytes.fromhex("0000 1010 1015"))
    plain = _parser(simple_payload=bytes.fromhex("0000 1010 1000"))
    assert limited.hw_model_name == plain.hw_model_name == "HM-300-1T"
    assert plain.max_power == 300
    assert limited.max_power < plain.max_power


def test_three_byte_fallback_match():
    p = _parser(simple_payload=bytes.fromhex("0000 1021 4199"))
    assert p.hw_model_name == "HMS-800-2T"
    assert p.max_power == 800


def test_every_table_model_is_found_by_its_part():
    for model in DEVICE_MODELS:
        p = _parser(simple_payload=bytes(2) + bytes(model.hw_part))
        assert p.hw_model_name == model.name


def test_append_too_large_raises():
    p = DevInfoParser()
    with pytest.raises(ValueError):
        p.append_fragment_all(1, bytes(DEV_INFO_SIZE))
    with pytest.raises(ValueError):
        p.append_fragment_simple(DEV_INFO_SIZE, b"\x00")


def test_clear_buffers_reset_values():
    p = _parser()
    p.clear_buffer_all()
    p.clear_buffer_simple()
    assert p.fw_build_version == 0
    assert p.hw_part_number == 0
    assert p.hw_model_name == ""


def test_last_update_setters_propagate():
    p = DevInfoParser()
    p.last_update_all = 10
    assert p.last_update_all == 10
    assert p.last_update == 10
    p.last_update_simple = 20
    assert p.last_update_simple == 20
    assert p.last_update_all == 10
    assert p.last_update == 20