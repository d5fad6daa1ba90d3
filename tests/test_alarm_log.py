import pytest

from hoyparse.alarm_log import (
    ALARM_LOG_PAYLOAD_SIZE,
    AlarmLogParser,
    AlarmMessage,
    AlarmMessageLocale,
    AlarmMessageType,
    timezone_offset,
)

# Payload of the documented example response (after the frame header).
EXAMPLE_PAYLOAD = bytes.fromhex("0001" "8001000191EA91EA00000000" "008F")


def _entry(wcode, start, end):
    return (
        wcode.to_bytes(2, "big")
        + bytes(2)
        + start.to_bytes(2, "big")
        + end.to_bytes(2, "big")
        + bytes(4)
    )


def _parser_with(*entries):
    parser = AlarmLogParser()
    parser.append_fragment(0, bytes(2) + b"".join(entries))
    return parser


def test_example_entry_count():
    parser = AlarmLogParser()
    parser.append_fragment(0, EXAMPLE_PAYLOAD)
    assert parser.entry_count == 1


def test_example_entry_decoded():
    parser = AlarmLogParser()
    parser.append_fragment(0, EXAMPLE_PAYLOAD)
    entry = parser.get_log_entry(0)
    tz = timezone_offset()
    assert entry.message_id == 1
    assert entry.message == "Inverter start"
    assert entry.start_time == 0x91EA + tz
    assert entry.end_time == 0x91EA + tz


def test_example_entry_localized():
    parser = AlarmLogParser()
    parser.append_fragment(0, EXAMPLE_PAYLOAD)
    assert parser.get_log_entry(0, AlarmMessageLocale.DE).message == "Wechselrichter gestartet"
    assert parser.get_log_entry(0, AlarmMessageLocale.FR).message == "L'onduleur a démarré"


def test_entry_count_needs_header():
    parser = AlarmLogParser()
    assert parser.entry_count == 0
    parser.append_fragment(0, b"\x00")
    assert parser.entry_count == 0


def test_pm_bits_add_half_day():
    parser = _parser_with(_entry(0x3004, 0x0100, 0x0200))
    entry = parser.get_log_entry(0)
    tz = timezone_offset()
    assert entry.message == "Offline"
    assert entry.start_time == 0x0100 + 12 * 60 * 60 + tz
    assert entry.end_time == 0x0200 + 12 * 60 * 60 + tz


def test_zero_end_time_stays_zero():
    parser = _parser_with(_entry(0x3004, 0x0100, 0))
    assert parser.get_log_entry(0).end_time == 0


def test_unknown_message_per_locale():
    parser = _parser_with(_entry(0x0005, 1, 1))
    assert parser.get_log_entry(0).message == "Unknown"
    assert parser.get_log_entry(0, AlarmMessageLocale.DE).message == "Unbekannt"
    assert parser.get_log_entry(0, AlarmMessageLocale.FR).message == "Inconnu"


def test_missing_translation_falls_back_to_english():
    parser = _parser_with(_entry(0x0002, 1, 1))
    assert parser.get_log_entry(0, AlarmMessageLocale.DE).message == "Zeitabgleich"
    assert parser.get_log_entry(0, AlarmMessageLocale.FR).message == "Time calibration"


def test_hmt_specific_message_selected():
    parser = _parser_with(_entry(215, 1, 1))
    assert parser.get_log_entry(0).message == "PV-1: Input overvoltage"
    parser.message_type = AlarmMessageType.HMT
    assert parser.get_log_entry(0).message == "MPPT-C: Input overvoltage"


def test_hmt_falls_back_to_generic_message():
    parser = _parser_with(_entry(220, 1, 1))
    parser.message_type = AlarmMessageType.HMT
    assert parser.get_log_entry(0).message == "PV-3: Input undervoltage"


def test_message_id_is_low_byte_of_wcode():
    parser = _parser_with(_entry(0x3004, 1, 1))
    assert parser.get_log_entry(0).message_id == 4


def test_entries_match_individual_lookups():
    parser = _parser_with(_entry(1, 10, 20), _entry(4, 30, 0), _entry(121, 5, 6))
    entries = list(parser.entries(AlarmMessageLocale.DE))
    assert len(entries) == parser.entry_count == 3
    assert entries == [parser.get_log_entry(i, AlarmMessageLocale.DE) for i in range(3)]


def test_clear_buffer_resets_count():
    parser = AlarmLogParser()
    parser.append_fragment(0, EXAMPLE_PAYLOAD)
    parser.clear_buffer()
    assert parser.entry_count == 0
    assert parser.get_log_entry(0).message == "Unknown"


def test_append_beyond_buffer_raises():
    parser = AlarmLogParser()
    with pytest.raises(ValueError):
        parser.append_fragment(ALARM_LOG_PAYLOAD_SIZE - 4, bytes(8))


def test_entry_id_out_of_range_raises():
    parser = AlarmLogParser()
    with pytest.raises(IndexError):
        parser.get_log_entry(15)
    with pytest.raises(IndexError):
        parser.get_log_entry(-1)


def test_localized_fallbacks():
    msg = AlarmMessage(AlarmMessageType.ALL, 1, "english", "", "francais")
    assert msg.localized(AlarmMessageLocale.EN) == "english"
    assert msg.localized(AlarmMessageLocale.DE) == "english"
    assert msg.localized(AlarmMessageLocale.FR) == "francais"


def test_timezone_offset_is_plausible():
    offset = timezone_offset()
    assert -14 * 3600 <= offset <= 14 * 3600
    assert offset % 900 == 0