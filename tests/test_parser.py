import threading

import pytest

from hoyparse.parser import (
    MAX_RF_PAYLOAD_SIZE,
    Fragment,
    Parser,
    PayloadBuffer,
)


def test_fragment_length_matches_payload():
    frag = Fragment(main_cmd=0x95, fragment=b"\x01\x02\x03")
    assert frag.length == 3
    assert frag.fragment == b"\x01\x02\x03"


def test_fragment_rejects_oversized_payload():
    with pytest.raises(ValueError):
        Fragment(main_cmd=0x95, fragment=bytes(MAX_RF_PAYLOAD_SIZE + 1))


def test_fragment_accepts_maximum_payload():
    frag = Fragment(main_cmd=1, fragment=bytes(MAX_RF_PAYLOAD_SIZE), rssi=-60)
    assert frag.length == MAX_RF_PAYLOAD_SIZE
    assert frag.rssi == -60


def test_buffer_starts_empty_and_zeroed():
    buf = PayloadBuffer(8)
    assert len(buf) == 0
    assert buf[:] == bytes(8)


def test_buffer_append_places_bytes_at_offset():
    buf = PayloadBuffer(8)
    buf.append(2, b"\xaa\xbb")
    assert buf[2] == 0xAA
    assert buf[3] == 0xBB
    assert buf[0] == 0
    assert len(buf) == 2


def test_buffer_length_accumulates_over_appends():
    buf = PayloadBuffer(10)
    buf.append(0, b"\x01\x02\x03")
    buf.append(3, b"\x04\x05")
    assert len(buf) == 5
    assert buf[0:5] == b"\x01\x02\x03\x04\x05"


def test_buffer_append_too_large_raises():
    buf = PayloadBuffer(4)
    with pytest.raises(ValueError):
        buf.append(2, b"\x00\x00\x00")
    assert len(buf) == 0


def test_buffer_clear_resets_content_and_length():
    buf = PayloadBuffer(4)
    buf.append(0, b"\xff\xff\xff\xff")
    buf.clear()
    assert len(buf) == 0
    assert buf[:] == bytes(4)


def test_buffer_word_is_big_endian():
    buf = PayloadBuffer(4)
    buf.append(0, b"\x12\x34\x56\x78")
    assert buf.word(0) == 0x1234
    assert buf.word(2) == 0x5678


def test_buffer_setitem_roundtrip():
    buf = PayloadBuffer(4)
    buf[1] = 0x7F
    assert buf[1] == 0x7F
    assert len(buf) == 0


def test_parser_last_update_defaults_and_sets():
    p = Parser()
    assert p.last_update == 0
    p.last_update = 1234
    assert p.last_update == 1234


def test_appending_holds_lock_against_other_threads():
    p = Parser()

    def worker():
        p.begin_append_fragment()
        p.last_update = 5
        p.end_append_fragment()

    with p.appending():
        p.last_update = 1
        thread = threading.Thread(target=worker)
        thread.start()
        thread.join(0.1)
        assert p.last_update == 1
    thread.join(2)
    assert p.last_update == 5


def test_appending_releases_lock_on_error():
    p = Parser()
    with pytest.raises(RuntimeError):
        with p.appending():
            raise RuntimeError("boom")

    def worker():
        with p.appending():
            p.last_update = 7

    thread = threading.Thread(target=worker)
    thread.start()
    thread.join(2)
    assert p.last_update == 7