"""Shared parser infrastructure: payload buffers, locking and command status."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

MAX_RF_PAYLOAD_SIZE = 32


class CommandStatus(Enum):
    """Outcome of the last command sent to an inverter."""

    OK = 0
    NOK = 1
    PENDING = 2


@dataclass
class Fragment:
    """A single radio packet received from or sent to an inverter."""

    main_cmd: int
    fragment: bytes
    channel: int = 0
    rssi: int = 0
    was_received: bool = False

    def __post_init__(self) -> None:
        self.fragment = bytes(self.fragment)
        if len(self.fragment) > MAX_RF_PAYLOAD_SIZE:
            raise ValueError(
                f"fragment of {len(self.fragment)} bytes exceeds "
                f"{MAX_RF_PAYLOAD_SIZE} byte radio payload"
            )

    @property
    def length(self) -> int:
        return len(self.fragment)


class PayloadBuffer:
    """Fixed-size byte buffer that is filled piecewise from fragments."""

    def __init__(self, size: int) -> None:
        self.size = size
        self._data = bytearray(size)
        self._length = 0

    def clear(self) -> None:
        """Zero the buffer and forget how much was appended."""
        self._data[:] = bytes(self.size)
        self._length = 0

    def append(self, offset: int, payload: bytes) -> None:
        """Copy ``payload`` into the buffer at ``offset``."""
        payload = bytes(payload)
        end = offset + len(payload)
        if offset < 0 or end > self.size:
            raise ValueError(f"packet too large for buffer ({end} > {self.size})")
        self._data[offset:end] = payload
        self._length += len(payload)

    def __len__(self) -> int:
        return self._length

    def __getitem__(self, index):
        value = self._data[index]
        if isinstance(index, slice):
            return bytes(value)
        return value

    def __setitem__(self, index, value) -> None:
        self._data[index] = value

    def word(self, index: int) -> int:
        """Return the big-endian unsigned 16 bit value at ``index``."""
        return (self._data[index] << 8) | self._data[index + 1]


class Parser:
    """Base class for all response parsers, guarding their data with a lock."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._last_update = 0

    @property
    def last_update(self) -> int:
        return self._last_update

    @last_update.setter
    def last_update(self, value: int) -> None:
        self._last_update = value

    def begin_append_fragment(self) -> None:
        self._lock.acquire()

    def end_append_fragment(self) -> None:
        self._lock.release()

    @contextmanager
    def appending(self) -> Iterator[None]:
        """Hold the parser's lock for the duration of a block of appends."""
        self.begin_append_fragment()
        try:
            yield
        finally:
            self.end_append_fragment()