"""Parser for the system configuration parameter response (power limit)."""

from __future__ import annotations

from .parser import CommandStatus, Parser, PayloadBuffer

SYSTEM_CONFIG_PARA_SIZE = 16


class SystemConfigParaParser(Parser):
    """Holds the active power limit reported by the inverter."""

    def __init__(self) -> None:
        super().__init__()
        self._payload = PayloadBuffer(SYSTEM_CONFIG_PARA_SIZE)
        # Nothing is assumed done at startup; the limit is fetched at startup.
        self.last_limit_command_success = CommandStatus.OK
        self.last_limit_request_success = CommandStatus.NOK
        self._last_update_command = 0
        self._last_update_request = 0

    def clear_buffer(self) -> None:
        self._payload.clear()

    def append_fragment(self, offset: int, payload: bytes) -> None:
        self._payload.append(offset, payload)

    @property
    def limit_percent(self) -> float:
        """Limit in percent of rated power, never above 100."""
        with self._lock:
            value = self._payload.word(2) / 10.0
        return min(100.0, value)

    @limit_percent.setter
    def limit_percent(self, value: float) -> None:
        raw = int(value * 10)
        if not 0 <= raw <= 0xFFFF:
            raise ValueError(f"limit {value} out of range")
        with self._lock:
            self._payload[2] = raw >> 8
            self._payload[3] = raw & 0xFF

    @property
    def last_update_command(self) -> int:
        return self._last_update_command

    @last_update_command.setter
    def last_update_command(self, value: int) -> None:
        self._last_update_command = value
        self.last_update = value

    @property
    def last_update_request(self) -> int:
        return self._last_update_request

    @last_update_request.setter
    def last_update_request(self, value: int) -> None:
        self._last_update_request = value
        self.last_update = value

    @property
    def expected_byte_count(self) -> int:
        return SYSTEM_CONFIG_PARA_SIZE