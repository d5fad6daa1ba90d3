"""State of the power on/off/restart command."""

from __future__ import annotations

from .parser import CommandStatus, Parser


class PowerCommandParser(Parser):
    """Tracks the result and time of the last power command."""

    def __init__(self) -> None:
        super().__init__()
        # Assume nothing is pending at startup.
        self.last_power_command_success = CommandStatus.OK
        self._last_update_command = 0

    @property
    def last_update_command(self) -> int:
        return self._last_update_command

    @last_update_command.setter
    def last_update_command(self, value: int) -> None:
        self._last_update_command = value
        self.last_update = value