"""Parser for device information responses (firmware and hardware versions)."""

from __future__ import annotations

import calendar
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from .parser import Parser, PayloadBuffer

DEV_INFO_SIZE = 20

# Marks a wildcard fourth part-number byte in the model table.
ANY = 0xFF

_CUMDAYS = (0, 31, 59, 90, 120, 151, 181, 212, 243, 273, 304, 334)
_INVALID_PART_NUMBER = 124097


@dataclass(frozen=True)
class DeviceModel:
    """An inverter model identified by its hardware part number."""

    hw_part: tuple[int, int, int, int]
    max_power: int
    name: str


DEVICE_MODELS: tuple[DeviceModel, ...] = (
    DeviceModel((0x10, 0x10, 0x10, ANY), 300, "HM-300-1T"),
    DeviceModel((0x10, 0x10, 0x20, ANY), 350, "HM-350-1T"),
    DeviceModel((0x10, 0x10, 0x30, ANY), 400, "HM-400-1T"),
    DeviceModel((0x10, 0x10, 0x40, ANY), 400, "HM-400-1T"),
    DeviceModel((0x10, 0x11, 0x10, ANY), 600, "HM-600-2T"),
    DeviceModel((0x10, 0x11, 0x20, ANY), 700, "HM-700-2T"),
    DeviceModel((0x10, 0x11, 0x30, ANY), 800, "HM-800-2T"),
    DeviceModel((0x10, 0x11, 0x40, ANY), 800, "HM-800-2T"),
    DeviceModel((0x10, 0x12, 0x10, ANY), 1200, "HM-1200-4T"),
    DeviceModel((0x10, 0x02, 0x30, ANY), 1500, "MI-1500-4T Gen3"),
    DeviceModel((0x10, 0x12, 0x30, ANY), 1500, "HM-1500-4T"),
    # HM-300 factory limited to 70 %
    DeviceModel((0x10, 0x10, 0x10, 0x15), int(300 * 0.7), "HM-300-1T"),
    DeviceModel((0x10, 0x20, 0x11, ANY), 300, "HMS-300-1T"),
    DeviceModel((0x10, 0x20, 0x21, ANY), 350, "HMS-350-1T"),
    DeviceModel((0x10, 0x20, 0x41, ANY), 400, "HMS-400-1T"),
    DeviceModel((0x10, 0x10, 0x51, ANY), 450, "HMS-450-1T"),
    DeviceModel((0x10, 0x20, 0x51, ANY), 450, "HMS-450-1T"),
    DeviceModel((0x10, 0x10, 0x71, ANY), 500, "HMS-500-1T"),
    DeviceModel((0x10, 0x20, 0x71, ANY), 500, "HMS-500-1T v2"),
    DeviceModel((0x10, 0x21, 0x11, ANY), 600, "HMS-600-2T"),
    DeviceModel((0x10, 0x21, 0x21, ANY), 700, "HMS-700-2T"),
    DeviceModel((0x10, 0x21, 0x41, ANY), 800, "HMS-800-2T"),
    DeviceModel((0x10, 0x11, 0x41, ANY), 800, "HMS-800-2T-LV"),
    DeviceModel((0x10, 0x11, 0x51, ANY), 900, "HMS-900-2T"),
    DeviceModel((0x10, 0x21, 0x51, ANY), 900, "HMS-900-2T"),
    DeviceModel((0x10, 0x21, 0x71, ANY), 1000, "HMS-1000-2T"),
    DeviceModel((0x10, 0x11, 0x71, ANY), 1000, "HMS-1000-2T"),
    DeviceModel((0x10, 0x22, 0x41, ANY), 1600, "HMS-1600-4T"),
    DeviceModel((0x10, 0x12, 0x51, ANY), 1800, "HMS-1800-4T"),
    DeviceModel((0x10, 0x22, 0x51, ANY), 1800, "HMS-1800-4T"),
    DeviceModel((0x10, 0x12, 0x71, ANY), 2000, "HMS-2000-4T"),
    DeviceModel((0x10, 0x22, 0x71, ANY), 2000, "HMS-2000-4T"),
    DeviceModel((0x10, 0x32, 0x41, ANY), 1600, "HMT-1600-4T"),
    DeviceModel((0x10, 0x32, 0x51, ANY), 1800, "HMT-1800-4T"),
    DeviceModel((0x10, 0x32, 0x71, ANY), 2000, "HMT-2000-4T"),
    DeviceModel((0x10, 0x33, 0x11, ANY), 1800, "HMT-1800-6T"),
    DeviceModel((0x10, 0x33, 0x31, ANY), 2250, "HMT-2250-6T"),
    DeviceModel((0xF1, 0x01, 0x10, ANY), 600, "HERF-600"),
    DeviceModel((0xF1, 0x01, 0x14, ANY), 800, "HERF-800"),
    DeviceModel((0xF1, 0x01, 0x24, ANY), 1600, "HERF-1600"),
    DeviceModel((0xF1, 0x01, 0x22, ANY), 1800, "HERF-1800"),
)


def timegm(year: int, month: int, day: int, hour: int, minute: int, second: int) -> int:
    """Seconds since the Unix epoch for a UTC date; ``month`` counts from 1.

    Out-of-range months roll over into neighbouring years, and days, hours,
    minutes and seconds are added linearly.
    """
    year_shift, month_index = divmod(month - 1, 12)
    year += year_shift
    days = (year - 1970) * 365 + _CUMDAYS[month_index]
    days += (year - 1968) // 4
    days -= (year - 1900) // 100
    days += (year - 1600) // 400
    if calendar.isleap(year) and month_index < 2:
        days -= 1
    days += day - 1
    return ((days * 24 + hour) * 60 + minute) * 60 + second


class DevInfoParser(Parser):
    """Decodes the 'all' and 'simple' device information responses."""

    def __init__(self) -> None:
        super().__init__()
        self._all = PayloadBuffer(DEV_INFO_SIZE)
        self._simple = PayloadBuffer(DEV_INFO_SIZE)
        self._last_update_all = 0
        self._last_update_simple = 0

    def clear_buffer_all(self) -> None:
        self._all.clear()

    def append_fragment_all(self, offset: int, payload: bytes) -> None:
        self._all.append(offset, payload)

    def clear_buffer_simple(self) -> None:
        self._simple.clear()

    def append_fragment_simple(self, offset: int, payload: bytes) -> None:
        self._simple.append(offset, payload)

    @property
    def last_update_all(self) -> int:
        return self._last_update_all

    @last_update_all.setter
    def last_update_all(self, value: int) -> None:
        self._last_update_all = value
        self.last_update = value

    @property
    def last_update_simple(self) -> int:
        return self._last_update_simple

    @last_update_simple.setter
    def last_update_simple(self, value: int) -> None:
        self._last_update_simple = value
        self.last_update = value

    @property
    def fw_build_version(self) -> int:
        with self._lock:
            return self._all.word(0)

    @property
    def fw_build_datetime(self) -> int:
        """Firmware build time as seconds since the epoch (UTC)."""
        with self._lock:
            year = self._all.word(2)
            month_day = self._all.word(4)
            hour_minute = self._all.word(6)
        return timegm(
            year,
            month_day // 100,
            month_day % 100,
            hour_minute // 100,
            hour_minute % 100,
            0,
        )

    @property
    def fw_build_datetime_str(self) -> str:
        try:
            dt = datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(
                seconds=self.fw_build_datetime
            )
        except OverflowError as exc:
            raise ValueError("firmware build time out of range") from exc
        return (
            f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d} "
            f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}"
        )

    @property
    def fw_bootloader_version(self) -> int:
        with self._lock:
            return self._all.word(8)

    @property
    def hw_part_number(self) -> int:
        with self._lock:
            return (self._simple.word(2) << 16) | self._simple.word(4)

    @property
    def hw_version(self) -> str:
        with self._lock:
            return f"{self._simple[6]:02d}.{self._simple[7]:02d}"

    @property
    def max_power(self) -> int:
        model = self._model()
        return model.max_power if model else 0

    @property
    def hw_model_name(self) -> str:
        model = self._model()
        return model.name if model else ""

    def contains_valid_data(self) -> bool:
        try:
            year = time.localtime(self.fw_build_datetime).tm_year
        except (OverflowError, OSError, ValueError):
            return False
        return year > 2016 and self.hw_part_number != _INVALID_PART_NUMBER

    def _model(self) -> DeviceModel | None:
        with self._lock:
            part = tuple(self._simple[2:6])
        exact = next((m for m in DEVICE_MODELS if m.hw_part == part), None)
        if exact is not None:
            return exact
        return next((m for m in DEVICE_MODELS if m.hw_part[:3] == part[:3]), None)