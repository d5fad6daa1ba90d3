"""Parser for the real-time statistics response (voltages, currents, yields)."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import IntEnum
from itertools import groupby
from typing import Callable, Iterable

from .parser import Parser, PayloadBuffer

STATISTIC_PACKET_SIZE = 7 * 16

# Divisor value that marks a field computed from other fields.
CMD_CALC = 0xFFFF


class UnitId(IntEnum):
    """Physical unit of a field."""

    V = 0
    A = 1
    W = 2
    WH = 3
    KWH = 4
    HZ = 5
    C = 6
    PCT = 7
    VAR = 8
    NONE = 9


UNITS: tuple[str, ...] = ("V", "A", "W", "Wh", "kWh", "Hz", "°C", "%", "var", "")


class FieldId(IntEnum):
    """Kind of value a field holds."""

    UDC = 0
    IDC = 1
    PDC = 2
    YD = 3
    YT = 4
    UAC = 5
    IAC = 6
    PAC = 7
    F = 8
    T = 9
    PF = 10
    EFF = 11
    IRR = 12
    Q = 13
    EVT_LOG = 14
    # three-phase inverters only
    UAC_1N = 15
    UAC_2N = 16
    UAC_3N = 17
    UAC_12 = 18
    UAC_23 = 19
    UAC_31 = 20
    IAC_1 = 21
    IAC_2 = 22
    IAC_3 = 23


FIELD_NAMES: tuple[str, ...] = (
    "Voltage", "Current", "Power", "YieldDay", "YieldTotal",
    "Voltage", "Current", "Power", "Frequency", "Temperature", "PowerFactor",
    "Efficiency", "Irradiation", "ReactivePower", "EventLogCount",
    "Voltage Ph1-N", "Voltage Ph2-N", "Voltage Ph3-N", "Voltage Ph1-Ph2",
    "Voltage Ph2-Ph3", "Voltage Ph3-Ph1", "Current Ph1", "Current Ph2", "Current Ph3",
)


class Calc(IntEnum):
    """Computations available to fields whose divisor is ``CMD_CALC``."""

    TOTAL_YT = 0
    TOTAL_YD = 1
    CH_UDC = 2
    TOTAL_PDC = 3
    TOTAL_EFF = 4
    CH_IRR = 5
    TOTAL_IAC = 6


class ChannelNum(IntEnum):
    """Channel number; CH0 carries the AC and inverter-wide values."""

    CH0 = 0
    CH1 = 1
    CH2 = 2
    CH3 = 3
    CH4 = 4
    CH5 = 5


CHANNEL_COUNT = len(ChannelNum)


class ChannelType(IntEnum):
    """Group a channel belongs to."""

    AC = 0
    DC = 1
    INV = 2


CHANNEL_TYPE_NAMES: tuple[str, ...] = ("AC", "DC", "INV")

RUNTIME_FIELDS: tuple[FieldId, ...] = (
    FieldId.UDC, FieldId.IDC, FieldId.PDC, FieldId.UAC, FieldId.IAC, FieldId.PAC,
    FieldId.F, FieldId.T, FieldId.PF, FieldId.Q,
    FieldId.UAC_1N, FieldId.UAC_2N, FieldId.UAC_3N,
    FieldId.UAC_12, FieldId.UAC_23, FieldId.UAC_31,
    FieldId.IAC_1, FieldId.IAC_2, FieldId.IAC_3,
)

DAILY_PRODUCTION_FIELDS: tuple[FieldId, ...] = (FieldId.YD,)


@dataclass(frozen=True)
class ByteAssignment:
    """Where a field lives in the payload and how to scale it.

    For computed fields ``div`` is ``CMD_CALC``, ``start`` names the
    :class:`Calc` to run and ``num`` is its argument.
    """

    type: ChannelType
    ch: ChannelNum
    field_id: FieldId
    unit_id: UnitId
    start: int
    num: int
    div: int
    is_signed: bool = False
    digits: int = 0

    @property
    def is_calculated(self) -> bool:
        return self.div == CMD_CALC


def _millis() -> int:
    return int(time.monotonic() * 1000) & 0xFFFFFFFF


def _to_signed(raw: int, bits: int) -> int:
    sign = 1 << (bits - 1)
    return raw - (1 << bits) if raw & sign else raw


_Key = tuple[int, int, int]


class StatisticsParser(Parser):
    """Decodes the statistics payload according to a byte assignment table."""

    def __init__(self) -> None:
        super().__init__()
        self._payload = PayloadBuffer(STATISTIC_PACKET_SIZE)
        self._assignments: tuple[ByteAssignment, ...] = ()
        self._expected_byte_count = 0
        self._offsets: dict[_Key, float] = {}
        self._string_max_power = [0] * CHANNEL_COUNT
        self._rx_failure_count = 0
        self._last_yield_day = [0.0] * CHANNEL_COUNT
        self.last_update_from_internal = 0
        self.yield_day_correction = False
        self._calculations: dict[int, Callable[[int], float]] = {
            Calc.TOTAL_YT: self._calc_total_yield_total,
            Calc.TOTAL_YD: self._calc_total_yield_day,
            Calc.CH_UDC: self._calc_channel_udc,
            Calc.TOTAL_PDC: self._calc_total_power_dc,
            Calc.TOTAL_EFF: self._calc_total_efficiency,
            Calc.CH_IRR: self._calc_channel_irradiation,
            Calc.TOTAL_IAC: self._calc_total_current_ac,
        }

    # -- buffer handling -------------------------------------------------

    def clear_buffer(self) -> None:
        self._payload.clear()

    def append_fragment(self, offset: int, payload: bytes) -> None:
        self._payload.append(offset, payload)

    def end_append_fragment(self) -> None:
        """Release the lock and apply the daily yield correction."""
        super().end_append_fragment()

        if not self.yield_day_correction:
            self.reset_yield_day_correction()
            return

        for channel in self.channels_by_type(ChannelType.DC):
            current = self.get_field_value(ChannelType.DC, channel, FieldId.YD)
            last = self._last_yield_day[channel]
            if current < last:
                # The inverter restarted its daily counter: carry the old value.
                self.set_field_offset(ChannelType.DC, channel, FieldId.YD, last)
                self._last_yield_day[channel] = 0.0
            else:
                self._last_yield_day[channel] = current

    def set_byte_assignment(self, assignments: Iterable[ByteAssignment]) -> None:
        self._assignments = tuple(assignments)
        for assignment in self._assignments:
            if assignment.is_calculated:
                continue
            self._expected_byte_count = max(
                self._expected_byte_count, assignment.start + assignment.num
            )

    @property
    def expected_byte_count(self) -> int:
        """Number of payload bytes the assignment table needs."""
        return self._expected_byte_count

    # -- field access ----------------------------------------------------

    def _find(self, channel_type, channel, field) -> ByteAssignment | None:
        return next(
            (
                a
                for a in self._assignments
                if a.type == channel_type and a.ch == channel and a.field_id == field
            ),
            None,
        )

    def _require(self, channel_type, channel, field) -> ByteAssignment:
        assignment = self._find(channel_type, channel, field)
        if assignment is None:
            raise KeyError(f"no field {field!r} on {channel_type!r} channel {channel!r}")
        return assignment

    def get_field_value(self, channel_type, channel, field) -> float:
        """Scaled value of a field, or 0.0 if the inverter has no such field."""
        assignment = self._find(channel_type, channel, field)
        if assignment is None:
            return 0.0

        if assignment.is_calculated:
            return self._calculations[assignment.start](assignment.num)

        end = assignment.start + assignment.num
        with self._lock:
            raw = int.from_bytes(self._payload[assignment.start:end], "big")

        if assignment.is_signed and assignment.num in (2, 4):
            raw = _to_signed(raw, assignment.num * 8)
        result = raw / assignment.div

        key = (channel_type, channel, field)
        if key in self._offsets and len(self._payload) > 0:
            result += self._offsets[key]
        return result

    def set_field_value(self, channel_type, channel, field, value: float) -> bool:
        """Store ``value`` into the payload; False if the field cannot be set."""
        assignment = self._find(channel_type, channel, field)
        if assignment is None or assignment.is_calculated:
            return False

        value -= self._offsets.get((channel_type, channel, field), 0.0)
        raw = int(value * assignment.div)
        if assignment.is_signed and assignment.num == 2:
            raw &= 0xFFFF
        raw &= 0xFFFFFFFF
        raw &= (1 << (8 * assignment.num)) - 1

        end = assignment.start + assignment.num
        with self._lock:
            self._payload[assignment.start:end] = raw.to_bytes(assignment.num, "big")
        return True

    def get_field_value_string(self, channel_type, channel, field) -> str:
        digits = self.get_field_digits(channel_type, channel, field)
        return f"{self.get_field_value(channel_type, channel, field):.{digits}f}"

    def has_field_value(self, channel_type, channel, field) -> bool:
        return self._find(channel_type, channel, field) is not None

    def get_field_unit(self, channel_type, channel, field) -> str:
        return UNITS[self._require(channel_type, channel, field).unit_id]

    def get_field_name(self, channel_type, channel, field) -> str:
        return FIELD_NAMES[self._require(channel_type, channel, field).field_id]

    def get_field_digits(self, channel_type, channel, field) -> int:
        return self._require(channel_type, channel, field).digits

    def get_field_offset(self, channel_type, channel, field) -> float:
        return self._offsets.get((channel_type, channel, field), 0.0)

    def set_field_offset(self, channel_type, channel, field, offset: float) -> None:
        self._offsets[(channel_type, channel, field)] = offset

    # -- channels --------------------------------------------------------

    def channel_types(self) -> list[ChannelType]:
        return [ChannelType.AC, ChannelType.DC, ChannelType.INV]

    def channel_type_name(self, channel_type) -> str:
        return CHANNEL_TYPE_NAMES[channel_type]

    def channels_by_type(self, channel_type) -> list[ChannelNum]:
        """Channels of a type in table order, with adjacent repeats merged."""
        channels = (a.ch for a in self._assignments if a.type == channel_type)
        return [ChannelNum(ch) for ch, _ in groupby(channels)]

    def get_string_max_power(self, channel: int) -> int:
        if not 0 <= channel < CHANNEL_COUNT:
            raise IndexError(f"channel {channel} out of range")
        return self._string_max_power[channel]

    def set_string_max_power(self, channel: int, power: int) -> None:
        if 0 <= channel < CHANNEL_COUNT:
            self._string_max_power[channel] = power

    # -- counters and housekeeping ---------------------------------------

    @property
    def rx_failure_count(self) -> int:
        return self._rx_failure_count

    def reset_rx_failure_count(self) -> None:
        self._rx_failure_count = 0

    def increment_rx_failure_count(self) -> None:
        self._rx_failure_count += 1

    def zero_runtime_data(self) -> None:
        self._zero_fields(RUNTIME_FIELDS)

    def zero_daily_data(self) -> None:
        self._zero_fields(DAILY_PRODUCTION_FIELDS)

    def reset_yield_day_correction(self) -> None:
        """Forget the daily yield offsets, as at the start of a new day."""
        for channel in self.channels_by_type(ChannelType.DC):
            self.set_field_offset(ChannelType.DC, channel, FieldId.YD, 0.0)
            self._last_yield_day[channel] = 0.0

    @property
    def last_update(self) -> int:
        """Time new data was received from the inverter."""
        return Parser.last_update.fget(self)

    @last_update.setter
    def last_update(self, value: int) -> None:
        Parser.last_update.fset(self, value)
        self.last_update_from_internal = value

    def _zero_fields(self, fields: Iterable[FieldId]) -> None:
        fields = tuple(fields)
        for channel_type in self.channel_types():
            for channel in self.channels_by_type(channel_type):
                for field in fields:
                    if self.has_field_value(channel_type, channel, field):
                        self.set_field_value(channel_type, channel, field, 0)
        self.last_update_from_internal = _millis()

    # -- computed fields -------------------------------------------------

    def _sum_over(self, channel_type: ChannelType, field: FieldId) -> float:
        return sum(
            self.get_field_value(channel_type, ch, field)
            for ch in self.channels_by_type(channel_type)
        )

    def _calc_total_yield_total(self, _arg: int) -> float:
        return self._sum_over(ChannelType.DC, FieldId.YT)

    def _calc_total_yield_day(self, _arg: int) -> float:
        return self._sum_over(ChannelType.DC, FieldId.YD)

    def _calc_channel_udc(self, channel: int) -> float:
        return self.get_field_value(ChannelType.DC, ChannelNum(channel), FieldId.UDC)

    def _calc_total_power_dc(self, _arg: int) -> float:
        return self._sum_over(ChannelType.DC, FieldId.PDC)

    def _calc_total_efficiency(self, _arg: int) -> float:
        ac_power = self._sum_over(ChannelType.AC, FieldId.PAC)
        dc_power = self._sum_over(ChannelType.DC, FieldId.PDC)
        if dc_power > 0:
            return ac_power / dc_power * 100.0
        return 0.0

    def _calc_channel_irradiation(self, channel: int) -> float:
        max_power = self.get_string_max_power(channel)
        if max_power > 0:
            pdc = self.get_field_value(ChannelType.DC, ChannelNum(channel), FieldId.PDC)
            return pdc / max_power * 100.0
        return 0.0

    def _calc_total_current_ac(self, _arg: int) -> float:
        return sum(
            self.get_field_value(ChannelType.AC, ChannelNum.CH0, field)
            for field in (FieldId.IAC_1, FieldId.IAC_2, FieldId.IAC_3)
        )