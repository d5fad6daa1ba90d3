"""Parser for the grid profile response (the inverter's grid code settings)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple

from .parser import Parser, PayloadBuffer

GRID_PROFILE_SIZE = 141
_HEADER_SIZE = 4

PROFILE_TYPES: dict[tuple[int, int], str] = {
    (0x02, 0x00): "US - NA_IEEE1547_240V",
    (0x03, 0x00): "DE - DE_VDE4105_2018",
    (0x03, 0x01): "DE - DE_VDE4105_2011",
    (0x0A, 0x00): "XX - EN 50549-1:2019",
    (0x0C, 0x00): "AT - AT_TOR_Erzeuger_default",
    (0x0D, 0x04): "XX - NF_EN_50549-1:2019",
    (0x10, 0x00): "ES - ES_RD1699",
    (0x12, 0x00): "PL - EU_EN50438",
    (0x29, 0x00): "NL - NL_NEN-EN50549-1_2019",
    (0x37, 0x00): "CH - CH_NA EEA-NE7-CH2020",
}

PROFILE_SECTIONS: dict[int, str] = {
    0x00: "Voltage (H/LVRT)",
    0x10: "Frequency (H/LFRT)",
    0x20: "Island Detection (ID)",
    0x30: "Reconnection (RT)",
    0x40: "Ramp Rates (RR)",
    0x50: "Frequency Watt (FW)",
    0x60: "Volt Watt (VW)",
    0x70: "Active Power Control (APC)",
    0x80: "Volt Var (VV)",
    0x90: "Specified Power Factor (SPF)",
    0xA0: "Reactive Power Control (RPC)",
    0xB0: "Watt Power Factor (WPF)",
}


class _ItemDefinition(NamedTuple):
    name: str
    unit: str
    divider: int


ITEM_DEFINITIONS: dict[int, _ItemDefinition] = {
    0x01: _ItemDefinition("Nominale Voltage (NV)", "V", 10),
    0x02: _ItemDefinition("Low Voltage 1 (LV1)", "V", 10),
    0x03: _ItemDefinition("LV1 Maximum Trip Time (MTT)", "s", 10),
    0x04: _ItemDefinition("High Voltage 1 (HV1)", "V", 10),
    0x05: _ItemDefinition("HV1 Maximum Trip Time (MTT)", "s", 10),
    0x06: _ItemDefinition("Low Voltage 2 (LV2)", "V", 10),
    0x07: _ItemDefinition("LV2 Maximum Trip Time (MTT)", "s", 100),
    0x08: _ItemDefinition("High Voltage 2 (HV2)", "V", 10),
    0x09: _ItemDefinition("HV2 Maximum Trip Time (MTT)", "s", 100),
    0x0A: _ItemDefinition("10mins Average High Voltage (AHV)", "V", 10),
    0x0B: _ItemDefinition("High Voltage 3 (HV3)", "V", 10),
    0x0C: _ItemDefinition("HV3 Maximum Trip Time (MTT)", "s", 100),
    0x0D: _ItemDefinition("Nominal Frequency", "Hz", 100),
    0x0E: _ItemDefinition("Low Frequency 1 (LF1)", "Hz", 100),
    0x0F: _ItemDefinition("LF1 Maximum Trip Time (MTT)", "s", 10),
    0x10: _ItemDefinition("High Frequency 1 (HF1)", "Hz", 100),
    0x11: _ItemDefinition("HF1 Maximum Trip time (MTT)", "s", 10),
    0x12: _ItemDefinition("Low Frequency 2 (LF2)", "Hz", 100),
    0x13: _ItemDefinition("LF2 Maximum Trip Time (MTT)", "s", 10),
    0x14: _ItemDefinition("High Frequency 2 (HF2)", "Hz", 100),
    0x15: _ItemDefinition("HF2 Maximum Trip time (MTT)", "s", 10),
    0x16: _ItemDefinition("ID Function Activated", "bool", 1),
    0x17: _ItemDefinition("Reconnect Time (RT)", "s", 10),
    0x18: _ItemDefinition("Reconnect High Voltage (RHV)", "V", 10),
    0x19: _ItemDefinition("Reconnect Low Voltage (RLV)", "V", 10),
    0x1A: _ItemDefinition("Reconnect High Frequency (RHF)", "Hz", 100),
    0x1B: _ItemDefinition("Reconnect Low Frequency (RLF)", "Hz", 100),
    0x1C: _ItemDefinition("Normal Ramp up Rate(RUR_NM)", "Rated%/s", 100),
    0x1D: _ItemDefinition("Soft Start Ramp up Rate (RUR_SS)", "Rated%/s", 100),
    0x1E: _ItemDefinition("FW Function Activated", "bool", 1),
    0x1F: _ItemDefinition("Start of Frequency Watt Droop (Fstart)", "Hz", 100),
    0x20: _ItemDefinition("FW Droop Slope (Kpower_Freq)", "Pn%/Hz", 10),
    0x21: _ItemDefinition("Recovery Ramp Rate (RRR)", "Pn%/s", 100),
    0x22: _ItemDefinition("Recovery High Frequency (RVHF)", "Hz", 10),
    0x23: _ItemDefinition("Recovery Low Frequency (RVLF)", "Hz", 100),
    0x24: _ItemDefinition("VW Function Activated", "bool", 1),
    0x25: _ItemDefinition("Start of Voltage Watt Droop (Vstart)", "V", 10),
    0x26: _ItemDefinition("End of Voltage Watt Droop (Vend)", "V", 10),
    0x27: _ItemDefinition("Droop Slope (Kpower_Volt)", "Pn%/V", 100),
    0x28: _ItemDefinition("APC Function Activated", "bool", 1),
    0x29: _ItemDefinition("Power Ramp Rate (PRR)", "Pn%/s", 100),
    0x2A: _ItemDefinition("VV Function Activated", "bool", 1),
    0x2B: _ItemDefinition("Voltage Set Point V1", "V", 10),
    0x2C: _ItemDefinition("Reactive Set Point Q1", "%Pn", 10),
    0x2D: _ItemDefinition("Voltage Set Point V2", "V", 10),
    0x2E: _ItemDefinition("Voltage Set Point V3", "V", 10),
    0x2F: _ItemDefinition("Voltage Set Point V4", "V", 10),
    0x30: _ItemDefinition("Reactive Set Point Q4", "%Pn", 10),
    0x31: _ItemDefinition("VV Setting Time (Tr)", "s", 10),
    0x32: _ItemDefinition("SPF Function Activated", "bool", 1),
    0x33: _ItemDefinition("Power Factor (PF)", "", 100),
    0x34: _ItemDefinition("RPC Function Activated", "bool", 1),
    0x35: _ItemDefinition("Reactive Power (VAR)", "%Sn", 1),
    0x36: _ItemDefinition("WPF Function Activated", "bool", 1),
    0x37: _ItemDefinition("Start of Power of WPF (Pstart)", "%Pn", 10),
    0x38: _ItemDefinition("Power Factor ar Rated Power (PFRP)", "", 100),
    0x39: _ItemDefinition("Low Voltage 3 (LV3)", "V", 10),
    0x3A: _ItemDefinition("LV3 Maximum Trip Time (MTT)", "s", 100),
    0x3B: _ItemDefinition("Momentary Cessition Low Voltage", "V", 10),
    0x3C: _ItemDefinition("Momentary Cessition High Voltage", "V", 10),
    0x3D: _ItemDefinition("FW Settling Time (Tr)", "s", 10),
    0x3E: _ItemDefinition("LF2 Maximum Trip Time (MTT)", "s", 100),
    0x3F: _ItemDefinition("HF2 Maximum Trip time (MTT)", "s", 100),
    0x40: _ItemDefinition("Short Interruption Reconnect Time (SRT)", "s", 10),
    0x41: _ItemDefinition("Short Interruption Time (SIT)", "s", 10),
    0xFF: _ItemDefinition("Unknown Value", "", 1),
}

# Item definitions carried by each (section id, section version), in wire order.
SECTION_LAYOUTS: dict[tuple[int, int], tuple[int, ...]] = {
    (0x00, 0x00): (0x01, 0x02, 0x03, 0x04, 0x05),
    (0x00, 0x01): (0x01, 0x02, 0x03, 0x04, 0x05, 0x08, 0x09),
    (0x00, 0x02): (0x01, 0x02, 0x03, 0x04, 0x05, 0x06, 0x07),
    (0x00, 0x03): (0x01, 0x02, 0x03, 0x05, 0x06, 0x07, 0x08, 0x09),
    (0x00, 0x08): (0x01, 0x02, 0x03, 0x04, 0x05, 0xFF),
    (0x00, 0x0A): (0x01, 0x02, 0x03, 0x04, 0x05, 0x06, 0x07, 0x0A),
    (0x00, 0x0B): (0x01, 0x02, 0x03, 0x04, 0x05, 0x06, 0x07, 0x08, 0x09, 0x0A),
    (0x00, 0x0C): (0x01, 0x02, 0x03, 0x04, 0x05, 0x06, 0x07, 0x08, 0x09, 0x0B, 0x0C, 0x0A),
    (0x00, 0x35): (
        0x01, 0x02, 0x03, 0x04, 0x05, 0x06, 0x07, 0x08, 0x09, 0x39, 0x3A, 0x3B, 0x3C,
    ),
    (0x10, 0x00): (0x0D, 0x0E, 0x0F, 0x10, 0x11),
    (0x10, 0x03): (0x0D, 0x0E, 0x0F, 0x10, 0x11, 0x12, 0x3E, 0x14, 0x3F),
    (0x20, 0x00): (0x16,),
    (0x30, 0x03): (0x17, 0x18, 0x19, 0x1A, 0x1B),
    (0x30, 0x07): (0x17, 0x18, 0x19, 0x1A, 0x1B, 0x40, 0x41),
    (0x40, 0x00): (0x1C, 0x1D),
    (0x50, 0x00): (0x1E, 0x1F, 0x20, 0x21),
    (0x50, 0x01): (0x1E, 0x1F, 0x20, 0x21, 0x22),
    (0x50, 0x08): (0x1E, 0x1F, 0x20, 0x21, 0x22, 0x23),
    (0x50, 0x11): (0x1E, 0x1F, 0x20, 0x21, 0x3D),
    (0x60, 0x00): (0x24, 0x25, 0x26, 0x27),
    (0x60, 0x04): (0x24, 0x25, 0x26, 0x27),
    (0x70, 0x00): (0x28,),
    (0x70, 0x02): (0x28, 0x29),
    (0x80, 0x00): (0x2A, 0x2B, 0x2C, 0x2D, 0x2E, 0x2F, 0x30),
    (0x80, 0x01): (0x2A, 0x2B, 0x2C, 0x2D, 0x2E, 0x2F, 0x30, 0x31),
    (0x90, 0x00): (0x32, 0x33),
    (0xA0, 0x02): (0x34, 0x35),
    (0xB0, 0x00): (0x36, 0x37, 0x38),
}


@dataclass
class GridProfileItem:
    """One scaled value of a grid profile section."""

    name: str
    unit: str
    value: float


@dataclass
class GridProfileSection:
    """A named group of grid profile values."""

    name: str
    items: list[GridProfileItem] = field(default_factory=list)


def _int16(raw: int) -> int:
    return raw - 0x10000 if raw & 0x8000 else raw


class GridProfileParser(Parser):
    """Decodes the grid profile the inverter is running."""

    def __init__(self) -> None:
        super().__init__()
        self._payload = PayloadBuffer(GRID_PROFILE_SIZE)

    def clear_buffer(self) -> None:
        self._payload.clear()

    def append_fragment(self, offset: int, payload: bytes) -> None:
        self._payload.append(offset, payload)

    @property
    def profile_name(self) -> str:
        with self._lock:
            key = (self._payload[0], self._payload[1])
        return PROFILE_TYPES.get(key, "Unknown")

    @property
    def profile_version(self) -> str:
        with self._lock:
            major_minor = self._payload[2]
            patch = self._payload[3]
        return f"{(major_minor >> 4) & 0x0F}.{major_minor & 0x0F}.{patch}"

    @property
    def raw_data(self) -> bytes:
        """The received bytes, as many as have been appended."""
        with self._lock:
            return self._payload[: len(self._payload)]

    def get_profile(self) -> list[GridProfileSection]:
        """Decode all sections; stops at the first unknown section id.

        A known section whose version is unknown is returned without items.
        """
        sections: list[GridProfileSection] = []
        with self._lock:
            length = len(self._payload)
            if length <= _HEADER_SIZE:
                return sections
            pos = _HEADER_SIZE
            while True:
                section_id = self._read_byte(pos)
                section_version = self._read_byte(pos + 1)
                pos += 2
                name = PROFILE_SECTIONS.get(section_id)
                if name is None:
                    break
                section = GridProfileSection(name)
                for item_id in SECTION_LAYOUTS.get((section_id, section_version), ()):
                    definition = ITEM_DEFINITIONS[item_id]
                    raw = (self._read_byte(pos) << 8) | self._read_byte(pos + 1)
                    section.items.append(
                        GridProfileItem(
                            definition.name,
                            definition.unit,
                            _int16(raw) / definition.divider,
                        )
                    )
                    pos += 2
                sections.append(section)
                if pos >= length:
                    break
        return sections

    def contains_valid_data(self) -> bool:
        return len(self._payload) > 6

    def _read_byte(self, pos: int) -> int:
        if pos >= GRID_PROFILE_SIZE:
            raise ValueError("grid profile data runs past the end of the buffer")
        return self._payload[pos]