"""Parser for the inverter's alarm (event) log response."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from .parser import CommandStatus, Parser, PayloadBuffer

ALARM_LOG_ENTRY_COUNT = 15
ALARM_LOG_ENTRY_SIZE = 12
ALARM_LOG_PAYLOAD_SIZE = ALARM_LOG_ENTRY_COUNT * ALARM_LOG_ENTRY_SIZE + 4

_HALF_DAY = 12 * 60 * 60
_HEADER_SIZE = 2


class AlarmMessageType(Enum):
    """Inverter family a message text applies to."""

    ALL = 0
    HMT = 1


class AlarmMessageLocale(Enum):
    """Languages in which alarm texts are available."""

    EN = 0
    DE = 1
    FR = 2


_UNKNOWN_TEXT = {
    AlarmMessageLocale.EN: "Unknown",
    AlarmMessageLocale.DE: "Unbekannt",
    AlarmMessageLocale.FR: "Inconnu",
}


@dataclass(frozen=True)
class AlarmMessage:
    """Text of one alarm code in the supported languages."""

    inverter_type: AlarmMessageType
    message_id: int
    en: str
    de: str = ""
    fr: str = ""

    def localized(self, locale: AlarmMessageLocale) -> str:
        """Text in ``locale``, falling back to English where none exists."""
        if locale is AlarmMessageLocale.DE:
            return self.de or self.en
        if locale is AlarmMessageLocale.FR:
            return self.fr or self.en
        return self.en


@dataclass
class AlarmLogEntry:
    """One decoded entry of the alarm log."""

    message_id: int
    message: str
    start_time: int
    end_time: int


_A = AlarmMessageType.ALL
_H = AlarmMessageType.HMT

ALARM_MESSAGES: tuple[AlarmMessage, ...] = (
    AlarmMessage(_A, 1, "Inverter start", "Wechselrichter gestartet", "L'onduleur a démarré"),
    AlarmMessage(_A, 2, "Time calibration", "Zeitabgleich"),
    AlarmMessage(_A, 3, "EEPROM reading and writing error during operation"),
    AlarmMessage(_A, 4, "Offline", "Offline", "Non connecté"),
    AlarmMessage(_A, 11, "Grid voltage surge", "Netz: Überspannungsimpuls"),
    AlarmMessage(_A, 12, "Grid voltage sharp drop", "Netz: Spannungseinbruch"),
    AlarmMessage(_A, 13, "Grid frequency mutation", "Netz: Frequenzänderung"),
    AlarmMessage(_A, 14, "Grid phase mutation", "Netz: Phasenänderung"),
    AlarmMessage(_A, 15, "Grid transient fluctuation", "Netz: vorübergehende Schwankung"),
    AlarmMessage(_A, 36, "INV overvoltage or overcurrent"),
    AlarmMessage(_A, 46, "FB overvoltage", "FB Überspannung"),
    AlarmMessage(_A, 47, "FB overcurrent", "FB Überstrom"),
    AlarmMessage(_A, 48, "FB clamp overvoltage"),
    AlarmMessage(_A, 49, "FB clamp overvoltage"),
    AlarmMessage(_A, 61, "Calibration parameter error"),
    AlarmMessage(_A, 62, "System configuration parameter error"),
    AlarmMessage(_A, 63, "Abnormal power generation data"),
    AlarmMessage(_A, 71, "Grid overvoltage load reduction (VW) function enable"),
    AlarmMessage(_A, 72, "Power grid over-frequency load reduction (FW) function enable"),
    AlarmMessage(_A, 73, "Over-temperature load reduction (TW) function enable"),
    AlarmMessage(_A, 95, "PV-1: Module in suspected shadow"),
    AlarmMessage(_A, 96, "PV-2: Module in suspected shadow"),
    AlarmMessage(_A, 97, "PV-3: Module in suspected shadow"),
    AlarmMessage(_A, 98, "PV-4: Module in suspected shadow"),
    AlarmMessage(_A, 121, "Over temperature protection", "Übertemperaturschutz", "Protection antisurchauffe"),
    AlarmMessage(_A, 122, "Microinverter is suspected of being stolen"),
    AlarmMessage(_A, 123, "Locked by remote control"),
    AlarmMessage(_A, 124, "Shut down by remote control", "Durch Fernsteuerung abgeschaltet", "Arrêt par télécommande"),
    AlarmMessage(
        _A,
        125,
        "Grid configuration parameter error",
        "Parameterfehler bei der Konfiguration des Elektrizitätsnetzes",
        "Erreur de paramètre de configuration du réseau",
    ),
    AlarmMessage(_A, 126, "Software error code 126"),
    AlarmMessage(_A, 127, "Firmware error", "Firmwarefehler", "Erreur du micrologiciel"),
    AlarmMessage(_A, 128, "Hardware configuration error"),
    AlarmMessage(_A, 129, "Abnormal bias", "Abnormaler Trend", "Polarisation anormale"),
    AlarmMessage(_A, 130, "Offline", "Offline", "Non connecté"),
    AlarmMessage(_A, 141, "Grid: Grid overvoltage", "Netz: Netzüberspannung", "Réseau: Surtension du réseau"),
    AlarmMessage(
        _A,
        142,
        "Grid: 10 min value grid overvoltage",
        "Netz: 10 Minuten-Mittelwert der Netzüberspannung",
        "Réseau: Valeur de surtension du réseau pendant 10 min",
    ),
    AlarmMessage(_A, 143, "Grid: Grid undervoltage", "Netz: Netzunterspannung", "Réseau: Sous-tension du réseau"),
    AlarmMessage(_A, 144, "Grid: Grid overfrequency", "Netz: Netzüberfrequenz", "Réseau: Surfréquence du réseau"),
    AlarmMessage(_A, 145, "Grid: Grid underfrequency", "Netz: Netzunterfrequenz", "Réseau: Sous-fréquence du réseau"),
    AlarmMessage(
        _A,
        146,
        "Grid: Rapid grid frequency change rate",
        "Netz: Schnelle Wechselrate der Netzfrequenz",
        "Réseau: Taux de fluctuation rapide de la fréquence du réseau",
    ),
    AlarmMessage(_A, 147, "Grid: Power grid outage", "Netz: Elektrizitätsnetzausfall", "Réseau: Panne du réseau électrique"),
    AlarmMessage(_A, 148, "Grid: Grid disconnection", "Netz: Netztrennung", "Réseau: Déconnexion du réseau"),
    AlarmMessage(_A, 149, "Grid: Island detected", "Netz: Inselbetrieb festgestellt", "Réseau: Détection d’îlots"),
    AlarmMessage(_A, 150, "DCI exceeded"),
    AlarmMessage(_A, 152, "Grid: Phase angle difference between two phases exceeded 5° >10 times"),
    AlarmMessage(_H, 171, "Grid: Abnormal phase difference between phase to phase"),
    AlarmMessage(_A, 181, "Abnormal insulation impedance"),
    AlarmMessage(_A, 182, "Abnormal grounding"),
    AlarmMessage(_A, 205, "MPPT-A: Input overvoltage", "MPPT-A: Eingangsüberspannung", "MPPT-A: Surtension d’entrée"),
    AlarmMessage(_A, 206, "MPPT-B: Input overvoltage", "MPPT-B: Eingangsüberspannung", "MPPT-B: Surtension d’entrée"),
    AlarmMessage(_A, 207, "MPPT-A: Input undervoltage", "MPPT-A: Eingangsunterspannung", "MPPT-A: Sous-tension d’entrée"),
    AlarmMessage(_A, 208, "MPPT-B: Input undervoltage", "MPPT-B: Eingangsunterspannung", "MPPT-B: Sous-tension d’entrée"),
    AlarmMessage(_A, 209, "PV-1: No input", "PV-1: Kein Eingang", "PV-1: Aucune entrée"),
    AlarmMessage(_A, 210, "PV-2: No input", "PV-2: Kein Eingang", "PV-2: Aucune entrée"),
    AlarmMessage(_A, 211, "PV-3: No input", "PV-3: Kein Eingang", "PV-3: Aucune entrée"),
    AlarmMessage(_A, 212, "PV-4: No input", "PV-4: Kein Eingang", "PV-4: Aucune entrée"),
    AlarmMessage(
        _A,
        213,
        "MPPT-A: PV-1 & PV-2 abnormal wiring",
        "MPPT-A: Verdrahtungsfehler bei PV-1 und PV-2",
        "MPPT-A: Câblages photovoltaïques 1 et 2 anormaux",
    ),
    AlarmMessage(
        _A,
        214,
        "MPPT-B: PV-3 & PV-4 abnormal wiring",
        "MPPT-B: Verdrahtungsfehler bei PV-3 und PV-4",
        "MPPT-B: Câblages photovoltaïques 3 et 4 anormaux",
    ),
    AlarmMessage(_A, 215, "PV-1: Input overvoltage", "PV-1: Eingangsüberspannung", "PV-1: Surtension d’entrée"),
    AlarmMessage(_H, 215, "MPPT-C: Input overvoltage", "MPPT-C: Eingangsüberspannung", "MPPT-C: Surtension d’entrée"),
    AlarmMessage(_A, 216, "PV-1: Input undervoltage", "PV-1: Eingangsunterspannung", "PV-1: Sous-tension d’entrée"),
    AlarmMessage(_H, 216, "MPPT-C: Input undervoltage", "MPPT-C: Eingangsunterspannung", "MPPT-C: Sous-tension d’entrée"),
    AlarmMessage(_A, 217, "PV-2: Input overvoltage", "PV-2: Eingangsüberspannung", "PV-2: Surtension d’entrée"),
    AlarmMessage(_H, 217, "PV-5: No input", "PV-5: Kein  Eingang", "PV-5: Aucune entrée"),
    AlarmMessage(_A, 218, "PV-2: Input undervoltage", "PV-2: Eingangsunterspannung", "PV-2: Sous-tension d’entrée"),
    AlarmMessage(_H, 218, "PV-6: No input", "PV-6: Kein Eingang", "PV-6: Aucune entrée"),
    AlarmMessage(_A, 219, "PV-3: Input overvoltage", "PV-3: Eingangsüberspannung", "PV-3: Surtension d’entrée"),
    AlarmMessage(_H, 219, "MPPT-C: PV-5 & PV-6 abnormal wiring"),
    AlarmMessage(_A, 220, "PV-3: Input undervoltage", "PV-3: Eingangsunterspannung", "PV-3: Sous-tension d’entrée"),
    AlarmMessage(_A, 221, "PV-4: Input overvoltage", "PV-4: Eingangsüberspannung", "PV-4: Surtension d’entrée"),
    AlarmMessage(_H, 221, "Abnormal wiring of grid neutral line"),
    AlarmMessage(_A, 222, "PV-4: Input undervoltage", "PV-4: Eingangsunterspannung", "PV-4: Sous-tension d’entrée"),
    AlarmMessage(_A, 301, "FB-A: internal short circuit failure"),
    AlarmMessage(_A, 302, "FB-B: internal short circuit failure"),
    AlarmMessage(_A, 303, "FB-A: overcurrent protection failure"),
    AlarmMessage(_A, 304, "FB-B: overcurrent protection failure"),
    AlarmMessage(_A, 305, "FB-A: clamp circuit failure"),
    AlarmMessage(_A, 306, "FB-B: clamp circuit failure"),
    AlarmMessage(_A, 307, "INV power device failure"),
    AlarmMessage(_A, 308, "INV overcurrent or overvoltage protection failure"),
    AlarmMessage(_A, 309, "Hardware error code 309", "Hardwarefehlercode 309"),
    AlarmMessage(_A, 310, "Hardware error code 310", "Hardwarefehlercode 310"),
    AlarmMessage(_A, 311, "Hardware error code 311", "Hardwarefehlercode 311"),
    AlarmMessage(_A, 312, "Hardware error code 312", "Hardwarefehlercode 312"),
    AlarmMessage(_A, 313, "Hardware error code 313", "Hardwarefehlercode 313"),
    AlarmMessage(_A, 314, "Hardware error code 314", "Hardwarefehlercode 314"),
    AlarmMessage(_A, 1111, "Repeater"),
    AlarmMessage(_A, 2000, "Standby"),
    AlarmMessage(_A, 2001, "Standby"),
    AlarmMessage(_A, 2002, "Standby"),
    AlarmMessage(_A, 2003, "Standby"),
    AlarmMessage(_A, 2004, "Standby"),
    AlarmMessage(_A, 3001, "Reset"),
    AlarmMessage(_A, 3002, "Reset"),
    AlarmMessage(_A, 3003, "Reset"),
    AlarmMessage(_A, 3004, "Reset"),
    AlarmMessage(_A, 5011, "PV-1: MOSFET overcurrent (II)", "PV-1: MOSFET Überstrom (II)"),
    AlarmMessage(_A, 5012, "PV-2: MOSFET overcurrent (II)", "PV-2: MOSFET Überstrom (II)"),
    AlarmMessage(_A, 5013, "PV-3: MOSFET overcurrent (II)", "PV-3: MOSFET Überstrom (II)"),
    AlarmMessage(_A, 5014, "PV-4: MOSFET overcurrent (II)", "PV-4: MOSFET Überstrom (II)"),
    AlarmMessage(
        _A,
        5020,
        "H-bridge MOSFET overcurrent or H-bridge overvoltage",
        "H-Brücken-MOSFET-Überstrom oder H-Brücken-Überspannung",
    ),
    AlarmMessage(_A, 5041, "PV-1: current overcurrent (II)"),
    AlarmMessage(_A, 5042, "PV-2: current overcurrent (II)"),
    AlarmMessage(_A, 5043, "PV-3: current overcurrent (II)"),
    AlarmMessage(_A, 5044, "PV-4: current overcurrent (II)"),
    AlarmMessage(_A, 5051, "PV-1: Overvoltage/Undervoltage"),
    AlarmMessage(_A, 5052, "PV-2: Overvoltage/Undervoltage"),
    AlarmMessage(_A, 5053, "PV-3: Overvoltage/Undervoltage"),
    AlarmMessage(_A, 5054, "PV-4: Overvoltage/Undervoltage"),
    AlarmMessage(_A, 5060, "Abnormal bias", "Abnormaler Trend", "Polarisation anormale"),
    AlarmMessage(_A, 5070, "Over temperature protection", "Übertemperaturschutz", "Protection antisurchauffe"),
    AlarmMessage(_A, 5080, "Grid Overvoltage/Undervoltage"),
    AlarmMessage(_A, 5090, "Grid Overfrequency/Underfrequency"),
    AlarmMessage(_A, 5100, "Island detected", "Inselbetrieb festgestellt", "Détection d’îlots"),
    AlarmMessage(_A, 5110, "GFDI failure"),
    AlarmMessage(_A, 5120, "EEPROM reading and writing error"),
    AlarmMessage(_A, 5141, "FB clamp overvoltage"),
    AlarmMessage(_A, 5142, "FB clamp overvoltage"),
    AlarmMessage(_A, 5143, "FB clamp overvoltage"),
    AlarmMessage(_A, 5144, "FB clamp overvoltage"),
    AlarmMessage(
        _A,
        5150,
        "10 min value grid overvoltage",
        "10 Minuten-Mittelwert der Netzüberspannung",
        "Valeur de surtension du réseau pendant 10 min",
    ),
    AlarmMessage(_A, 5160, "Grid transient fluctuation"),
    AlarmMessage(_A, 5200, "Firmware error", "Firmwarefehler", "Erreur du micrologiciel"),
    AlarmMessage(_A, 5511, "PV-1: MOSFET overcurrent-H", "PV-1: MOSFET Überstrom-H"),
    AlarmMessage(_A, 5512, "PV-2: MOSFET overcurrent-H", "PV-2: MOSFET Überstrom-H"),
    AlarmMessage(_A, 5513, "PV-3: MOSFET overcurrent-H", "PV-3: MOSFET Überstrom-H"),
    AlarmMessage(_A, 5514, "PV-4: MOSFET overcurrent-H", "PV-4: MOSFET Überstrom-H"),
    AlarmMessage(
        _A,
        5520,
        "H-bridge MOSFET overcurrent or H-bridge overvoltage",
        "H-Brücken-MOSFET-Überstrom oder H-Brücken-Überspannung",
    ),
    AlarmMessage(_A, 8310, "Shut down by remote control", "Durch Fernsteuerung abgeschaltet", "Arrêt par télécommande"),
    AlarmMessage(_A, 8320, "Locked by remote control"),
    AlarmMessage(_A, 9000, "Microinverter is suspected of being stolen"),
)


def timezone_offset() -> int:
    """Seconds the local time zone is currently ahead of UTC."""
    now = int(time.time())
    utc = time.gmtime(now)
    as_local = time.mktime(
        (
            utc.tm_year,
            utc.tm_mon,
            utc.tm_mday,
            utc.tm_hour,
            utc.tm_min,
            utc.tm_sec,
            utc.tm_wday,
            utc.tm_yday,
            -1,
        )
    )
    return int(now - as_local)


class AlarmLogParser(Parser):
    """Decodes the alarm log returned by the inverter."""

    def __init__(self) -> None:
        super().__init__()
        self._payload = PayloadBuffer(ALARM_LOG_PAYLOAD_SIZE)
        # NOK so that the log is fetched at startup.
        self.last_alarm_request_success = CommandStatus.NOK
        self.message_type = AlarmMessageType.ALL

    def clear_buffer(self) -> None:
        self._payload.clear()

    def append_fragment(self, offset: int, payload: bytes) -> None:
        self._payload.append(offset, payload)

    @property
    def entry_count(self) -> int:
        length = len(self._payload)
        if length < _HEADER_SIZE:
            return 0
        return (length - _HEADER_SIZE) // ALARM_LOG_ENTRY_SIZE

    def get_log_entry(
        self, entry_id: int, locale: AlarmMessageLocale = AlarmMessageLocale.EN
    ) -> AlarmLogEntry:
        """Decode entry ``entry_id``; times are shifted to local time."""
        if not 0 <= entry_id < ALARM_LOG_ENTRY_COUNT:
            raise IndexError(f"alarm log entry {entry_id} out of range")
        start = _HEADER_SIZE + entry_id * ALARM_LOG_ENTRY_SIZE
        tz_offset = timezone_offset()

        with self._lock:
            wcode = self._payload.word(start)
            message_id = self._payload[start + 1]
            start_time = self._payload.word(start + 4)
            end_time = self._payload.word(start + 6)

        start_pm = _HALF_DAY if (wcode >> 13) & 0x01 else 0
        end_pm = _HALF_DAY if (wcode >> 12) & 0x01 else 0

        start_time += start_pm + tz_offset
        if end_time > 0:
            end_time += end_pm + tz_offset

        return AlarmLogEntry(
            message_id=message_id,
            message=self._message_text(message_id, locale),
            start_time=start_time,
            end_time=end_time,
        )

    def entries(
        self, locale: AlarmMessageLocale = AlarmMessageLocale.EN
    ) -> Iterator[AlarmLogEntry]:
        """Yield every entry currently held in the buffer."""
        for entry_id in range(self.entry_count):
            yield self.get_log_entry(entry_id, locale)

    def _message_text(self, message_id: int, locale: AlarmMessageLocale) -> str:
        text = _UNKNOWN_TEXT.get(locale, _UNKNOWN_TEXT[AlarmMessageLocale.EN])
        for msg in ALARM_MESSAGES:
            if msg.message_id != message_id:
                continue
            if msg.inverter_type is self.message_type:
                return msg.localized(locale)
            if msg.inverter_type is AlarmMessageType.ALL:
                text = msg.localized(locale)
        return text