"""Typed values exchanged with an rf95modem: status, packets, presets, channels."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Dict, Optional, Tuple

from .encoding import unhexify
from .errors import (
    LengthMismatchError,
    ModemDecodeError,
    UnexpectedResponseError,
    UnknownModemConfigError,
)

RX_PREFIX = "+RX "

_INT16_MIN = -(1 << 15)
_INT16_MAX = (1 << 15) - 1
_SIGNED_RE = re.compile(r"[+-]?[0-9]+")


class ModemConfig(IntEnum):
    """LoRa modulation presets understood by the modem firmware."""

    # Medium range (default)
    MEDIUM_BW125_CR45_SF128_CRC = 0
    # Fast transmission, short range
    FAST_SHORT_BW500_CR45_SF128_CRC = 1
    # Slow transmission, long range
    SLOW_LONG_BW3125_CR48_SF512_CRC = 2
    SLOW_LONG_BW125_CR48_SF4096_CRC = 3

    @classmethod
    def from_code(cls, code: int) -> "ModemConfig":
        try:
            return cls(code)
        except ValueError:
            raise UnknownModemConfigError(code) from None


class LoRaChannel(IntEnum):
    """Predefined LoRa channels, valued in MHz * 100."""

    # 868 MHz EU TTN channels 1-9
    CH01_868 = 86810
    CH02_868 = 86830
    CH03_868 = 86850
    CH04_868 = 86710
    CH05_868 = 86730
    CH06_868 = 86750
    CH07_868 = 86770
    CH08_868 = 86790
    CH09_868 = 86880
    # Further 868 MHz EU channels 10-17
    CH10_868 = 86520
    CH11_868 = 86550
    CH12_868 = 86580
    CH13_868 = 86610
    CH14_868 = 86640
    CH15_868 = 86670
    CH16_868 = 86700
    CH17_868 = 86800
    # 915 MHz US channels 0-12
    CH00_900 = 90308
    CH01_900 = 90524
    CH02_900 = 90740
    CH03_900 = 90956
    CH04_900 = 91172
    CH05_900 = 91388
    CH06_900 = 91604
    CH07_900 = 91820
    CH08_900 = 92036
    CH09_900 = 92252
    CH10_900 = 92468
    CH11_900 = 92684
    CH12_900 = 91500

    @property
    def frequency(self) -> float:
        """Channel frequency in MHz."""
        return self.value / 100


@dataclass(frozen=True)
class Status:
    """Snapshot of the modem firmware state as reported by AT+INFO."""

    version: str = "0.0"
    config: ModemConfig = ModemConfig.MEDIUM_BW125_CR45_SF128_CRC
    max_pkt_size: int = 0
    frequency: float = 0.0
    rx_listener: bool = False
    rx_bad: int = 0
    rx_good: int = 0
    tx_good: int = 0


@dataclass(frozen=True)
class RxPacket:
    """A LoRa packet received from the modem."""

    rssi: int
    snr: int
    data: bytes

    @classmethod
    def from_line(cls, line: str) -> "RxPacket":
        """Parse a ``+RX <len>,<hex>,<rssi>,<snr>`` notification.

        Raises:
            UnexpectedResponseError: If the line does not have four fields
            LengthMismatchError: If the declared length differs from the payload
            ModemDecodeError: If a number or the hex payload is malformed
        """
        payload = line[len(RX_PREFIX):] if line.startswith(RX_PREFIX) else line
        fields = payload.strip().split(",")
        if len(fields) != 4:
            raise UnexpectedResponseError("+RX output from modem has unexpected length", line)

        length = parse_uint(fields[0])
        data = unhexify(fields[1])
        if len(data) != length:
            raise LengthMismatchError(
                "+RX payload length not matching actual payload", length, len(data)
            )
        return cls(rssi=parse_int16(fields[2]), snr=parse_int16(fields[3]), data=data)


def parse_uint(value: str) -> int:
    value = value.strip()
    if not (value.isascii() and value.isdigit()):
        raise ModemDecodeError(f"Expected unsigned integer, got {value!r}")
    return int(value)


def parse_int16(value: str) -> int:
    value = value.strip()
    if not _SIGNED_RE.fullmatch(value):
        raise ModemDecodeError(f"Expected signed integer, got {value!r}")
    number = int(value)
    if not _INT16_MIN <= number <= _INT16_MAX:
        raise ModemDecodeError(f"Value {number} out of 16-bit range")
    return number


def _parse_float(value: str) -> float:
    try:
        return float(value)
    except ValueError as e:
        raise ModemDecodeError(f"Expected number, got {value!r}") from e


def _parse_flag(value: str) -> bool:
    return parse_uint(value) == 1


def _parse_config(value: str) -> ModemConfig:
    # e.g. "0 | Bw125Cr45Sf128"
    return ModemConfig.from_code(parse_uint(value.split("|")[0]))


# label prefix -> (Status attribute, converter)
STATUS_FIELDS: Dict[str, Tuple[str, Callable[[str], object]]] = {
    "firmware": ("version", str),
    "max pkt size": ("max_pkt_size", parse_uint),
    "frequency": ("frequency", _parse_float),
    "rx listener": ("rx_listener", _parse_flag),
    "rx bad": ("rx_bad", parse_uint),
    "rx good": ("rx_good", parse_uint),
    "tx good": ("tx_good", parse_uint),
    "modem config": ("config", _parse_config),
}


def parse_status_line(line: str) -> Optional[Tuple[str, object]]:
    """Map one ``label: value`` line to a (Status attribute, value) pair.

    Returns None for lines with no known label or no ``:`` separator.
    """
    for label, (attr, convert) in STATUS_FIELDS.items():
        if not line.startswith(label):
            continue
        parts = line.split(":")
        if len(parts) < 2:
            return None
        return attr, convert(parts[1].strip())
    return None
