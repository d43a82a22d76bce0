"""Typed driver for the rf95modem AT command protocol."""

import logging
from enum import Enum
from typing import Any, Dict, Optional, Union

from .base import LineTransport
from .encoding import hexify
from .errors import LengthMismatchError, TransportError, UnexpectedResponseError
from .models import (
    RX_PREFIX,
    LoRaChannel,
    ModemConfig,
    RxPacket,
    Status,
    parse_status_line,
    parse_uint,
)
from .transports.serial import READ_TIMEOUT, SerialLineTransport, default_device

OK_PREFIX = "+OK"
FREQ_PREFIX = "+FREQ"
SENT_PREFIX = "+SENT "


class HandleState(Enum):
    UNOPENED = "unopened"
    OPENED = "opened"


def format_frequency(freq: float) -> str:
    """Render MHz as a plain decimal: 868.1 -> "868.1", 915.0 -> "915"."""
    return f"{float(freq):.6f}".rstrip("0").rstrip(".")


def tx_command(data: bytes) -> str:
    return f"AT+TX={hexify(data)}"


def check_sent(line: str, expected: int) -> int:
    """Validate a ``+SENT <n> ...`` reply and return the reported byte count."""
    fields = line.split()
    if not line.startswith(SENT_PREFIX) or len(fields) != 3:
        raise UnexpectedResponseError("Unexpected response from modem while sending", line)
    sent = parse_uint(fields[1])
    if sent != expected:
        raise LengthMismatchError("Number of bytes sent not matching input length", expected, sent)
    return sent


class RF95Modem:
    """Driver for one rf95modem attached to a serial device.

    The device is not opened on construction; every operation except
    :meth:`raw_write` opens it on first use. Each operation is a single
    request/response exchange without retries, and each line read is bounded
    by the one second read timeout.

    Usage::

        with RF95Modem("/dev/ttyUSB0") as modem:
            status = modem.get_status()
            modem.set_channel(LoRaChannel.CH01_868)
            modem.send_data(b"hello")
            packet = modem.read_packet()

    A handle is not safe for concurrent use; see :class:`ModemLink`.
    """

    def __init__(
        self,
        port: Optional[str] = None,
        baudrate: int = 115200,
        *,
        transport: Optional[LineTransport] = None,
    ):
        self.port = port or default_device()
        self.baudrate = baudrate
        self.timeout = READ_TIMEOUT
        self._t = transport if transport is not None else SerialLineTransport(
            self.port, baudrate=baudrate, timeout=READ_TIMEOUT
        )
        self.logger = logging.getLogger(f"rf95_sdk.{self.__class__.__name__}")

    # -- lifecycle --

    @property
    def state(self) -> HandleState:
        return HandleState.OPENED if self._t.is_open else HandleState.UNOPENED

    @property
    def transport(self) -> LineTransport:
        return self._t

    def open(self) -> None:
        """Open (or re-open) the serial device."""
        self._t.open()

    def close(self) -> None:
        self._t.close()

    def clone(self) -> "RF95Modem":
        """Return an independent handle for the same device.

        An unopened handle clones into an unopened handle. An opened handle
        clones into an opened one sharing the connection but with its own line
        reader.

        Raises:
            TransportError: If the transport cannot duplicate its connection
        """
        if self.state is HandleState.UNOPENED:
            transport = self._t.spawn()
        else:
            transport = self._t.duplicate()
        return RF95Modem(self.port, self.baudrate, transport=transport)

    def _ensure_open(self) -> None:
        if self.state is HandleState.UNOPENED:
            self.open()

    # -- raw line access --

    def raw_write(self, text: str) -> None:
        """Write text to the modem as is; the device must already be open."""
        if self.state is HandleState.UNOPENED:
            raise TransportError(f"{self.port} is not open")
        self.logger.debug(f"→ {text.rstrip()}")
        self._t.write(text.encode("utf-8"))

    def read_line(self) -> str:
        """Read one raw response line, terminator included."""
        self._ensure_open()
        return self._t.read_line()

    def expect(self, prefix: str) -> str:
        """Read one line and require it to start with ``prefix``."""
        line = self.read_line()
        if not line.startswith(prefix):
            raise UnexpectedResponseError(f"Unexpected response from modem, wanted {prefix!r}", line)
        return line

    def _command(self, command: str) -> None:
        self._ensure_open()
        self.raw_write(f"{command}\n")

    # -- status --

    def get_status(self) -> Status:
        """Query firmware state with AT+INFO.

        Reads until the ``+OK`` line; unknown lines are skipped. There is no
        overall deadline, only the per-line read timeout.
        """
        self._command("AT+INFO")
        fields: Dict[str, Any] = {}
        while True:
            line = self.read_line()
            parsed = parse_status_line(line)
            if parsed is not None:
                attr, value = parsed
                fields[attr] = value
            if line.startswith(OK_PREFIX):
                break
        return Status(**fields)

    # -- radio settings --

    def set_frequency(self, freq: float) -> None:
        """Tune the modem to ``freq`` MHz."""
        self._command(f"AT+FREQ={format_frequency(freq)}")
        self.expect(FREQ_PREFIX)

    def set_channel(self, channel: LoRaChannel) -> None:
        self.set_frequency(channel.frequency)

    def set_mode(self, mode: Union[ModemConfig, int]) -> None:
        """Select one of the four modem config presets."""
        mode = ModemConfig.from_code(int(mode))
        self._command(f"AT+MODE={mode.value}")
        self.expect(OK_PREFIX)

    # -- data --

    def send_data(self, data: bytes) -> int:
        """Transmit ``data`` and return the byte count the modem reports."""
        self._command(tx_command(data))
        return check_sent(self.read_line(), len(data))

    def read_packet(self) -> RxPacket:
        """Block until the modem reports a received packet.

        Lines other than ``+RX`` notifications are skipped. Raises
        ModemTimeoutError when a read times out before a packet arrives.
        """
        while True:
            line = self.read_line()
            if line.startswith(RX_PREFIX):
                return RxPacket.from_line(line)
            self.logger.debug(f"Skipping non-packet line {line.rstrip()!r}")

    def __enter__(self):
        self._ensure_open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
