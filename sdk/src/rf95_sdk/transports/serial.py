"""Serial transport using pyserial."""

import sys
from dataclasses import dataclass
from typing import List, Optional

import serial
from serial.tools import list_ports as serial_list_ports

from ..base import DEFAULT_TERMINATOR, LineTransport
from ..errors import TransportError, TransportIOError, TransportOpenError

READ_TIMEOUT = 1.0


def default_device() -> str:
    """Return the usual path of a USB serial adapter on this platform.

    It might not be present or be named differently depending on the system.
    """
    if sys.platform == "darwin":
        return "/dev/tty.SLAB_USBtoUART"
    return "/dev/ttyUSB0"


class SerialLineTransport(LineTransport):
    """Blocking serial transport for an rf95modem.

    The read timeout bounds every single line read, not a whole exchange.
    """

    def __init__(
        self,
        port: str,
        baudrate: int = 115200,
        timeout: float = READ_TIMEOUT,
        terminator: bytes = DEFAULT_TERMINATOR,
    ):
        super().__init__(timeout=timeout, terminator=terminator)
        self.port = port
        self.baudrate = baudrate
        self._serial: Optional[serial.Serial] = None

    @property
    def is_open(self) -> bool:
        return self._serial is not None and self._serial.is_open

    def open(self) -> None:
        if self._serial is not None:
            self.close()
        self.logger.debug(f"Opening serial port {self.port} at {self.baudrate} baud (timeout={self.timeout}s)")
        try:
            ser = serial.Serial(self.port, baudrate=self.baudrate, timeout=self.timeout)
            # Drop boot banners and stale notifications left in the OS buffer
            flushed = ser.in_waiting
            ser.reset_input_buffer()
        except (serial.SerialException, OSError, ValueError) as e:
            raise TransportOpenError(f"Could not open {self.port}: {e}") from e
        if flushed > 0:
            self.logger.debug(f"Flushed {flushed} bytes from input buffer")
        self._serial = ser
        self.logger.info(f"SerialLineTransport connected to {self.port}")

    def close(self) -> None:
        if self._serial:
            self.logger.debug(f"Closing serial port {self._serial.port}")
            self._serial.close()
            self._serial = None
            self.logger.info("SerialLineTransport disconnected")
        self._drop_reader()

    def spawn(self) -> "SerialLineTransport":
        return SerialLineTransport(
            self.port, baudrate=self.baudrate, timeout=self.timeout, terminator=self.terminator
        )

    def write(self, data: bytes) -> None:
        if not self._serial:
            raise TransportError("Not connected")
        try:
            written = self._serial.write(data)
            self._serial.flush()
        except (serial.SerialException, OSError) as e:
            raise TransportIOError(f"Serial write failed: {e}") from e
        if written is not None and written != len(data):
            raise TransportIOError(f"Short serial write: {written} of {len(data)} bytes")

    def _read_chunk(self, timeout: float) -> bytes:
        if not self._serial:
            raise TransportError("Not connected")
        try:
            return self._serial.read_until(self.terminator)
        except (serial.SerialException, OSError) as e:
            raise TransportIOError(f"Serial read failed: {e}") from e


@dataclass(frozen=True)
class PortInfo:
    device: str
    kind: str
    vid: Optional[int] = None
    pid: Optional[int] = None
    serial_number: Optional[str] = None
    manufacturer: Optional[str] = None
    product: Optional[str] = None


def _port_kind(port) -> str:
    if port.vid is not None:
        return "USB"
    description = (port.description or "").lower()
    if "bluetooth" in description or "rfcomm" in port.device:
        return "Bluetooth"
    if (port.hwid or "").upper().startswith(("PCI", "PNP")):
        return "PCI"
    return "Unknown"


def list_ports() -> List[PortInfo]:
    """Enumerate serial ports present on the host."""
    return [
        PortInfo(
            device=p.device,
            kind=_port_kind(p),
            vid=p.vid,
            pid=p.pid,
            serial_number=p.serial_number,
            manufacturer=p.manufacturer,
            product=p.product,
        )
        for p in sorted(serial_list_ports.comports(), key=lambda p: p.device)
    ]


def format_ports(ports: List[PortInfo]) -> List[str]:
    if not ports:
        return ["No ports found."]
    lines = ["Found 1 port:" if len(ports) == 1 else f"Found {len(ports)} ports:"]
    for p in ports:
        lines.append(f"  {p.device}")
        lines.append(f"    Type: {p.kind}")
        if p.kind == "USB":
            lines.append(f"    VID:{p.vid or 0:04x} PID:{p.pid or 0:04x}")
            lines.append(f"     Serial Number: {p.serial_number or ''}")
            lines.append(f"      Manufacturer: {p.manufacturer or ''}")
            lines.append(f"           Product: {p.product or ''}")
    return lines


def dump_ports() -> None:
    """Print all serial ports found on the host."""
    for line in format_ports(list_ports()):
        print(line)
