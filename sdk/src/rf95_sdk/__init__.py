"""rf95modem LoRa SDK.

A blocking driver for rf95modem LoRa radio modules speaking the line-oriented
AT command protocol over a serial port.
"""

import logging
import os

from .base import LineTransport
from .encoding import hexify, unhexify
from .errors import (
    LengthMismatchError,
    ModemDecodeError,
    ModemTimeoutError,
    ProtocolError,
    Rf95Error,
    TransportError,
    TransportIOError,
    TransportOpenError,
    UnexpectedResponseError,
    UnknownModemConfigError,
)
from .link import ModemLink
from .models import LoRaChannel, ModemConfig, RxPacket, Status
from .modem import HandleState, RF95Modem
from .transports import (
    PortInfo,
    ScriptedTransport,
    SerialLineTransport,
    default_device,
    dump_ports,
    list_ports,
)

if os.getenv("RF95_DEBUG", "").lower() in ("1", "true", "yes"):
    logging.getLogger("rf95_sdk").setLevel(logging.DEBUG)

__all__ = [
    # High-level
    "RF95Modem",
    "HandleState",
    "ModemLink",
    # Values
    "Status",
    "RxPacket",
    "ModemConfig",
    "LoRaChannel",
    # Transports
    "LineTransport",
    "SerialLineTransport",
    "ScriptedTransport",
    "PortInfo",
    "default_device",
    "list_ports",
    "dump_ports",
    # Hex utilities
    "hexify",
    "unhexify",
    # Errors
    "Rf95Error",
    "TransportError",
    "TransportOpenError",
    "TransportIOError",
    "ModemTimeoutError",
    "ProtocolError",
    "UnexpectedResponseError",
    "LengthMismatchError",
    "ModemDecodeError",
    "UnknownModemConfigError",
]

__version__ = "0.1.0"
