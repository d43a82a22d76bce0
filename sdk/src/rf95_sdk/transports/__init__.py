"""Transport modules for the rf95modem SDK."""

from .serial import SerialLineTransport, default_device, dump_ports, list_ports, PortInfo
from .scripted import ScriptedTransport

__all__ = [
    "SerialLineTransport",
    "ScriptedTransport",
    "PortInfo",
    "default_device",
    "dump_ports",
    "list_ports",
]
