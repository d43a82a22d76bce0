"""Concurrent send/receive over a single modem handle."""

import logging
import queue
import threading
from typing import Optional

from .errors import ModemTimeoutError, Rf95Error, TransportError
from .models import RX_PREFIX, RxPacket
from .modem import RF95Modem, check_sent, tx_command


class ModemLink:
    """Owns one :class:`RF95Modem` and shares it between a receive loop and senders.

    A background thread repeatedly calls ``read_packet()`` and puts each packet
    on a queue. Sends and receive attempts are serialized by one lock, which
    the receive loop releases after every read timeout so senders get a turn.

    Usage::

        with ModemLink(RF95Modem("/dev/ttyUSB0")) as link:
            link.send(b"hello")
            packet = link.get_packet(timeout=10.0)
    """

    def __init__(self, modem: RF95Modem, maxsize: int = 256):
        self._modem = modem
        self._lock = threading.Lock()
        self._packets: "queue.Queue[RxPacket]" = queue.Queue(maxsize=maxsize)
        self._stop_evt = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.logger = logging.getLogger(f"rf95_sdk.{self.__class__.__name__}")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Open the modem and start the receive thread."""
        if self.running:
            return
        with self._lock:
            self._modem.open()
        self._stop_evt.clear()
        self._thread = threading.Thread(target=self._receive_loop, name="rf95-receive", daemon=True)
        self._thread.start()
        self.logger.info(f"ModemLink started on {self._modem.port}")

    def stop(self, close: bool = True) -> None:
        """Stop the receive thread; it exits after its current read."""
        self._stop_evt.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=self._modem.timeout * 2 + 1.0)
        self._thread = None
        if close:
            with self._lock:
                self._modem.close()
        self.logger.info("ModemLink stopped")

    def send(self, data: bytes) -> int:
        """Transmit ``data``; driver errors propagate to the caller.

        Packets the modem reports between the command and its ``+SENT`` reply
        are queued like any other received packet.
        """
        with self._lock:
            self._modem._command(tx_command(data))
            while True:
                line = self._modem.read_line()
                if not line.startswith(RX_PREFIX):
                    return check_sent(line, len(data))
                try:
                    self._enqueue(RxPacket.from_line(line))
                except Rf95Error as e:
                    self.logger.warning(f"Dropping malformed packet: {e}")

    def get_packet(self, timeout: Optional[float] = None) -> Optional[RxPacket]:
        """Return the next received packet, or None if none arrives in time."""
        try:
            return self._packets.get(timeout=timeout)
        except queue.Empty:
            return None

    def _receive_loop(self) -> None:
        while not self._stop_evt.is_set():
            try:
                with self._lock:
                    packet = self._modem.read_packet()
            except ModemTimeoutError:
                # Give waiting senders a chance at the lock.
                self._stop_evt.wait(0.01)
                continue
            except TransportError as e:
                if not self._stop_evt.is_set():
                    self.logger.error(f"Receive loop stopped: {e}")
                break
            except Rf95Error as e:
                self.logger.warning(f"Dropping malformed packet: {e}")
                continue

            self._enqueue(packet)

    def _enqueue(self, packet: RxPacket) -> None:
        try:
            self._packets.put_nowait(packet)
        except queue.Full:
            self.logger.warning("Packet queue full; dropping packet")

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
