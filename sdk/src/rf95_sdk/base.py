"""Abstract base class for line-oriented modem transports."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from .errors import ModemTimeoutError, TransportError

DEFAULT_TERMINATOR = b"\n"


class LineReader:
    """Accumulates raw chunks and hands out complete terminator-ended lines.

    Bytes that arrive without a terminator are kept until the next read, so a
    line split across a timeout is not lost.
    """

    def __init__(self, terminator: bytes = DEFAULT_TERMINATOR):
        self.terminator = terminator
        self._buffer = bytearray()

    def feed(self, chunk: bytes) -> None:
        self._buffer.extend(chunk)

    def pop_line(self) -> Optional[bytes]:
        idx = self._buffer.find(self.terminator)
        if idx < 0:
            return None
        end = idx + len(self.terminator)
        line = bytes(self._buffer[:end])
        del self._buffer[:end]
        return line

    @property
    def pending(self) -> int:
        return len(self._buffer)


class LineTransport(ABC):
    """Abstract base class for transports carrying the AT command protocol.

    Subclasses provide raw byte I/O; this class provides line buffering,
    decoding and timeout classification on top of it.
    """

    def __init__(self, timeout: float = 1.0, terminator: bytes = DEFAULT_TERMINATOR):
        self.timeout = timeout
        self.terminator = terminator
        self._reader: Optional[LineReader] = None
        self.logger = logging.getLogger(f"rf95_sdk.{self.__class__.__name__}")

    @property
    @abstractmethod
    def is_open(self) -> bool:
        pass

    @abstractmethod
    def open(self) -> None:
        """Open the underlying connection.

        Raises:
            TransportOpenError: If the device cannot be opened
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the connection and drop any buffered input."""
        pass

    @abstractmethod
    def write(self, data: bytes) -> None:
        """Write the whole buffer.

        Raises:
            TransportIOError: On a short write or any I/O failure
        """
        pass

    @abstractmethod
    def _read_chunk(self, timeout: float) -> bytes:
        """Read whatever arrives within ``timeout`` seconds, up to a terminator.

        Returns an empty or terminator-less chunk when the timeout expires.

        Raises:
            TransportIOError: On any I/O failure
        """
        pass

    @abstractmethod
    def spawn(self) -> "LineTransport":
        """Return a new, unopened transport with the same settings."""
        pass

    def duplicate(self) -> "LineTransport":
        """Return a new opened transport on the same connection.

        Raises:
            TransportError: If the transport cannot duplicate its connection
        """
        raise TransportError(f"{self.__class__.__name__} cannot duplicate an open connection")

    def read_line(self) -> str:
        """Read one line including its terminator.

        Raises:
            ModemTimeoutError: If no terminator arrives within the timeout
            TransportIOError: On any other read failure
        """
        if not self.is_open:
            raise TransportError("Not connected")
        if self._reader is None:
            self._reader = LineReader(self.terminator)

        line = self._reader.pop_line()
        if line is None:
            self._reader.feed(self._read_chunk(self.timeout))
            line = self._reader.pop_line()
        if line is None:
            raise ModemTimeoutError(
                f"Read timeout after {self.timeout}s "
                f"({self._reader.pending} bytes without line terminator)"
            )

        text = line.decode("utf-8", errors="replace")
        self.logger.debug(f"← {text.rstrip()}")
        return text

    def _drop_reader(self) -> None:
        self._reader = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
