"""In-memory transport that replays scripted modem output."""

import time
from collections import deque
from typing import Callable, Deque, Iterable, List, Optional, Union

from ..base import DEFAULT_TERMINATOR, LineTransport
from ..errors import TransportError, TransportOpenError

Chunk = Union[str, bytes, BaseException]


class ScriptedTransport(LineTransport):
    """Fake transport for tests and dry runs.

    Each scripted item is delivered by one raw read: ``str``/``bytes`` items
    are returned as received data, exception instances are raised. Once the
    script runs dry every read times out. Everything written is recorded in
    ``written``; an optional ``responder`` maps each write to chunks appended
    to the script, emulating a modem that answers commands.

    Usage::

        t = ScriptedTransport(["+FREQ: 868.10\\n"])
        modem = RF95Modem("/dev/null", transport=t)
        modem.set_frequency(868.1)
        assert t.sent_lines == ["AT+FREQ=868.1"]
    """

    def __init__(
        self,
        script: Iterable[Chunk] = (),
        timeout: float = 1.0,
        terminator: bytes = DEFAULT_TERMINATOR,
        open_error: Optional[BaseException] = None,
        idle_delay: float = 0.01,
        responder: Optional[Callable[[bytes], Iterable[Chunk]]] = None,
    ):
        super().__init__(timeout=timeout, terminator=terminator)
        self._script: Deque[Chunk] = deque(script)
        self.written: List[bytes] = []
        self.open_error = open_error
        self.idle_delay = idle_delay
        self.responder = responder
        self.open_count = 0
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def sent_lines(self) -> List[str]:
        """Written data decoded and split into lines without terminators."""
        text = b"".join(self.written).decode("utf-8", errors="replace")
        return [line for line in text.split(self.terminator.decode()) if line]

    def feed(self, *chunks: Chunk) -> None:
        """Append more scripted modem output."""
        self._script.extend(chunks)

    def open(self) -> None:
        if self.open_error is not None:
            raise TransportOpenError(f"Could not open scripted transport: {self.open_error}") from self.open_error
        self.open_count += 1
        self._open = True
        self._drop_reader()

    def close(self) -> None:
        self._open = False
        self._drop_reader()

    def write(self, data: bytes) -> None:
        if not self._open:
            raise TransportError("Not connected")
        self.written.append(bytes(data))
        if self.responder is not None:
            self.feed(*self.responder(bytes(data)))

    def _read_chunk(self, timeout: float) -> bytes:
        try:
            item = self._script.popleft()
        except IndexError:
            if self.idle_delay:
                time.sleep(min(self.idle_delay, timeout))
            return b""
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, str):
            item = item.encode("utf-8")
        return item

    def _twin(self) -> "ScriptedTransport":
        # Shares the script and write log, never the line reader.
        twin = ScriptedTransport(
            timeout=self.timeout,
            terminator=self.terminator,
            open_error=self.open_error,
            idle_delay=self.idle_delay,
            responder=self.responder,
        )
        twin._script = self._script
        twin.written = self.written
        return twin

    def spawn(self) -> "ScriptedTransport":
        return self._twin()

    def duplicate(self) -> "ScriptedTransport":
        if not self._open:
            raise TransportError("Not connected")
        twin = self._twin()
        twin._open = True
        return twin
