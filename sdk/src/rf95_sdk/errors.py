"""Exception hierarchy for the rf95modem SDK."""


class Rf95Error(Exception):
    """Base error for rf95_sdk."""


class TransportError(Rf95Error, ConnectionError):
    """Base transport error."""


class TransportOpenError(TransportError):
    """Raised when the serial device cannot be opened."""


class TransportIOError(TransportError):
    """Raised when a write or read fails for a reason other than a timeout."""


class ModemTimeoutError(TransportError, TimeoutError):
    """Raised when no complete line arrives within the read timeout."""


class ProtocolError(Rf95Error):
    """Base error for responses the driver cannot accept."""


class UnexpectedResponseError(ProtocolError):
    """Raised when a response line has the wrong prefix or shape."""

    def __init__(self, message: str, line: str = ""):
        self.line = line
        if line:
            message = f"{message}: {line.strip()!r}"
        super().__init__(message)


class LengthMismatchError(ProtocolError):
    """Raised when a declared payload length differs from the actual one."""

    def __init__(self, message: str, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"{message} (expected {expected}, got {actual})")


class ModemDecodeError(ProtocolError, ValueError):
    """Raised when a hex payload or numeric field cannot be decoded."""


class UnknownModemConfigError(ProtocolError, ValueError):
    """Raised for a modem config wire code outside 0-3."""

    def __init__(self, code: int):
        self.code = code
        super().__init__(f"Unknown modem config code: {code}")
