import binascii

from .errors import ModemDecodeError


def hexify(data: bytes) -> str:
    return bytes(data).hex()


def unhexify(text: str) -> bytes:
    try:
        return binascii.unhexlify(text)
    except (binascii.Error, ValueError) as e:
        raise ModemDecodeError(f"Invalid hex payload {text!r}: {e}") from e
