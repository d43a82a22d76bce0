import pytest

from rf95_sdk import (
    HandleState,
    LengthMismatchError,
    LoRaChannel,
    ModemConfig,
    ModemDecodeError,
    ModemTimeoutError,
    RF95Modem,
    RxPacket,
    ScriptedTransport,
    Status,
    TransportError,
    TransportIOError,
    TransportOpenError,
    UnexpectedResponseError,
    UnknownModemConfigError,
)
from rf95_sdk.modem import format_frequency


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


def test_handle_starts_unopened(modem, transport):
    assert modem.state is HandleState.UNOPENED
    assert transport.open_count == 0


def test_operations_open_lazily(modem, transport):
    transport.feed("+OK\n")
    modem.set_mode(ModemConfig.MEDIUM_BW125_CR45_SF128_CRC)
    assert modem.state is HandleState.OPENED
    assert transport.open_count == 1


def test_open_twice_reopens(modem, transport):
    modem.open()
    modem.open()
    assert transport.open_count == 2
    assert modem.state is HandleState.OPENED


def test_open_failure():
    transport = ScriptedTransport(open_error=PermissionError("denied"))
    modem = RF95Modem("/dev/ttyFAKE0", transport=transport)
    with pytest.raises(TransportOpenError):
        modem.get_status()


def test_raw_write_requires_open(modem):
    with pytest.raises(TransportError):
        modem.raw_write("AT\n")


def test_context_manager_closes(transport):
    with RF95Modem("/dev/ttyFAKE0", transport=transport) as modem:
        assert modem.state is HandleState.OPENED
    assert modem.state is HandleState.UNOPENED


def test_default_port_is_platform_default():
    modem = RF95Modem(transport=ScriptedTransport())
    assert modem.port in ("/dev/ttyUSB0", "/dev/tty.SLAB_USBtoUART")
    assert modem.timeout == 1.0


def test_clone_unopened_handle(modem):
    twin = modem.clone()
    assert twin is not modem
    assert twin.state is HandleState.UNOPENED
    assert (twin.port, twin.baudrate) == (modem.port, modem.baudrate)


def test_clone_opened_handle_gets_own_line_reader(modem, transport):
    transport.feed("+RX 1,41,-1,1\n+RX 1,42,-2,2\n")
    modem.open()
    # First read buffers both lines in the original handle's reader.
    assert modem.read_packet().data == b"A"

    twin = modem.clone()
    assert twin.state is HandleState.OPENED
    assert twin.transport is not transport
    with pytest.raises(ModemTimeoutError):
        twin.read_packet()
    assert modem.read_packet().data == b"B"


# ---------------------------------------------------------------------------
# AT+INFO
# ---------------------------------------------------------------------------


def test_get_status(modem, transport, status_lines):
    transport.feed(*status_lines)
    status = modem.get_status()
    assert transport.sent_lines == ["AT+INFO"]
    assert status == Status(
        version="1.7",
        max_pkt_size=251,
        frequency=868.10,
        rx_listener=True,
        rx_bad=0,
        rx_good=3,
        tx_good=5,
        config=ModemConfig.MEDIUM_BW125_CR45_SF128_CRC,
    )


def test_get_status_from_one_chunk(modem, transport, status_lines):
    transport.feed("".join(status_lines))
    assert modem.get_status().tx_good == 5


def test_get_status_ignores_unknown_lines_and_stops_at_ok(modem, transport):
    transport.feed(
        "rf95modem firmware banner\n",
        "gps: no fix\n",
        "rx good: 7\n",
        "+OK\n",
        "rx good: 99\n",
    )
    status = modem.get_status()
    assert status.rx_good == 7
    assert status.version == "0.0"
    # The line after +OK is left for the next read.
    assert modem.read_line() == "rx good: 99\n"


def test_get_status_timeout_before_ok(modem, transport, status_lines):
    transport.feed(*status_lines[:3])
    with pytest.raises(ModemTimeoutError):
        modem.get_status()


def test_get_status_io_error(modem, transport):
    transport.feed("firmware: 1.7\n", TransportIOError("unplugged"))
    with pytest.raises(TransportIOError):
        modem.get_status()


def test_get_status_unknown_config_code(modem, transport):
    transport.feed("modem config: 7 | Bw999\n", "+OK\n")
    with pytest.raises(UnknownModemConfigError):
        modem.get_status()


def test_get_status_bad_number(modem, transport):
    transport.feed("max pkt size: big\n", "+OK\n")
    with pytest.raises(ModemDecodeError):
        modem.get_status()


# ---------------------------------------------------------------------------
# Frequency / channel / mode
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "freq, text",
    [(868.1, "868.1"), (915.0, "915"), (903.08, "903.08"), (433, "433"), (869.525, "869.525")],
)
def test_format_frequency(freq, text):
    assert format_frequency(freq) == text


def test_set_frequency(modem, transport):
    transport.feed("+FREQ: 868.10\n")
    modem.set_frequency(868.1)
    assert transport.sent_lines == ["AT+FREQ=868.1"]


def test_set_frequency_unexpected_response(modem, transport):
    transport.feed("+FAIL\n")
    with pytest.raises(UnexpectedResponseError) as exc_info:
        modem.set_frequency(868.1)
    assert "+FAIL" in str(exc_info.value)


def test_set_channel(modem, transport):
    transport.feed("+FREQ: 915.00\n")
    modem.set_channel(LoRaChannel.CH12_900)
    assert transport.sent_lines == ["AT+FREQ=915"]


def test_set_channel_eu(modem, transport):
    transport.feed("+FREQ: 867.10\n")
    modem.set_channel(LoRaChannel.CH04_868)
    assert transport.sent_lines == ["AT+FREQ=867.1"]


@pytest.mark.parametrize("config", list(ModemConfig))
def test_set_mode(modem, transport, config):
    transport.feed("+OK\n")
    modem.set_mode(config)
    assert transport.sent_lines == [f"AT+MODE={config.value}"]


def test_set_mode_accepts_int(modem, transport):
    transport.feed("+OK\n")
    modem.set_mode(2)
    assert transport.sent_lines == ["AT+MODE=2"]


def test_set_mode_unknown_code_writes_nothing(modem, transport):
    with pytest.raises(UnknownModemConfigError):
        modem.set_mode(7)
    assert transport.written == []


def test_set_mode_rejected(modem, transport):
    transport.feed("+FAIL\n")
    with pytest.raises(UnexpectedResponseError):
        modem.set_mode(ModemConfig.FAST_SHORT_BW500_CR45_SF128_CRC)


# ---------------------------------------------------------------------------
# AT+TX
# ---------------------------------------------------------------------------


def test_send_data(modem, transport):
    transport.feed("+SENT 4 OK\n")
    assert modem.send_data(b"\x00\x01\xab\xff") == 4
    assert transport.sent_lines == ["AT+TX=0001abff"]


def test_send_data_length_mismatch(modem, transport):
    transport.feed("+SENT 3 OK\n")
    with pytest.raises(LengthMismatchError) as exc_info:
        modem.send_data(b"ABCD")
    assert exc_info.value.expected == 4
    assert exc_info.value.actual == 3


@pytest.mark.parametrize("reply", ["+ERR\n", "+SENT 4\n", "+SENT 4 OK extra\n", "+SENT4 OK x\n"])
def test_send_data_unexpected_response(modem, transport, reply):
    transport.feed(reply)
    with pytest.raises(UnexpectedResponseError):
        modem.send_data(b"ABCD")


def test_send_data_bad_count(modem, transport):
    transport.feed("+SENT four OK\n")
    with pytest.raises(ModemDecodeError):
        modem.send_data(b"ABCD")


# ---------------------------------------------------------------------------
# +RX
# ---------------------------------------------------------------------------


def test_read_packet(modem, transport):
    transport.feed("+RX 2,4142,-42,9\n")
    assert modem.read_packet() == RxPacket(rssi=-42, snr=9, data=b"AB")
    assert transport.written == []


def test_read_packet_skips_other_lines(modem, transport):
    transport.feed("+FREQ: 868.10\n", "noise\n", "+RX 1,7a,-80,-2\n")
    packet = modem.read_packet()
    assert packet.data == b"z"
    assert (packet.rssi, packet.snr) == (-80, -2)


def test_read_packet_length_mismatch(modem, transport):
    transport.feed("+RX 3,4142,-42,9\n")
    with pytest.raises(LengthMismatchError):
        modem.read_packet()


def test_read_packet_line_split_across_timeout(modem, transport):
    transport.feed("+RX 2,41", "42,-42,9\n")
    with pytest.raises(ModemTimeoutError):
        modem.read_packet()
    assert modem.read_packet().data == b"AB"


def test_garbled_bytes_are_replaced(modem, transport):
    transport.feed(b"\xfe\xff\n", "+RX 1,00,-1,1\n")
    assert modem.read_packet().data == b"\x00"


# ---------------------------------------------------------------------------
# Timeouts are distinct from other I/O errors
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "operation",
    [
        lambda m: m.get_status(),
        lambda m: m.set_frequency(868.1),
        lambda m: m.set_channel(LoRaChannel.CH01_868),
        lambda m: m.set_mode(ModemConfig.MEDIUM_BW125_CR45_SF128_CRC),
        lambda m: m.send_data(b"hi"),
        lambda m: m.read_packet(),
        lambda m: m.expect("+OK"),
    ],
    ids=["status", "freq", "channel", "mode", "send", "receive", "expect"],
)
def test_timeout_is_distinct(modem, operation):
    with pytest.raises(ModemTimeoutError) as exc_info:
        operation(modem)
    assert isinstance(exc_info.value, TimeoutError)
    assert not isinstance(exc_info.value, TransportIOError)
