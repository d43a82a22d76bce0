"""rf95 CLI commands."""

import click

from rf95_sdk import (
    LoRaChannel,
    ModemConfig,
    ModemTimeoutError,
    Rf95Error,
    list_ports,
    unhexify,
)
from rf95_sdk.transports.serial import format_ports

from .cli import cli, output, pass_conn

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_mode(value: str) -> ModemConfig:
    """Parse a modem config given as wire code (0-3) or preset name.

    Names are case-insensitive, e.g. ``fast_short_bw500_cr45_sf128_crc``.
    """
    v = value.strip()
    if v.isdigit():
        return ModemConfig.from_code(int(v))
    try:
        return ModemConfig[v.upper()]
    except KeyError:
        raise ValueError(f"Unknown modem config: {value}") from None


def _call(fn, *args):
    """Run a modem operation, turning driver errors into CLI errors."""
    try:
        return fn(*args)
    except Rf95Error as e:
        raise click.ClickException(str(e))


# ---------------------------------------------------------------------------
# Info commands
# ---------------------------------------------------------------------------


@cli.command()
@pass_conn
def info(conn):
    """Show modem firmware status (AT+INFO)."""
    output(_call(lambda: conn.modem.get_status()))


@cli.command()
def ports():
    """List serial ports found on this host."""
    for line in format_ports(list_ports()):
        click.echo(line)


# ---------------------------------------------------------------------------
# Radio settings
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("mhz", type=float)
@pass_conn
def freq(conn, mhz):
    """Set frequency in MHz, e.g. 868.1."""
    _call(lambda: conn.modem.set_frequency(mhz))
    output(mhz, "frequency")


@cli.command()
@click.argument(
    "name", type=click.Choice([c.name for c in LoRaChannel], case_sensitive=False)
)
@pass_conn
def channel(conn, name):
    """Tune to a predefined channel, e.g. CH01_868 or CH00_900."""
    ch = LoRaChannel[name.upper()]
    _call(lambda: conn.modem.set_channel(ch))
    output({"channel": ch.name, "frequency": ch.frequency})


@cli.command()
@click.argument("value")
@pass_conn
def mode(conn, value):
    """Set modem config preset by code (0-3) or name.

    \b
    0  MEDIUM_BW125_CR45_SF128_CRC      medium range (default)
    1  FAST_SHORT_BW500_CR45_SF128_CRC  fast, short range
    2  SLOW_LONG_BW3125_CR48_SF512_CRC  slow, long range
    3  SLOW_LONG_BW125_CR48_SF4096_CRC  slow, long range
    """
    try:
        config = parse_mode(value)
    except ValueError as e:
        raise click.ClickException(str(e))
    _call(lambda: conn.modem.set_mode(config))
    output(config, "mode")


# ---------------------------------------------------------------------------
# Data
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("message")
@click.option("--hex", "is_hex", is_flag=True, help="MESSAGE is hex encoded binary")
@pass_conn
def send(conn, message, is_hex):
    """Transmit MESSAGE as one LoRa packet."""
    if is_hex:
        try:
            data = unhexify(message)
        except ValueError as e:
            raise click.ClickException(str(e))
    else:
        data = message.encode("utf-8")
    sent = _call(lambda: conn.modem.send_data(data))
    output(sent, "sent")


@cli.command()
@click.option("--count", "-n", type=int, default=0, help="Stop after N packets (0 = forever)")
@pass_conn
def listen(conn, count):
    """Print received packets until interrupted."""
    received = 0
    while count <= 0 or received < count:
        try:
            packet = conn.modem.read_packet()
        except ModemTimeoutError:
            continue
        except KeyboardInterrupt:
            break
        except Rf95Error as e:
            raise click.ClickException(str(e))
        received += 1
        output(
            {
                "rssi": packet.rssi,
                "snr": packet.snr,
                "length": len(packet.data),
                "data": packet.data.decode("utf-8", errors="replace"),
            }
        )
