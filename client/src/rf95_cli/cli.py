"""rf95 CLI: click interface for the rf95modem SDK."""

import json as _json
import logging
import sys
from dataclasses import asdict, is_dataclass
from enum import Enum

import click

from rf95_sdk import RF95Modem, Rf95Error, default_device


class Connection:
    """Manages a lazy connection to the modem."""

    def __init__(self, port=None, baudrate=115200):
        self.port = port
        self.baudrate = baudrate
        self._modem = None

    @property
    def modem(self) -> RF95Modem:
        if self._modem is None:
            self._modem = RF95Modem(self.port, self.baudrate)
            self._modem.open()
        return self._modem

    def close(self):
        if self._modem:
            self._modem.close()
            self._modem = None


def _plain(data):
    if is_dataclass(data):
        data = asdict(data)
    if isinstance(data, dict):
        return {k: _plain(v) for k, v in data.items()}
    if isinstance(data, Enum):
        return data.name
    if isinstance(data, bytes):
        return data.hex()
    return data


def output(data, label=None):
    """Print result in human-readable or JSON format."""
    use_json = click.get_current_context().find_root().params.get("use_json", False)
    data = _plain(data)
    if use_json:
        click.echo(_json.dumps(data, indent=2, default=str))
    elif isinstance(data, dict):
        for k, v in data.items():
            click.echo(f"{k}: {v}")
    elif label:
        click.echo(f"{label}: {data}")
    else:
        click.echo(data)


pass_conn = click.make_pass_decorator(Connection)


@click.group()
@click.option(
    "--port", "-p", envvar="RF95_PORT", default=default_device, show_default=True,
    help="Serial device of the modem",
)
@click.option("--baud", "-b", envvar="RF95_BAUD", default=115200, show_default=True, type=int)
@click.option("--json", "use_json", is_flag=True, help="Output as JSON")
@click.option("--debug", is_flag=True, envvar="RF95_DEBUG", help="Log modem traffic")
@click.version_option(package_name="rf95")
@click.pass_context
def cli(ctx, port, baud, use_json, debug):
    """rf95modem LoRa radio control CLI."""
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
    ctx.obj = Connection(port=port, baudrate=baud)
    ctx.call_on_close(ctx.obj.close)


def main():
    """Entry point."""
    try:
        cli(standalone_mode=False)
    except click.exceptions.Abort:
        pass
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except Rf95Error as e:
        click.echo(f"Modem error: {e}", err=True)
        sys.exit(1)


# Import commands to register them on the cli group
from . import commands  # noqa: E402, F401
