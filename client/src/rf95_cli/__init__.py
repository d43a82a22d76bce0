"""Command line interface for rf95modem LoRa radios."""

from .cli import main

__all__ = ["main"]
