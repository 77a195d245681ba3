"""modwarden CLI: Keep client-library capabilities loaded at compatible versions.

Entry point for the ``modwarden`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    status  : Report loaded / installed / stale / missing capabilities.
    resolve : Unload stale and install missing capabilities, with retries.
    load    : Resolve, then import one capability.

Usage::

    modwarden status
    modwarden status --format json
    modwarden resolve --yes
    modwarden resolve --config ./modwarden.yaml --max-retries 5
    modwarden load graph
"""

from __future__ import annotations

import logging

import click

from modwarden import __version__
from modwarden.cli.load_cmd import load_command
from modwarden.cli.resolve_cmd import resolve_command
from modwarden.cli.status_cmd import status_command


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """modwarden: Version-aware lifecycle management for client libraries.

    Detect stale or missing capabilities in the running interpreter, unload
    and install them, and load them on demand.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


# Register all subcommands
cli.add_command(status_command)
cli.add_command(resolve_command)
cli.add_command(load_command)
