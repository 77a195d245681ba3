"""``modwarden resolve``: Bring the environment to a consistent state.

Runs the resolution loop: probe, detect, unload stale capabilities, install
missing ones, verify, retry with backoff. Unloads need confirmation unless
``--yes`` is given; without a terminal there is nobody to ask, so the run
ends in ``user-declined`` and the recommendations say what to do instead.

Exit Codes:
    0: Resolved.
    1: Not resolved (declined, retries exhausted, cancelled).
    2: Configuration invalid.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable

import click

from modwarden.config import load_config
from modwarden.exceptions import ConfigError
from modwarden.manager import build_manager


def interactive_confirm(assume_yes: bool) -> Callable[[str], bool] | None:
    """Return a confirmation callback, or None when no one can answer."""
    if assume_yes or not sys.stdin.isatty():
        return None
    return lambda prompt: click.confirm(prompt, default=False)


@click.command("resolve")
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Configuration file (default: ./modwarden.yaml or built-in table).",
)
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Approve unloads and installs.")
@click.option(
    "--max-retries",
    type=click.IntRange(min=1),
    default=None,
    help="Failed attempts allowed before giving up (default from config).",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
def resolve_command(
    config_path: str | None,
    assume_yes: bool,
    max_retries: int | None,
    output_format: str,
) -> None:
    """Resolve stale and missing capabilities, retrying with backoff."""
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    manager = build_manager(config, confirm=interactive_confirm(assume_yes))
    result = manager.resolve(auto_approve=assume_yes, max_retries=max_retries)

    if output_format == "json":
        from modwarden.cli.output import result_to_json
        click.echo(json.dumps(result_to_json(result), indent=2))
    else:
        from modwarden.cli.output import print_resolution
        print_resolution(result)

    sys.exit(0 if result.success else 1)
