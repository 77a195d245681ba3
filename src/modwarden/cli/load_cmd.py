"""``modwarden load <name>``: Resolve, then import one capability.

Useful to check that a capability actually imports in this interpreter
after resolution. Destructive remediation only happens with ``--yes``.

Exit Codes:
    0: Capability loaded.
    1: Resolution or load failed.
    2: Configuration invalid or unknown capability.
"""

from __future__ import annotations

import sys

import click
from rich.markup import escape

from modwarden.cli.output import console, print_resolution
from modwarden.config import load_config
from modwarden.exceptions import ConfigError
from modwarden.manager import build_manager


@click.command("load")
@click.argument("name")
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Configuration file (default: ./modwarden.yaml or built-in table).",
)
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Approve unloads and installs.")
def load_command(name: str, config_path: str | None, assume_yes: bool) -> None:
    """Resolve the environment, then load capability NAME."""
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)
    if name not in config.registry:
        click.echo(f"Error: unknown capability {name!r}", err=True)
        sys.exit(2)

    manager = build_manager(config)
    result = manager.resolve(auto_approve=assume_yes)
    if not result.success:
        print_resolution(result)
        sys.exit(1)

    loaded = manager.load(name)
    if not loaded.ok:
        console.print(f"[red]Failed to load {name}:[/red] {escape(loaded.cause or '')}")
        sys.exit(1)
    console.print(f"[green]Loaded[/green] {name} {loaded.version} as {loaded.module_name}")
    sys.exit(0)
