"""``modwarden status``: Report capability states without changing anything.

Probes the running interpreter, classifies every configured capability and
prints conflicts and recommendations.

Exit Codes:
    0: Every capability is compatible or loadable.
    1: Remediation is needed (stale or missing capabilities).
    2: Configuration invalid or environment unavailable.
"""

from __future__ import annotations

import json
import sys

import click

from modwarden.config import load_config
from modwarden.exceptions import ConfigError, EnvironmentUnavailableError
from modwarden.manager import build_manager


@click.command("status")
@click.option(
    "--config", "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Configuration file (default: ./modwarden.yaml or built-in table).",
)
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
def status_command(config_path: str | None, output_format: str) -> None:
    """Show which capabilities are loaded, installed, stale or missing."""
    try:
        manager = build_manager(load_config(config_path))
        report = manager.check()
    except (ConfigError, EnvironmentUnavailableError) as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    if output_format == "json":
        from modwarden.cli.output import report_to_json
        click.echo(json.dumps(report_to_json(report), indent=2))
    else:
        from modwarden.cli.output import print_report
        print_report(report)

    sys.exit(0 if report.is_resolved else 1)
