"""Rich output formatting helpers for the modwarden CLI.

Provides consistent, status-coloured terminal output for probe states,
conflict reports and resolution results, plus JSON renderings for
``--format json``.

Colour mapping:
    LOADED_COMPATIBLE = green, AVAILABLE_COMPATIBLE = cyan,
    AVAILABLE_INCOMPATIBLE = yellow, LOADED_INCOMPATIBLE = bold red,
    NOT_AVAILABLE = dim
"""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from modwarden.core.lifecycle import (
    CapabilityStatus,
    ConflictReport,
    ConflictSeverity,
    ResolutionResult,
)

_STATUS_STYLES: dict[CapabilityStatus, str] = {
    CapabilityStatus.LOADED_COMPATIBLE: "green",
    CapabilityStatus.AVAILABLE_COMPATIBLE: "cyan",
    CapabilityStatus.AVAILABLE_INCOMPATIBLE: "yellow",
    CapabilityStatus.LOADED_INCOMPATIBLE: "bold red",
    CapabilityStatus.NOT_AVAILABLE: "dim",
}

_SEVERITY_STYLES: dict[ConflictSeverity, str] = {
    ConflictSeverity.HIGH: "bold red",
    ConflictSeverity.LOW: "cyan",
}

console = Console()


def status_style(status: CapabilityStatus) -> str:
    """Return the Rich style string for a capability status."""
    return _STATUS_STYLES.get(status, "white")


def print_report(report: ConflictReport) -> None:
    """Print the capability table, conflicts and recommendations."""
    if not report.states:
        console.print("[dim]No capabilities configured.[/dim]")
        return

    table = Table(title="Capabilities", show_header=True, header_style="bold")
    table.add_column("Capability", style="bold")
    table.add_column("Minimum", justify="right")
    table.add_column("Loaded", justify="right")
    table.add_column("Installed")
    table.add_column("Status", justify="center")

    for name, state in report.states.items():
        installed = ", ".join(str(v) for v in state.installed_versions) or "-"
        loaded = str(state.loaded_version) if state.loaded_version else "-"
        status = Text(state.status.value, style=status_style(state.status))
        table.add_row(name, str(state.min_version), loaded, installed, status)
    console.print(table)

    for conflict in report.conflicts:
        style = _SEVERITY_STYLES.get(conflict.severity, "white")
        console.print(
            f"[{style}]{conflict.severity.name}[/{style}] {conflict.name}: "
            f"loaded {conflict.loaded_version}, minimum {conflict.required_version} "
            f"({conflict.kind.value})"
        )
    _print_recommendations(report.recommendations)


def print_resolution(result: ResolutionResult) -> None:
    """Print the outcome of a resolution run."""
    if result.success:
        verdict = Text("RESOLVED", style="bold green")
    else:
        verdict = Text(result.final_state.value.upper(), style="bold red")
    header = Text.assemble(
        ("Result: ", "bold"), verdict,
        ("  Retries: ", "bold"), (str(result.retry_count), ""),
    )
    console.print(Panel(header, title="Resolution"))

    for action in result.actions:
        console.print(f"  - {action}")
    for error in result.errors:
        console.print(f"  [red]! {error}[/red]")
    _print_recommendations(result.recommendations)


def _print_recommendations(recommendations: list[str]) -> None:
    if not recommendations:
        return
    console.print("\n[bold]Recommendations:[/bold]")
    for line in recommendations:
        console.print(f"  * {line}")


# ---------------------------------------------------------------------------
# JSON renderings
# ---------------------------------------------------------------------------


def report_to_json(report: ConflictReport) -> dict[str, Any]:
    return {
        "safe_to_proceed": report.safe_to_proceed,
        "states": {
            name: {
                "min_version": str(state.min_version),
                "loaded_version": (
                    str(state.loaded_version) if state.loaded_version else None
                ),
                "loaded_as": state.loaded_as,
                "installed_versions": [str(v) for v in state.installed_versions],
                "status": state.status.value,
            }
            for name, state in report.states.items()
        },
        "conflicts": [
            {
                "name": c.name,
                "loaded_version": str(c.loaded_version),
                "required_version": str(c.required_version),
                "kind": c.kind.value,
                "severity": c.severity.name,
            }
            for c in report.conflicts
        ],
        "missing": [
            {
                "name": m.name,
                "required_version": str(m.required_version),
                "status": m.status.value,
            }
            for m in report.missing
        ],
        "recommendations": list(report.recommendations),
    }


def result_to_json(result: ResolutionResult) -> dict[str, Any]:
    return {
        "success": result.success,
        "final_state": result.final_state.value,
        "retry_count": result.retry_count,
        "requires_restart": result.requires_restart,
        "errors": list(result.errors),
        "actions": list(result.actions),
        "recommendations": list(result.recommendations),
    }
