"""
Console report generator for depguard.

Prints a review result to the terminal using Rich: one section per kind of
finding, then a summary panel with the verdict.

Design Principles:
    - Verdict at a glance: the summary panel is colored by outcome
    - Group by manifest: vulnerabilities are listed under the file that
      introduced them
    - Quiet when clean: empty sections are not printed
"""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from depguard.review import ReviewResult
from depguard.schema import Change, Severity, group_by_manifest


# Status icons
ICON_SUCCESS = "[green]✓[/green]"
ICON_ERROR = "[red]✗[/red]"
ICON_WARNING = "[yellow]⚠[/yellow]"

SEVERITY_STYLES = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "red",
    Severity.MODERATE: "yellow",
    Severity.LOW: "dim",
}


def render_console_report(
    result: ReviewResult,
    console: Console | None = None,
    verbose: bool = False,
) -> None:
    """
    Print a console report for a review.

    Args:
        result: The review to report on
        console: Rich Console instance (creates one if not provided)
        verbose: Also show advisory URLs and resolved vulnerabilities
    """
    if console is None:
        console = Console()

    if result.vulnerable_changes:
        _print_vulnerabilities(console, result.vulnerable_changes, verbose)
        console.print()

    if result.invalid_licenses.count:
        _print_license_issues(console, result)
        console.print()

    if result.denied_changes:
        _print_denied(console, result.denied_changes)
        console.print()

    if verbose and result.resolved_vulnerabilities:
        _print_resolved(console, result)
        console.print()

    _print_summary(console, result)


def _print_vulnerabilities(
    console: Console,
    changes: list[Change],
    verbose: bool,
) -> None:
    console.print("[bold]Vulnerabilities[/bold]")
    for manifest, manifest_changes in group_by_manifest(changes).items():
        table = Table(title=escape(manifest), title_justify="left", header_style="bold", expand=True)
        table.add_column("Package", style="cyan")
        table.add_column("Version")
        table.add_column("Severity")
        table.add_column("Advisory", overflow="fold")

        for change in manifest_changes:
            for vuln in change.vulnerabilities:
                style = SEVERITY_STYLES[vuln.severity]
                advisory = escape(vuln.advisory_summary or vuln.advisory_ghsa_id)
                if verbose and vuln.advisory_url:
                    advisory = f"{advisory}\n[dim]{escape(vuln.advisory_url)}[/dim]"
                table.add_row(
                    escape(change.name),
                    escape(change.version),
                    f"[{style}]{vuln.severity.value}[/{style}]",
                    advisory,
                )
        console.print(table)


def _print_license_issues(console: Console, result: ReviewResult) -> None:
    console.print("[bold]License Issues[/bold]")
    table = Table(header_style="bold", expand=True)
    table.add_column("Status", width=6, justify="center")
    table.add_column("Package", style="cyan")
    table.add_column("Version")
    table.add_column("License", overflow="fold")
    table.add_column("Problem")

    buckets = [
        (ICON_ERROR, "forbidden", result.invalid_licenses.forbidden),
        (ICON_ERROR, "invalid SPDX expression", result.invalid_licenses.unresolved),
        (ICON_WARNING, "no license found", result.invalid_licenses.unlicensed),
    ]
    for icon, problem, changes in buckets:
        for change in changes:
            table.add_row(
                icon,
                escape(change.name),
                escape(change.version),
                escape(change.license) if change.license else "[dim]none[/dim]",
                problem,
            )
    console.print(table)


def _print_denied(console: Console, changes: list[Change]) -> None:
    console.print("[bold]Denied Packages[/bold]")
    table = Table(header_style="bold", expand=True)
    table.add_column("Package", style="cyan")
    table.add_column("Version")
    table.add_column("Manifest", style="dim")
    table.add_column("Package URL", overflow="fold")

    for change in changes:
        table.add_row(
            escape(change.name),
            escape(change.version),
            escape(change.manifest),
            escape(change.package_url),
        )
    console.print(table)


def _print_resolved(console: Console, result: ReviewResult) -> None:
    console.print("[bold]Resolved Vulnerabilities[/bold]")
    table = Table(header_style="bold", expand=True)
    table.add_column("Package", style="cyan")
    table.add_column("Version")
    table.add_column("Severity")
    table.add_column("Advisory", overflow="fold")

    for vuln in result.resolved_vulnerabilities:
        table.add_row(
            escape(vuln.package_name),
            escape(vuln.package_version),
            vuln.severity.value,
            escape(vuln.advisory_ghsa_id),
        )
    console.print(table)


def _print_summary(console: Console, result: ReviewResult) -> None:
    """Print the verdict panel."""
    if result.success and not result.has_warnings:
        style, icon, verdict = "green", ICON_SUCCESS, "PASSED"
    elif result.success:
        style, icon, verdict = "yellow", ICON_WARNING, "PASSED WITH WARNINGS"
    elif result.policy.warn_only:
        style, icon, verdict = "yellow", ICON_WARNING, "FAILED (WARN ONLY)"
    else:
        style, icon, verdict = "red", ICON_ERROR, "FAILED"

    header = Text()
    header.append(" Dependency Review ", style="bold")
    header.append("│ ", style="dim")
    header.append(verdict, style=f"bold {style}")
    header.append(" ")
    header.append(Text.from_markup(icon))
    console.print(Panel(header, expand=False))

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column("Metric", style="dim")
    stats_table.add_column("Value")

    licenses = result.invalid_licenses
    stats_table.add_row("Changes Reviewed", str(result.total_changes))
    if result.manifests:
        stats_table.add_row("Manifests", escape(", ".join(result.manifests)))
    stats_table.add_row("Vulnerable Packages", _count(len(result.vulnerable_changes), "red"))
    stats_table.add_row("Vulnerabilities", _count(result.vulnerability_count, "red"))
    stats_table.add_row("Forbidden Licenses", _count(len(licenses.forbidden), "red"))
    stats_table.add_row("Unresolved Licenses", _count(len(licenses.unresolved), "red"))
    stats_table.add_row("Unlicensed", _count(len(licenses.unlicensed), "yellow"))
    stats_table.add_row("Denied Packages", _count(len(result.denied_changes), "red"))
    stats_table.add_row(
        "Resolved Vulnerabilities",
        _count(len(result.resolved_vulnerabilities), "green"),
    )
    stats_table.add_row("Duration", f"{result.duration_ms:.1f}ms")
    console.print(stats_table)


def _count(value: int, style: str) -> str:
    return f"[{style}]{value}[/{style}]" if value > 0 else "0"
