"""
CLI entry point for depguard.

This module provides the Typer-based command-line interface for depguard.

Commands:
    review      Review a dependency change list against a policy
    purl        Parse a package URL and show its parts
    spdx        Check an SPDX license expression

Exit Codes (review):
    0   The change list passes (or the policy is warn_only)
    1   The change list violates the policy
    2   The change list or policy could not be loaded

Architecture Note:
    The CLI is intentionally thin - it loads inputs, wires up the GitHub
    client and delegates to ReviewEngine. The engine can be used
    programmatically without the CLI.
"""

import asyncio
import json
import logging
import traceback
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from depguard import __version__, spdx
from depguard.errors import DepguardError
from depguard.github import DEFAULT_SERVER_URL, GitHubLicenseClient
from depguard.policy.licenses import DEFAULT_MAX_CONCURRENCY
from depguard.purl import parse_purl
from depguard.report import generate_json_report, render_console_report
from depguard.review import EXIT_CONFIG_ERROR, ReviewEngine, ReviewResult
from depguard.schema import Change, PolicyConfig, load_changes, load_policy

# Initialize Typer app with metadata
app = typer.Typer(
    name="depguard",
    help="Review dependency changes against a security and license policy.",
    add_completion=False,
    no_args_is_help=True,
)

# Rich console for formatted output
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]depguard[/bold] version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool = False, debug: bool = False) -> None:
    """Send depguard's log records to stderr through Rich."""
    logger = logging.getLogger("depguard")
    logger.handlers.clear()
    logger.addHandler(
        RichHandler(console=err_console, show_path=False, rich_tracebacks=debug)
    )
    if debug:
        logger.setLevel(logging.DEBUG)
    elif verbose:
        logger.setLevel(logging.INFO)
    else:
        logger.setLevel(logging.WARNING)


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    depguard - Policy checks for dependency changes.

    Flags vulnerable, denied and badly licensed dependencies introduced
    by a change to a dependency graph.
    """
    pass


@app.command()
def review(
    changes_path: Annotated[
        Path,
        typer.Argument(help="Path to the change list JSON file."),
    ],
    policy_path: Annotated[
        Path,
        typer.Option(
            "--policy",
            "-p",
            help="Path to the policy YAML file.",
        ),
    ],
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results in JSON format.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            help="Show advisory links, resolved vulnerabilities and progress.",
        ),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option(
            "--debug",
            help="Enable debug logging and full error tracebacks.",
        ),
    ] = False,
    github_token: Annotated[
        Optional[str],
        typer.Option(
            "--github-token",
            envvar="GITHUB_TOKEN",
            help="Token for repository license lookups.",
            show_default=False,
        ),
    ] = None,
    github_server_url: Annotated[
        str,
        typer.Option(
            "--github-server-url",
            envvar="GITHUB_SERVER_URL",
            help="GitHub server for license lookups.",
        ),
    ] = DEFAULT_SERVER_URL,
    max_concurrency: Annotated[
        int,
        typer.Option(
            "--max-concurrency",
            min=1,
            help="Maximum number of license lookups in flight.",
        ),
    ] = DEFAULT_MAX_CONCURRENCY,
) -> None:
    """
    Review a dependency change list against a policy.

    The change list is the JSON array returned by the dependency-graph
    compare API.

    Example:
        $ depguard review changes.json --policy policy.yaml
    """
    configure_logging(verbose=verbose, debug=debug)

    try:
        policy = load_policy(policy_path)
        changes = load_changes(changes_path)
    except DepguardError as e:
        if json_output:
            _output_json_error(e, debug)
        else:
            console.print(f"[red]{escape(str(e))}[/red]")
            if debug:
                console.print(f"[dim]{escape(traceback.format_exc())}[/dim]")
        raise typer.Exit(code=EXIT_CONFIG_ERROR)

    if verbose and not json_output:
        console.print(f"[dim]Loaded policy: {escape(str(policy_path))}[/dim]")
        console.print(f"[dim]Loaded {len(changes)} changes: {escape(str(changes_path))}[/dim]")
        console.print()

    result = asyncio.run(
        _run_review(policy, changes, github_token, github_server_url, max_concurrency)
    )

    if json_output:
        print(generate_json_report(result))
    else:
        render_console_report(result, console=console, verbose=verbose)

    raise typer.Exit(code=result.exit_code)


async def _run_review(
    policy: PolicyConfig,
    changes: list[Change],
    token: str | None,
    server_url: str,
    max_concurrency: int,
) -> ReviewResult:
    async with GitHubLicenseClient(token=token, server_url=server_url) as lookup:
        engine = ReviewEngine(policy, lookup, max_concurrency=max_concurrency)
        return await engine.review(changes)


def _output_json_error(error: DepguardError, include_traceback: bool = False) -> None:
    """Output an error in JSON format."""
    output = {"error": True, **error.to_dict()}
    if include_traceback:
        output["traceback"] = traceback.format_exc()
    print(json.dumps(output, indent=2))


@app.command()
def purl(
    package_url: Annotated[
        str,
        typer.Argument(help="The package URL to parse, e.g. pkg:npm/lodash@4.17.21"),
    ],
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results in JSON format.",
        ),
    ] = False,
) -> None:
    """
    Parse a package URL and show its parts.

    Exits with code 1 if the package URL is not usable.
    """
    parsed = parse_purl(package_url)

    if json_output:
        print(json.dumps({**parsed.model_dump(), "full_name": parsed.full_name}, indent=2))
    else:
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column("Field", style="dim")
        table.add_column("Value")
        table.add_row("Type", _cell(parsed.type))
        table.add_row("Namespace", _cell(parsed.namespace))
        table.add_row("Name", _cell(parsed.name))
        table.add_row("Version", _cell(parsed.version))
        table.add_row("Full Name", _cell(parsed.full_name))
        console.print(table)
        if parsed.error:
            console.print(f"[red]✗ {escape(parsed.error)}[/red]")

    if parsed.error:
        raise typer.Exit(code=1)


@app.command(name="spdx")
def spdx_command(
    expression: Annotated[
        str,
        typer.Argument(help="The SPDX license expression to check."),
    ],
    allow: Annotated[
        Optional[list[str]],
        typer.Option(
            "--allow",
            "-a",
            help="An allowed license. Repeat for more.",
        ),
    ] = None,
    deny: Annotated[
        Optional[list[str]],
        typer.Option(
            "--deny",
            "-d",
            help="A denied license. Repeat for more.",
        ),
    ] = None,
) -> None:
    """
    Check an SPDX license expression.

    Shows whether the expression is valid and, when --allow or --deny is
    given, whether it passes those lists. Exits with code 1 if the
    expression is invalid or does not pass.
    """
    passed = spdx.is_valid(expression)
    if passed:
        console.print(f"[green]✓[/green] {escape(expression)} is a valid SPDX expression")
    else:
        console.print(f"[red]✗[/red] {escape(expression)} is not a valid SPDX expression")

    if allow:
        allowed = spdx.satisfies(expression, " OR ".join(allow))
        passed = passed and allowed
        if allowed:
            console.print(f"[green]✓[/green] allowed by {escape(', '.join(allow))}")
        else:
            console.print(f"[red]✗[/red] not allowed by {escape(', '.join(allow))}")

    if deny:
        denied = spdx.satisfies_any(expression, deny)
        passed = passed and not denied
        if denied:
            console.print(f"[red]✗[/red] denied by {escape(', '.join(deny))}")
        else:
            console.print(f"[green]✓[/green] not denied by {escape(', '.join(deny))}")

    if not passed:
        raise typer.Exit(code=1)


def _cell(value: str | None) -> str:
    return escape(value) if value else "[dim]-[/dim]"


if __name__ == "__main__":
    app()
