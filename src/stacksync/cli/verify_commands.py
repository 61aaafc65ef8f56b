"""Verify, outdated and doctor commands."""

from __future__ import annotations

import json
import sys

import click
from rich import box
from rich.table import Table

from stacksync.cli.main import console, fail, project_dir
from stacksync.core.errors import StacksyncError


@click.command()
@click.option("--strict", is_flag=True, help="Fail when the catalog is unreachable (default: warn only)")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.option("-j", "--concurrency", default=None, type=int, help="Stacks verified in parallel")
@click.pass_context
def verify(ctx: click.Context, strict: bool, output_json: bool, concurrency: int | None):
    """Verify installed stacks are up to date and unmodified.

    Intended for CI: exits 0 when everything checks out, 1 otherwise.
    """
    from stacksync.project.state import load_project
    from stacksync.workflows import verify_project

    root = project_dir(ctx)
    try:
        report = verify_project(root, concurrency=concurrency, strict=strict)
        config = load_project(root)
    except StacksyncError as e:
        fail(str(e), e)

    if output_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        sys.exit(0 if report.passed else 1)

    if report.passed:
        file_count = sum(len(state.files) for state in config.resolved.values())
        console.print(
            f"[green]All {len(report.results)} stacks verified, "
            f"{file_count} files intact[/green]"
        )
        if not report.catalog_reachable:
            console.print("[yellow]Freshness could not be checked (catalog unreachable)[/yellow]")
        sys.exit(0)

    console.print("[red bold]Verification failed[/red bold]\n")

    if report.outdated:
        console.print("Outdated stacks (catalog has a newer version):")
        for row in report.outdated:
            console.print(f"  {row.stack}   {row.installed} → {row.latest}")
        console.print()

    missing = [(r.stack, name) for r in report.failed for name in r.missing]
    if missing:
        console.print("Missing files:")
        for stack_id, name in missing:
            console.print(f"  {config.instructions_dir}/{stack_id}/{name}")
        console.print()

    tampered = [(r.stack, name) for r in report.failed for name in r.tampered]
    if tampered:
        console.print("Modified files (local files don't match recorded hashes):")
        for stack_id, name in tampered:
            console.print(f"  {config.instructions_dir}/{stack_id}/{name}")
        console.print()

    console.print("Run: [bold]stacksync sync[/bold]")
    sys.exit(1)


@click.command()
@click.pass_context
def outdated(ctx: click.Context):
    """Compare installed stack versions with the catalog."""
    from stacksync.workflows import outdated_stacks
    from stacksync.workflows.report import UP_TO_DATE

    try:
        rows = outdated_stacks(project_dir(ctx))
    except StacksyncError as e:
        fail(str(e), e)

    table = Table(title="Stack Versions", box=box.ROUNDED)
    table.add_column("Stack", style="bold")
    table.add_column("Installed")
    table.add_column("Latest")
    table.add_column("Status")

    for row in rows:
        style = "green" if row.status == UP_TO_DATE else "yellow"
        table.add_row(row.stack, row.installed, row.latest or "-", f"[{style}]{row.status}[/{style}]")

    console.print(table)

    if all(row.status == UP_TO_DATE for row in rows):
        console.print("\n[green]All stacks are up to date[/green]")


@click.command()
@click.pass_context
def doctor(ctx: click.Context):
    """Diagnose common project problems.

    Checks the project file, resolved stacks, catalog reachability, the
    instructions folder and the recorded file hashes. Exits 1 when any
    check fails.
    """
    from stacksync.workflows import diagnose_project

    report = diagnose_project(project_dir(ctx))

    table = Table(title="Project Health", box=box.ROUNDED)
    table.add_column("Check", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Message")

    for check in report.checks:
        status_str = "[green]PASS[/green]" if check.passed else "[red]FAIL[/red]"
        table.add_row(check.name, status_str, check.message)

    console.print(table)

    for check in report.failed_checks:
        if check.details:
            console.print(f"\n[red bold]{check.name}[/red bold] details:")
            for detail in check.details:
                console.print(f"  [dim]{detail}[/dim]")

    if report.passed:
        console.print("\n[green]Everything looks good![/green]")
        sys.exit(0)

    console.print(f"\n[bold]{report.summary}[/bold]")
    sys.exit(1)
