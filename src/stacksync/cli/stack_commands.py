"""Init, add, remove, sync, list and search commands."""

from __future__ import annotations

import os
import sys

import click
from rich import box
from rich.table import Table

from stacksync.cli.main import console, fail, get_logger, project_dir
from stacksync.core.errors import StacksyncError


def _print_sync_report(report) -> None:
    if report.updated:
        console.print(f"[green]Synced {len(report.updated)} stack(s):[/green]")
        for update in report.updated:
            if update.reason == "new":
                console.print(f"  {update.stack}   (new) {update.new_version}")
            elif update.reason == "repaired":
                console.print(f"  {update.stack}   {update.new_version} [yellow](restored)[/yellow]")
            else:
                console.print(f"  {update.stack}   {update.old_version} → {update.new_version}")
    if report.removed:
        console.print(f"[dim]Removed {len(report.removed)} stale stack(s): {', '.join(report.removed)}[/dim]")
    if report.unchanged:
        console.print(f"\n{len(report.unchanged)} stack(s) unchanged: {', '.join(report.unchanged)}")
    if report.up_to_date:
        console.print("[green]Everything is up to date[/green]")


@click.command()
@click.argument("stacks", nargs=-1, required=True)
@click.option("--catalog", default=None, help="Catalog location (directory or file:// URL)")
@click.option("--instructions-dir", default=None, help="Directory that receives the stack files")
@click.pass_context
def init(ctx: click.Context, stacks: tuple[str, ...], catalog: str | None, instructions_dir: str | None):
    """Create a project file for STACKS and fetch them.

    The catalog defaults to the STACKSYNC_CATALOG setting.
    """
    from stacksync.config import get_settings
    from stacksync.workflows import init_project

    catalog = catalog or get_settings().catalog
    if not catalog:
        fail("no catalog given; pass --catalog or set STACKSYNC_CATALOG")

    try:
        report = init_project(
            project_dir(ctx),
            catalog,
            list(stacks),
            instructions_dir=instructions_dir,
            sync_logger=get_logger(ctx),
        )
    except StacksyncError as e:
        fail(str(e), e)

    console.print(f"[green]Initialized project with {len(stacks)} stack(s)[/green]")
    _print_sync_report(report)


@click.command()
@click.argument("stacks", nargs=-1, required=True)
@click.pass_context
def add(ctx: click.Context, stacks: tuple[str, ...]):
    """Add STACKS (and their dependencies) to this project."""
    from stacksync.workflows import add_stacks

    try:
        added = add_stacks(project_dir(ctx), list(stacks), sync_logger=get_logger(ctx))
    except StacksyncError as e:
        fail(str(e), e)

    if not added:
        console.print("[dim]Nothing to add.[/dim]")
        return
    console.print(f"[green]Added {len(added)} stack(s):[/green] {', '.join(added)}")


def _is_ci() -> bool:
    return bool(os.environ.get("CI"))


def _confirm_orphans(orphans: list[str]) -> bool:
    console.print("\nThe following dependencies are no longer needed:")
    for stack_id in orphans:
        console.print(f"  {stack_id}")
    return click.confirm("Remove these orphaned dependencies?", default=False)


@click.command()
@click.argument("stacks", nargs=-1, required=True)
@click.option(
    "--auto-remove-orphans",
    is_flag=True,
    help="Also remove dependencies nothing else needs (useful in CI)",
)
@click.pass_context
def remove(ctx: click.Context, stacks: tuple[str, ...], auto_remove_orphans: bool):
    """Remove STACKS from this project."""
    from stacksync.workflows import remove_stacks

    interactive = not auto_remove_orphans and not _is_ci() and sys.stdin.isatty()
    try:
        report = remove_stacks(
            project_dir(ctx),
            list(stacks),
            remove_orphans=auto_remove_orphans,
            confirm_orphans=_confirm_orphans if interactive else None,
            sync_logger=get_logger(ctx),
        )
    except StacksyncError as e:
        fail(str(e), e)

    console.print(f"[green]Removed {len(report.removed)} stack(s):[/green] {', '.join(report.removed)}")
    if report.kept_orphans:
        console.print(
            f"[yellow]Kept unused dependencies:[/yellow] {', '.join(report.kept_orphans)} "
            "[dim](run 'stacksync sync' to drop them)[/dim]"
        )


@click.command()
@click.pass_context
def sync(ctx: click.Context):
    """Fetch new, updated or damaged stacks from the catalog."""
    from stacksync.workflows import sync_project

    console.print("Syncing stacks...")
    try:
        report = sync_project(project_dir(ctx), sync_logger=get_logger(ctx))
    except StacksyncError as e:
        fail(str(e), e)

    _print_sync_report(report)


def _catalog_registry(root, catalog: str | None):
    """Registry from ``--catalog``, falling back to the project's catalog."""
    from stacksync.catalog import open_catalog
    from stacksync.project.state import load_project, project_exists

    if not catalog and project_exists(root):
        catalog = load_project(root).catalog
    if not catalog:
        fail("no catalog given; pass --catalog or run inside a project")
    return open_catalog(catalog, base_dir=root).fetch_registry()


@click.command()
@click.option("--catalog", default=None, help="Catalog location (defaults to the project's catalog)")
@click.pass_context
def list_stacks(ctx: click.Context, catalog: str | None):
    """List the stacks available in the catalog."""
    from stacksync.project.state import load_project, project_exists

    root = project_dir(ctx)
    installed: dict = {}
    try:
        if project_exists(root):
            installed = load_project(root).resolved
        registry = _catalog_registry(root, catalog)
    except StacksyncError as e:
        fail(str(e), e)

    table = Table(title="Catalog Stacks", box=box.ROUNDED)
    table.add_column("Stack", style="bold")
    table.add_column("Version")
    table.add_column("Category")
    table.add_column("Depends")
    table.add_column("Installed", justify="center")

    for stack_id in sorted(registry.stacks):
        meta = registry.stacks[stack_id]
        state = installed.get(stack_id)
        if state is None:
            mark = ""
        elif state.explicit:
            mark = f"[green]{state.version}[/green]"
        else:
            mark = f"[dim]{state.version} (via {state.dependency_of})[/dim]"
        table.add_row(stack_id, meta.version, meta.category, ", ".join(meta.depends), mark)

    console.print(table)


@click.command()
@click.argument("term")
@click.option("--catalog", default=None, help="Catalog location (defaults to the project's catalog)")
@click.pass_context
def search(ctx: click.Context, term: str, catalog: str | None):
    """Search catalog stacks by id, name, description or category."""
    from stacksync.workflows import search_catalog

    try:
        matches = search_catalog(_catalog_registry(project_dir(ctx), catalog), term)
    except StacksyncError as e:
        fail(str(e), e)

    if not matches:
        console.print(f"[dim]No stacks match {term!r}[/dim]")
        return

    table = Table(title=f"Stacks matching {term!r}", box=box.ROUNDED)
    table.add_column("Stack", style="bold")
    table.add_column("Description")
    table.add_column("Category")
    table.add_column("Depends")

    for stack_id, meta in matches:
        table.add_row(stack_id, meta.description, meta.category, ", ".join(meta.depends))

    console.print(table)
