"""stacksync CLI — main entry point and shared utilities."""

from __future__ import annotations

from pathlib import Path

import click
from rich.console import Console

from stacksync.config import get_settings
from stacksync.core.logging import SyncLogger, Verbosity

console = Console()


def get_logger(ctx: click.Context) -> SyncLogger:
    """SyncLogger honouring the group's --verbose count and the log_dir setting."""
    verbosity = Verbosity(min(ctx.obj.get("verbose", 0), Verbosity.DEBUG))
    return SyncLogger(verbosity=verbosity, log_dir=get_settings().log_dir, console=console)


def project_dir(ctx: click.Context) -> Path:
    return ctx.obj["project_dir"]


def fail(message: str, exc: Exception | None = None) -> None:
    """Print an error line and exit with status 1."""
    console.print(f"[red]Error:[/red] {message}")
    if exc is not None:
        raise SystemExit(1) from exc
    raise SystemExit(1)


@click.group()
@click.option("-v", "--verbose", count=True, help="Show per-stack progress (-vv for hashes)")
@click.option(
    "--project-dir",
    default=".",
    type=click.Path(file_okay=False, path_type=Path),
    help="Project directory (default: current directory)",
)
@click.pass_context
def main(ctx: click.Context, verbose: int, project_dir: Path):
    """stacksync — sync versioned instruction stacks into a project."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["project_dir"] = project_dir


def cli():
    """Entrypoint that loads .env before running the CLI."""
    from dotenv import load_dotenv

    load_dotenv()
    main()


# Import subcommand modules to register commands
from stacksync.cli.stack_commands import add, init, list_stacks, remove, search, sync  # noqa: E402
from stacksync.cli.verify_commands import doctor, outdated, verify  # noqa: E402

main.add_command(init)
main.add_command(add)
main.add_command(remove)
main.add_command(sync)
main.add_command(list_stacks, name="list")
main.add_command(verify)
main.add_command(outdated)
main.add_command(search)
main.add_command(doctor)
