"""Stack files on disk — materialize, remove and clean up per-stack directories."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable, Sequence
from pathlib import Path

from stacksync.catalog.source import CatalogSource
from stacksync.core.errors import ProjectError, atomic_write
from stacksync.core.paths import is_inside, is_safe_component

logger = logging.getLogger(__name__)


def validate_path_component(name: str, label: str) -> None:
    """Reject names that could escape the directory they are joined onto."""
    if not name:
        raise ProjectError(f"empty {label}")
    if not is_safe_component(name):
        raise ProjectError(f"invalid {label}: {name!r}")


def materialize_stack(
    source: CatalogSource,
    instructions_root: Path,
    stack_id: str,
    files: Sequence[str],
) -> Path:
    """Replace ``instructions_root/<stack_id>`` with the stack's files from the catalog.

    The stack directory is cleared first so files dropped by a newer
    version do not linger. Each file is written atomically.

    Returns:
        The stack directory.
    """
    validate_path_component(stack_id, "stack id")
    if "/" in stack_id:
        raise ProjectError(f"invalid stack id: {stack_id!r}")
    for filename in files:
        validate_path_component(filename, "filename")

    stack_dir = instructions_root / stack_id
    if not is_inside(instructions_root, stack_dir) or stack_dir.resolve() == instructions_root.resolve():
        raise ProjectError(f"stack path {stack_dir} escapes {instructions_root}")

    if stack_dir.exists():
        shutil.rmtree(stack_dir)
    stack_dir.mkdir(parents=True, exist_ok=True)

    for filename in files:
        target = stack_dir / filename
        if not is_inside(stack_dir, target):
            raise ProjectError(f"file path {target} escapes {stack_dir}")
        data = source.read_file(stack_id, filename)
        target.parent.mkdir(parents=True, exist_ok=True)
        atomic_write(target, data)

    logger.debug("materialized %s (%d files) into %s", stack_id, len(files), stack_dir)
    return stack_dir


def remove_stack(stack_dir: Path) -> bool:
    """Delete a stack directory. Returns False when it was not there."""
    if not stack_dir.exists():
        return False
    try:
        shutil.rmtree(stack_dir)
    except OSError as e:
        raise ProjectError(f"removing stack {stack_dir.name}: {e}") from e
    return True


def cleanup_stale_stacks(instructions_root: Path, keep: Iterable[str]) -> list[str]:
    """Remove stack directories not in ``keep``; returns the removed ids, sorted."""
    if not instructions_root.is_dir():
        return []

    keep = set(keep)
    removed: list[str] = []
    for entry in sorted(instructions_root.iterdir()):
        if not entry.is_dir() or entry.name in keep:
            continue
        remove_stack(entry)
        removed.append(entry.name)
    return removed
