"""Path safety checks for stack ids and file names taken from catalog data."""

from __future__ import annotations

import posixpath
from pathlib import Path, PurePosixPath


def is_safe_component(name: str) -> bool:
    """True when ``name`` is a normalized relative path that stays inside its parent.

    Rejects empty names, absolute paths, ``.`` and ``..`` segments, backslashes and
    anything ``posixpath.normpath`` would rewrite (``a//b``, ``./a``).
    """
    if not name or "\\" in name:
        return False
    if PurePosixPath(name).is_absolute():
        return False
    if posixpath.normpath(name) != name:
        return False
    return name != "." and ".." not in PurePosixPath(name).parts


def is_inside(base: Path, candidate: Path) -> bool:
    """True when ``candidate`` resolves to ``base`` or somewhere below it."""
    base = base.resolve()
    candidate = candidate.resolve()
    return candidate == base or base in candidate.parents
