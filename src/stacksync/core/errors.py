"""stacksync error types and utilities."""

from __future__ import annotations

import os
import tempfile
from enum import Enum
from pathlib import Path


def atomic_write(path: Path, content: str | bytes) -> None:
    """Write content to a file atomically using temp file + rename.

    Writes to a temporary file in the same directory, fsyncs it,
    then atomically replaces the target path.
    """
    data = content.encode() if isinstance(content, str) else content
    fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, str(path))
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


class StacksyncError(Exception):
    """Base exception for stacksync."""

    pass


class ResolutionErrorKind(str, Enum):
    """Why a dependency resolution was rejected."""

    NOT_FOUND = "not_found"
    MISSING_DEPENDENCY = "missing_dependency"
    CIRCULAR_DEPENDENCY = "circular_dependency"


class ResolutionError(StacksyncError):
    """The requested set of stacks cannot be satisfied by the catalog.

    One exception type for every failure kind. ``kind`` tells the variants
    apart and only the fields of that variant are populated:

    - ``NOT_FOUND``: ``stack``
    - ``MISSING_DEPENDENCY``: ``stack`` and ``dependency``
    - ``CIRCULAR_DEPENDENCY``: ``cycle`` (first element repeated as the last)
    """

    def __init__(
        self,
        kind: ResolutionErrorKind,
        *,
        stack: str | None = None,
        dependency: str | None = None,
        cycle: list[str] | None = None,
    ):
        self.kind = kind
        self.stack = stack
        self.dependency = dependency
        self.cycle = list(cycle) if cycle is not None else None
        super().__init__(self._format())

    @classmethod
    def not_found(cls, stack: str) -> ResolutionError:
        return cls(ResolutionErrorKind.NOT_FOUND, stack=stack)

    @classmethod
    def missing_dependency(cls, stack: str, dependency: str) -> ResolutionError:
        return cls(ResolutionErrorKind.MISSING_DEPENDENCY, stack=stack, dependency=dependency)

    @classmethod
    def circular_dependency(cls, cycle: list[str]) -> ResolutionError:
        return cls(ResolutionErrorKind.CIRCULAR_DEPENDENCY, cycle=cycle)

    def _format(self) -> str:
        if self.kind is ResolutionErrorKind.NOT_FOUND:
            return f"stack not found: {self.stack}"
        if self.kind is ResolutionErrorKind.MISSING_DEPENDENCY:
            return f"stack '{self.stack}' depends on '{self.dependency}', which does not exist"
        return f"circular dependency: {' → '.join(self.cycle or [])}"


class CatalogError(StacksyncError):
    """Error reading stack metadata or files from the catalog."""

    pass


class ProjectError(StacksyncError):
    """Error in the project file or the local stack directories."""

    pass
