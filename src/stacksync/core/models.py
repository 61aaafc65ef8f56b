"""Core data models for stacksync."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CatalogEntry:
    """A stack as the resolver sees it: an id and its declared dependencies."""

    id: str
    depends: tuple[str, ...] = ()


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving a set of explicit stacks against a catalog.

    ``order`` lists every needed stack exactly once, dependencies first.
    ``dependency_of`` is only defined for stacks that were not requested
    explicitly and names the stack that first pulled each one in.
    """

    order: list[str] = field(default_factory=list)
    explicit: frozenset[str] = frozenset()
    dependency_of: dict[str, str] = field(default_factory=dict)

    def __contains__(self, stack_id: str) -> bool:
        return stack_id in self.order

    def attribution(self, stack_id: str) -> tuple[bool, str | None]:
        """Return (explicit, dependency_of) as recorded in StackState."""
        if stack_id in self.explicit:
            return True, None
        return False, self.dependency_of.get(stack_id)


@dataclass
class StackState:
    """Recorded state of a stack materialized in a project."""

    version: str
    content_hash: str
    files: list[str] = field(default_factory=list)
    file_hashes: dict[str, str] = field(default_factory=dict)
    explicit: bool = False
    dependency_of: str | None = None

    def attribute(self, resolution: Resolution, stack_id: str) -> None:
        """Copy explicit/dependency_of for this stack from a resolution."""
        self.explicit, self.dependency_of = resolution.attribution(stack_id)

    def to_dict(self) -> dict:
        """Serialize to a plain dict; empty optional fields are omitted."""
        data: dict = {
            "version": self.version,
            "hash": self.content_hash,
            "files": list(self.files),
        }
        if self.file_hashes:
            data["file_hashes"] = dict(sorted(self.file_hashes.items()))
        if self.explicit:
            data["explicit"] = True
        if self.dependency_of:
            data["dependency_of"] = self.dependency_of
        return data

    @classmethod
    def from_dict(cls, data: dict) -> StackState:
        return cls(
            version=str(data.get("version", "")),
            content_hash=data.get("hash", ""),
            files=list(data.get("files") or []),
            file_hashes=dict(data.get("file_hashes") or {}),
            explicit=bool(data.get("explicit", False)),
            dependency_of=data.get("dependency_of") or None,
        )


@dataclass
class VerifyResult:
    """Integrity verdict for one stack."""

    stack: str
    ok: bool = True
    missing: list[str] = field(default_factory=list)
    tampered: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "stack": self.stack,
            "ok": self.ok,
            "missing": list(self.missing),
            "tampered": list(self.tampered),
        }
