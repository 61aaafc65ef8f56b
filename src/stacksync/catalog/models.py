"""Catalog documents: the top-level registry and per-stack manifests."""

from __future__ import annotations

from pydantic import BaseModel, Field

from stacksync.core.models import CatalogEntry


class StackMeta(BaseModel):
    """Summary of one stack as listed in ``registry.json``."""

    name: str = ""
    description: str = ""
    version: str
    hash: str = ""
    category: str = ""
    depends: list[str] = Field(default_factory=list)


class Registry(BaseModel):
    """The catalog's ``registry.json``."""

    version: int = 1
    generated_at: str = ""
    stacks: dict[str, StackMeta] = Field(default_factory=dict)


class StackManifest(BaseModel):
    """A stack's own ``stack.json``: what files make up the stack."""

    name: str = ""
    version: str = ""
    description: str = ""
    depends: list[str] = Field(default_factory=list)
    category: str = ""
    files: list[str] = Field(default_factory=list)


def registry_to_catalog(registry: Registry) -> dict[str, CatalogEntry]:
    """The resolver's view of a registry: ids and dependency edges only."""
    return {
        stack_id: CatalogEntry(id=stack_id, depends=tuple(meta.depends))
        for stack_id, meta in registry.stacks.items()
    }
