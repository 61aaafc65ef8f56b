"""Dependency resolution for stacks."""

from stacksync.resolver.dag import catalog_from_depends, find_cycle, resolve, resolve_removal

__all__ = [
    "catalog_from_depends",
    "find_cycle",
    "resolve",
    "resolve_removal",
]
