"""stacksync - sync versioned instruction stacks from a catalog into a project.

Usage:
    from stacksync import catalog_from_depends, resolve, verify_stack

    catalog = catalog_from_depends({"php": [], "laravel": ["php"]})
    resolution = resolve(catalog, ["laravel"])
    resolution.order  # ["php", "laravel"]

    result = verify_stack("stack-instructions/php", ["a.md"], recorded_hash, recorded_file_hashes)
    result.ok
"""

from stacksync.core.errors import (
    CatalogError,
    ProjectError,
    ResolutionError,
    ResolutionErrorKind,
    StacksyncError,
)
from stacksync.core.models import CatalogEntry, Resolution, StackState, VerifyResult
from stacksync.integrity.fingerprint import content_hash, hash_dir
from stacksync.integrity.verify import verify_all, verify_stack
from stacksync.resolver.dag import catalog_from_depends, resolve, resolve_removal

__all__ = [
    "CatalogEntry",
    "CatalogError",
    "ProjectError",
    "Resolution",
    "ResolutionError",
    "ResolutionErrorKind",
    "StackState",
    "StacksyncError",
    "VerifyResult",
    "catalog_from_depends",
    "content_hash",
    "hash_dir",
    "resolve",
    "resolve_removal",
    "verify_all",
    "verify_stack",
]

__version__ = "0.1.0"
