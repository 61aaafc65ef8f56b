"""Shared plumbing for workflows: opening the catalog, default logger, recording stack state."""

from __future__ import annotations

from pathlib import Path

from stacksync.catalog.source import CatalogSource, open_catalog
from stacksync.config import get_settings
from stacksync.core.logging import SyncLogger, Verbosity
from stacksync.core.models import Resolution, StackState
from stacksync.integrity.fingerprint import hash_dir, hash_files
from stacksync.project.files import materialize_stack
from stacksync.project.state import ProjectConfig


def catalog_for(config: ProjectConfig, project_dir: str | Path, source: CatalogSource | None) -> CatalogSource:
    """Use the given source, or open the one named in the project file."""
    if source is not None:
        return source
    return open_catalog(
        config.catalog,
        base_dir=project_dir,
        ttl_seconds=get_settings().cache_ttl_seconds,
    )


def default_logger(logger: SyncLogger | None) -> SyncLogger:
    if logger is not None:
        return logger
    return SyncLogger(verbosity=Verbosity.DEFAULT, log_dir=get_settings().log_dir)


def install_stack(
    source: CatalogSource,
    config: ProjectConfig,
    project_dir: str | Path,
    stack_id: str,
    version: str,
    resolution: Resolution,
) -> StackState:
    """Fetch a stack's files, hash them, and record the new state in ``config``."""
    manifest = source.fetch_manifest(stack_id)
    stack_dir = materialize_stack(source, config.instructions_root(project_dir), stack_id, manifest.files)

    state = StackState(
        version=version,
        content_hash=hash_dir(stack_dir),
        files=list(manifest.files),
        file_hashes=hash_files(stack_dir, manifest.files),
    )
    state.attribute(resolution, stack_id)
    config.resolved[stack_id] = state
    return state
