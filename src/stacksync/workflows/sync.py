"""Sync workflows — bring a project's stack directories in line with the catalog."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from stacksync.catalog.models import registry_to_catalog
from stacksync.catalog.source import CatalogSource
from stacksync.core.errors import ProjectError, ResolutionError
from stacksync.core.logging import SyncLogger
from stacksync.integrity.verify import verify_stack
from stacksync.project.files import cleanup_stale_stacks
from stacksync.project.state import (
    ProjectConfig,
    load_project,
    project_exists,
    save_project,
    validate_project,
)
from stacksync.resolver.dag import resolve
from stacksync.workflows.common import catalog_for, default_logger, install_stack

logger = logging.getLogger(__name__)


@dataclass
class StackUpdate:
    """A stack whose files were (re)written during a sync."""

    stack: str
    old_version: str | None
    new_version: str

    @property
    def reason(self) -> str:
        if self.old_version is None:
            return "new"
        if self.old_version == self.new_version:
            return "repaired"
        return "updated"


@dataclass
class SyncReport:
    """Summary of a sync run."""

    order: list[str] = field(default_factory=list)
    updated: list[StackUpdate] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    @property
    def up_to_date(self) -> bool:
        return not self.updated and not self.removed


def sync_project(
    project_dir: str | Path,
    source: CatalogSource | None = None,
    sync_logger: SyncLogger | None = None,
) -> SyncReport:
    """Re-resolve the project's stacks and fetch whatever is new, changed or damaged.

    A stack is skipped when its recorded version matches the catalog and
    its files still verify; otherwise it is materialized again and its
    hashes re-recorded. Stacks no longer needed are deleted.

    Raises:
        ResolutionError: If the explicit stacks cannot be resolved.
        CatalogError: If the catalog cannot be read.
        ProjectError: If the project file is missing or invalid.
    """
    sync_logger = default_logger(sync_logger)
    try:
        return _sync(project_dir, source, sync_logger)
    finally:
        sync_logger.close()


def _sync(project_dir: str | Path, source: CatalogSource | None, sync_logger: SyncLogger) -> SyncReport:
    config = load_project(project_dir)
    source = catalog_for(config, project_dir, source)

    registry = source.fetch_registry()
    resolution = resolve(registry_to_catalog(registry), config.stacks)
    sync_logger.run_start("sync", len(resolution.order))

    report = SyncReport(order=list(resolution.order))
    try:
        for stack_id in resolution.order:
            version = registry.stacks[stack_id].version
            current = config.resolved.get(stack_id)

            if current is not None and current.version == version:
                result = verify_stack(
                    config.stack_dir(project_dir, stack_id),
                    current.files,
                    current.content_hash,
                    current.file_hashes,
                    stack=stack_id,
                )
                sync_logger.stack_verified(stack_id, result.ok, result.missing, result.tampered)
                if result.ok:
                    current.attribute(resolution, stack_id)
                    report.unchanged.append(stack_id)
                    sync_logger.stack_unchanged(stack_id, version)
                    continue

            state = install_stack(source, config, project_dir, stack_id, version, resolution)
            report.updated.append(StackUpdate(
                stack=stack_id,
                old_version=current.version if current is not None else None,
                new_version=version,
            ))
            sync_logger.stack_downloaded(stack_id, version, state.content_hash)

        needed = set(resolution.order)
        stale = set(cleanup_stale_stacks(config.instructions_root(project_dir), needed))
        stale.update(stack_id for stack_id in config.resolved if stack_id not in needed)
        for stack_id in sorted(stale):
            config.resolved.pop(stack_id, None)
            report.removed.append(stack_id)
            sync_logger.stack_removed(stack_id, "no longer needed")

        save_project(project_dir, config)
    finally:
        sync_logger.run_finish()

    return report


def init_project(
    project_dir: str | Path,
    catalog: str,
    stacks: list[str],
    instructions_dir: str | None = None,
    source: CatalogSource | None = None,
    sync_logger: SyncLogger | None = None,
) -> SyncReport:
    """Create the project file for ``stacks`` and run the first sync.

    The stacks are resolved before anything is written, so an unknown stack
    or a broken dependency graph leaves the directory untouched.
    """
    if project_exists(project_dir):
        raise ProjectError("project already initialized; use 'stacksync add' to add stacks")

    config = ProjectConfig(
        catalog=catalog,
        stacks=list(dict.fromkeys(stacks)),
        instructions_dir=instructions_dir or "",
    )
    validate_project(config)
    if not config.stacks:
        raise ProjectError("at least one stack is required")

    source = catalog_for(config, project_dir, source)
    resolve(registry_to_catalog(source.fetch_registry()), config.stacks)

    Path(project_dir).mkdir(parents=True, exist_ok=True)
    save_project(project_dir, config)
    return sync_project(project_dir, source=source, sync_logger=sync_logger)


def add_stacks(
    project_dir: str | Path,
    stack_ids: list[str],
    source: CatalogSource | None = None,
    sync_logger: SyncLogger | None = None,
) -> list[str]:
    """Add explicit stacks to the project and fetch anything not yet installed.

    Stacks already requested are skipped. Already-installed stacks are
    left as they are apart from their dependency attribution.

    Returns:
        The ids that were newly added to the explicit list.

    Raises:
        ResolutionError: NOT_FOUND for an id missing from the catalog, or any
            resolution failure of the combined explicit list.
    """
    sync_logger = default_logger(sync_logger)
    try:
        return _add(project_dir, stack_ids, source, sync_logger)
    finally:
        sync_logger.close()


def _add(
    project_dir: str | Path,
    stack_ids: list[str],
    source: CatalogSource | None,
    sync_logger: SyncLogger,
) -> list[str]:
    config = load_project(project_dir)
    source = catalog_for(config, project_dir, source)

    registry = source.fetch_registry()
    for stack_id in stack_ids:
        if stack_id not in registry.stacks:
            raise ResolutionError.not_found(stack_id)

    existing = set(config.stacks)
    new_stacks: list[str] = []
    for stack_id in dict.fromkeys(stack_ids):
        if stack_id in existing:
            logger.warning("Stack %r is already installed, skipping", stack_id)
            continue
        new_stacks.append(stack_id)

    if not new_stacks:
        return []

    all_explicit = [*config.stacks, *new_stacks]
    resolution = resolve(registry_to_catalog(registry), all_explicit)

    sync_logger.run_start("add", len(resolution.order))
    try:
        for stack_id in resolution.order:
            current = config.resolved.get(stack_id)
            if current is not None:
                current.attribute(resolution, stack_id)
                continue
            version = registry.stacks[stack_id].version
            state = install_stack(source, config, project_dir, stack_id, version, resolution)
            sync_logger.stack_downloaded(stack_id, version, state.content_hash)

        config.stacks = all_explicit
        save_project(project_dir, config)
    finally:
        sync_logger.run_finish()

    return new_stacks
