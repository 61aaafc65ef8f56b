"""Remove workflow — drop explicit stacks and, optionally, the dependencies they leave behind."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

from stacksync.catalog.models import registry_to_catalog
from stacksync.catalog.source import CatalogSource
from stacksync.core.errors import CatalogError, ProjectError, ResolutionError
from stacksync.core.logging import SyncLogger
from stacksync.core.models import CatalogEntry
from stacksync.project.files import remove_stack
from stacksync.project.state import ProjectConfig, load_project, save_project
from stacksync.resolver.dag import catalog_from_depends, resolve, resolve_removal
from stacksync.workflows.common import catalog_for, default_logger

logger = logging.getLogger(__name__)


@dataclass
class RemoveReport:
    """What a removal did."""

    removed: list[str] = field(default_factory=list)
    orphans: list[str] = field(default_factory=list)
    kept_orphans: list[str] = field(default_factory=list)


def _removal_catalog(
    config: ProjectConfig,
    project_dir: str | Path,
    source: CatalogSource | None,
) -> dict[str, CatalogEntry]:
    """The catalog as the source currently describes it.

    Falls back to the installed stacks without any edges when the catalog
    cannot be read, so removal still works offline (with no orphans found).
    """
    try:
        return registry_to_catalog(catalog_for(config, project_dir, source).fetch_registry())
    except CatalogError as e:
        logger.warning("Catalog unavailable, orphan detection limited to installed stacks: %s", e)
        return catalog_from_depends({stack_id: [] for stack_id in config.resolved})


def remove_stacks(
    project_dir: str | Path,
    stack_ids: list[str],
    source: CatalogSource | None = None,
    remove_orphans: bool = False,
    confirm_orphans: Callable[[list[str]], bool] | None = None,
    sync_logger: SyncLogger | None = None,
) -> RemoveReport:
    """Remove explicit stacks from the project.

    Dependencies that only the removed stacks needed are reported as
    orphans. They are removed as well when ``remove_orphans`` is set or
    ``confirm_orphans`` returns True for them; otherwise they stay installed.

    Raises:
        ProjectError: If a stack is not one of the project's explicit stacks.
    """
    sync_logger = default_logger(sync_logger)
    try:
        return _remove(project_dir, stack_ids, source, remove_orphans, confirm_orphans, sync_logger)
    finally:
        sync_logger.close()


def _remove(
    project_dir: str | Path,
    stack_ids: list[str],
    source: CatalogSource | None,
    remove_orphans: bool,
    confirm_orphans: Callable[[list[str]], bool] | None,
    sync_logger: SyncLogger,
) -> RemoveReport:
    config = load_project(project_dir)
    for stack_id in stack_ids:
        if stack_id not in config.stacks:
            raise ProjectError(f"stack '{stack_id}' is not installed")

    catalog = _removal_catalog(config, project_dir, source)
    report = RemoveReport(orphans=resolve_removal(catalog, config.stacks, stack_ids))

    drop_orphans = bool(report.orphans) and (
        remove_orphans or (confirm_orphans is not None and confirm_orphans(report.orphans))
    )
    if not drop_orphans:
        report.kept_orphans = list(report.orphans)

    reasons = dict.fromkeys(stack_ids, "requested")
    if drop_orphans:
        reasons.update(dict.fromkeys(report.orphans, "orphaned"))

    sync_logger.run_start("remove", len(reasons))
    try:
        config.stacks = [stack_id for stack_id in config.stacks if stack_id not in reasons]

        resolution = None
        if config.stacks:
            try:
                resolution = resolve(catalog, config.stacks)
            except ResolutionError as e:
                logger.warning("Could not refresh dependency attribution: %s", e)

        for stack_id in sorted(reasons):
            if resolution is not None and stack_id in resolution:
                logger.info("Stack %r is still a dependency, keeping its files", stack_id)
                continue
            remove_stack(config.stack_dir(project_dir, stack_id))
            config.resolved.pop(stack_id, None)
            report.removed.append(stack_id)
            sync_logger.stack_removed(stack_id, reasons[stack_id])

        if resolution is not None:
            for stack_id in resolution.order:
                state = config.resolved.get(stack_id)
                if state is not None:
                    state.attribute(resolution, stack_id)

        save_project(project_dir, config)
    finally:
        sync_logger.run_finish()

    return report
