"""Read-only reports — integrity verification, freshness, catalog search and health checks."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from stacksync.catalog.models import Registry, StackMeta
from stacksync.catalog.source import CatalogSource
from stacksync.config import get_settings
from stacksync.core.errors import CatalogError, ProjectError
from stacksync.core.models import VerifyResult
from stacksync.integrity.verify import verify_all
from stacksync.project.state import ProjectConfig, load_project, project_file
from stacksync.workflows.common import catalog_for

logger = logging.getLogger(__name__)

UP_TO_DATE = "up to date"
UPDATE_AVAILABLE = "update available"
REMOVED_FROM_CATALOG = "removed from catalog"


@dataclass
class OutdatedStack:
    """Installed version of a stack next to the catalog's current one."""

    stack: str
    installed: str
    latest: str | None
    status: str

    def to_dict(self) -> dict:
        return {
            "stack": self.stack,
            "installed": self.installed,
            "latest": self.latest,
            "status": self.status,
        }


@dataclass
class VerifyReport:
    """Complete verification report for a project."""

    results: list[VerifyResult] = field(default_factory=list)
    outdated: list[OutdatedStack] = field(default_factory=list)
    catalog_reachable: bool = True
    catalog_error: str | None = None

    @property
    def failed(self) -> list[VerifyResult]:
        return [r for r in self.results if not r.ok]

    @property
    def passed(self) -> bool:
        return not self.failed and not self.outdated

    def to_dict(self) -> dict:
        return {
            "passed": self.passed,
            "catalog_reachable": self.catalog_reachable,
            "catalog_error": self.catalog_error,
            "outdated": [o.to_dict() for o in self.outdated],
            "stacks": [r.to_dict() for r in self.results],
        }


def compare_versions(config: ProjectConfig, registry: Registry) -> list[OutdatedStack]:
    """Installed vs catalog version for every recorded stack, sorted by id."""
    rows = []
    for stack_id in sorted(config.resolved):
        installed = config.resolved[stack_id].version
        meta = registry.stacks.get(stack_id)
        if meta is None:
            rows.append(OutdatedStack(stack_id, installed, None, REMOVED_FROM_CATALOG))
        elif meta.version == installed:
            rows.append(OutdatedStack(stack_id, installed, meta.version, UP_TO_DATE))
        else:
            rows.append(OutdatedStack(stack_id, installed, meta.version, UPDATE_AVAILABLE))
    return rows


def outdated_stacks(
    project_dir: str | Path,
    source: CatalogSource | None = None,
) -> list[OutdatedStack]:
    """Compare every installed stack with the catalog.

    Raises:
        CatalogError: If the catalog cannot be read.
    """
    config = load_project(project_dir)
    registry = catalog_for(config, project_dir, source).fetch_registry()
    return compare_versions(config, registry)


def verify_project(
    project_dir: str | Path,
    source: CatalogSource | None = None,
    concurrency: int | None = None,
    strict: bool = False,
) -> VerifyReport:
    """Check freshness against the catalog and integrity of every installed stack.

    An unreachable catalog only skips the freshness check unless ``strict``
    is set, in which case the CatalogError propagates. Integrity problems
    are collected per stack, never raised.
    """
    config = load_project(project_dir)
    report = VerifyReport()

    try:
        registry = catalog_for(config, project_dir, source).fetch_registry()
    except CatalogError as e:
        if strict:
            raise
        logger.warning("Catalog unreachable, skipping freshness check: %s", e)
        report.catalog_reachable = False
        report.catalog_error = str(e)
    else:
        report.outdated = [
            row for row in compare_versions(config, registry) if row.status == UPDATE_AVAILABLE
        ]

    report.results = verify_all(
        config.instructions_root(project_dir),
        config.resolved,
        concurrency=concurrency or get_settings().verify_concurrency,
    )
    return report


def search_catalog(registry: Registry, term: str) -> list[tuple[str, StackMeta]]:
    """Stacks whose id, name, description or category contains ``term``, sorted by id.

    Matching is case-insensitive. An empty term matches everything.
    """
    term = term.lower()
    matches = []
    for stack_id in sorted(registry.stacks):
        meta = registry.stacks[stack_id]
        haystack = (stack_id, meta.name, meta.description, meta.category)
        if any(term in value.lower() for value in haystack):
            matches.append((stack_id, meta))
    return matches


@dataclass
class DoctorCheck:
    """Result of a single health check."""

    name: str
    passed: bool
    message: str
    details: list[str] = field(default_factory=list)


@dataclass
class DoctorReport:
    """Health checks for a project, in the order they ran."""

    checks: list[DoctorCheck] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all(c.passed for c in self.checks)

    @property
    def failed_checks(self) -> list[DoctorCheck]:
        return [c for c in self.checks if not c.passed]

    @property
    def summary(self) -> str:
        passed = sum(1 for c in self.checks if c.passed)
        return f"{passed}/{len(self.checks)} checks passed"

    def add(self, name: str, passed: bool, message: str, details: list[str] | None = None) -> None:
        self.checks.append(DoctorCheck(name, passed, message, details or []))


def diagnose_project(
    project_dir: str | Path,
    source: CatalogSource | None = None,
) -> DoctorReport:
    """Run the project health checks.

    Later checks need a loadable project file with at least one resolved
    stack, so the report stops at the first of those that fails. Nothing
    is raised for a failed check.
    """
    report = DoctorReport()
    path = project_file(project_dir)

    if not path.is_file():
        report.add("project file", False, f"{path.name} not found (run 'stacksync init')")
        return report
    report.add("project file", True, f"{path.name} found")

    try:
        config = load_project(project_dir)
    except ProjectError as e:
        report.add("project file valid", False, str(e))
        return report
    report.add("project file valid", True, f"{len(config.stacks)} explicit stack(s)")

    if not config.resolved:
        report.add("resolved stacks", False, "no resolved stacks (run 'stacksync sync')")
        return report
    report.add("resolved stacks", True, f"{len(config.resolved)} stacks resolved")

    try:
        catalog_for(config, project_dir, source).fetch_registry()
    except CatalogError as e:
        report.add("catalog", False, f"unreachable at {config.catalog}", [str(e)])
    else:
        report.add("catalog", True, f"reachable at {config.catalog}")

    root = config.instructions_root(project_dir)
    if root.is_dir():
        file_count = sum(len(state.files) for state in config.resolved.values())
        report.add("instructions folder", True, f"{config.instructions_dir}/ exists with {file_count} files")
    else:
        report.add("instructions folder", False, f"{config.instructions_dir}/ missing (run 'stacksync sync')")

    results = verify_all(root, config.resolved, concurrency=get_settings().verify_concurrency)
    failed = [r for r in results if not r.ok]
    if failed:
        report.add(
            "file hashes",
            False,
            "some file hashes don't match (run 'stacksync sync')",
            [f"{r.stack}: {', '.join([*r.missing, *r.tampered])}" for r in failed],
        )
    else:
        report.add("file hashes", True, "all file hashes match")

    return report
