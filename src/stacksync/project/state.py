"""Project file — the explicit stack list plus the recorded state of every installed stack."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from stacksync.config import get_settings
from stacksync.core.errors import ProjectError, atomic_write
from stacksync.core.models import StackState

CONFIG_VERSION = 1

RESOLVED_SEPARATOR = "\n# Resolved stacks: generated by stacksync, do not edit below this line\n"


@dataclass
class ProjectConfig:
    """Contents of the project file.

    ``stacks`` is what the user asked for; ``resolved`` is everything that
    was materialized for it, keyed by stack id.
    """

    catalog: str
    stacks: list[str] = field(default_factory=list)
    instructions_dir: str = ""
    version: int = CONFIG_VERSION
    resolved: dict[str, StackState] = field(default_factory=dict)

    def __post_init__(self):
        if not self.instructions_dir:
            self.instructions_dir = get_settings().instructions_dir

    def instructions_root(self, project_dir: str | Path) -> Path:
        return Path(project_dir) / self.instructions_dir

    def stack_dir(self, project_dir: str | Path, stack_id: str) -> Path:
        return self.instructions_root(project_dir) / stack_id


def project_file(project_dir: str | Path) -> Path:
    return Path(project_dir) / get_settings().project_file


def project_exists(project_dir: str | Path) -> bool:
    return project_file(project_dir).exists()


def validate_project(config: ProjectConfig) -> None:
    """Check required fields.

    An empty stack list is valid: it is what remains after every stack has
    been removed.

    Raises:
        ProjectError: On an invalid version or missing catalog.
    """
    if config.version < 1:
        raise ProjectError(f"invalid config version: {config.version}")
    if not config.catalog:
        raise ProjectError("catalog location is required")


def load_project(project_dir: str | Path) -> ProjectConfig:
    """Read and validate the project file in ``project_dir``."""
    path = project_file(project_dir)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ProjectError(
            f"project file not found: {path.name} (run 'stacksync init' first)"
        ) from e

    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ProjectError(f"parsing {path.name}: {e}") from e
    if not isinstance(data, dict):
        raise ProjectError(f"parsing {path.name}: expected a mapping at the top level")

    resolved_data = data.get("resolved") or {}
    if not isinstance(resolved_data, dict):
        raise ProjectError(f"parsing {path.name}: 'resolved' must be a mapping")

    config = ProjectConfig(
        version=int(data.get("version", 0)),
        catalog=str(data.get("catalog") or ""),
        instructions_dir=str(data.get("instructions_dir") or ""),
        stacks=[str(s) for s in data.get("stacks") or []],
        resolved={
            str(stack_id): StackState.from_dict(entry or {})
            for stack_id, entry in resolved_data.items()
        },
    )
    validate_project(config)
    return config


def _dump(data: dict) -> str:
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)


def save_project(project_dir: str | Path, config: ProjectConfig) -> None:
    """Write the project file atomically.

    User-edited fields come first; the generated ``resolved`` section follows
    a separator comment and is left out while empty.
    """
    content = _dump({
        "version": config.version,
        "catalog": config.catalog,
        "instructions_dir": config.instructions_dir,
        "stacks": list(config.stacks),
    })
    if config.resolved:
        content += RESOLVED_SEPARATOR + _dump({
            "resolved": {
                stack_id: config.resolved[stack_id].to_dict()
                for stack_id in sorted(config.resolved)
            },
        })
    atomic_write(project_file(project_dir), content)
