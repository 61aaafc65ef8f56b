"""Project file and per-stack directories."""

from stacksync.project.state import ProjectConfig, load_project, project_exists, save_project

__all__ = [
    "ProjectConfig",
    "load_project",
    "project_exists",
    "save_project",
]
