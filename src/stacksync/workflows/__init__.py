"""High-level operations on a project: init, add, sync, remove, verify, outdated, search, doctor."""

from stacksync.workflows.remove import RemoveReport, remove_stacks
from stacksync.workflows.report import (
    DoctorCheck,
    DoctorReport,
    OutdatedStack,
    VerifyReport,
    diagnose_project,
    outdated_stacks,
    search_catalog,
    verify_project,
)
from stacksync.workflows.sync import StackUpdate, SyncReport, add_stacks, init_project, sync_project

__all__ = [
    "DoctorCheck",
    "DoctorReport",
    "OutdatedStack",
    "RemoveReport",
    "StackUpdate",
    "SyncReport",
    "VerifyReport",
    "add_stacks",
    "diagnose_project",
    "init_project",
    "outdated_stacks",
    "remove_stacks",
    "search_catalog",
    "sync_project",
    "verify_project",
]
