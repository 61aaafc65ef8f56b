"""Shared test fixtures for stacksync."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from stacksync.catalog.source import DirectoryCatalog
from stacksync.config import reset_settings
from tests.helpers.catalog import STANDARD_STACKS, write_catalog


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """No STACKSYNC_* environment leaks into tests; settings rebuilt per test."""
    for key in list(os.environ):
        if key.startswith("STACKSYNC_"):
            monkeypatch.delenv(key)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def make_catalog(tmp_path):
    """Factory: write a catalog with the given stacks (defaults to STANDARD_STACKS)."""

    def _make(stacks: dict | None = None, root: Path | None = None) -> Path:
        return write_catalog(root or tmp_path / "catalog", stacks or STANDARD_STACKS)

    return _make


@pytest.fixture
def catalog_dir(make_catalog):
    return make_catalog()


@pytest.fixture
def source(catalog_dir):
    """Uncached directory catalog, so tests see catalog edits immediately."""
    return DirectoryCatalog(catalog_dir, ttl_seconds=0)


@pytest.fixture
def project_dir(tmp_path):
    d = tmp_path / "project"
    d.mkdir()
    return d
