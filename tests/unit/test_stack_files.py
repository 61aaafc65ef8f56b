"""Tests for stack directories on disk."""

from __future__ import annotations

import pytest

from stacksync.core.errors import CatalogError, ProjectError
from stacksync.project.files import (
    cleanup_stale_stacks,
    materialize_stack,
    remove_stack,
    validate_path_component,
)


@pytest.fixture
def instructions_root(project_dir):
    return project_dir / "stack-instructions"


class TestValidatePathComponent:
    @pytest.mark.parametrize("name", ["laravel", "docs/theming.md", "nuxt-ui", "a.b"])
    def test_accepts(self, name):
        validate_path_component(name, "filename")

    @pytest.mark.parametrize("name", ["../x", "/abs", "a/../../b", "a\\b", "./a", "a//b", ".", "a/."])
    def test_rejects(self, name):
        with pytest.raises(ProjectError, match="invalid filename"):
            validate_path_component(name, "filename")

    def test_empty(self):
        with pytest.raises(ProjectError, match="empty stack id"):
            validate_path_component("", "stack id")


class TestMaterializeStack:
    def test_writes_files(self, source, instructions_root):
        stack_dir = materialize_stack(
            source, instructions_root, "nuxt-ui", ["components.md", "docs/theming.md"]
        )

        assert stack_dir == instructions_root / "nuxt-ui"
        assert (stack_dir / "components.md").read_text() == "# Components\n"
        assert (stack_dir / "docs" / "theming.md").read_text() == "# Theming\n"

    def test_replaces_previous_contents(self, source, instructions_root):
        stale = instructions_root / "php" / "old-version-only.md"
        stale.parent.mkdir(parents=True)
        stale.write_text("left over")

        materialize_stack(source, instructions_root, "php", ["testing.md"])

        assert not stale.exists()
        assert sorted(p.name for p in (instructions_root / "php").iterdir()) == ["testing.md"]

    @pytest.mark.parametrize("stack_id", ["../escape", "a/b", "", "."])
    def test_rejects_unsafe_stack_id(self, source, instructions_root, stack_id):
        with pytest.raises(ProjectError):
            materialize_stack(source, instructions_root, stack_id, [])

    def test_dot_stack_id_leaves_other_stacks(self, source, instructions_root):
        materialize_stack(source, instructions_root, "php", ["testing.md"])

        with pytest.raises(ProjectError, match="invalid stack id"):
            materialize_stack(source, instructions_root, ".", [])

        assert (instructions_root / "php" / "testing.md").read_text() == "# PHP Testing\n"

    def test_rejects_unsafe_filename_before_writing(self, source, instructions_root):
        with pytest.raises(ProjectError):
            materialize_stack(source, instructions_root, "php", ["testing.md", "../../evil.md"])

        assert not (instructions_root / "php").exists()

    def test_catalog_errors_propagate(self, source, instructions_root):
        with pytest.raises(CatalogError):
            materialize_stack(source, instructions_root, "php", ["not-in-catalog.md"])


class TestRemoveAndCleanup:
    def test_remove_stack(self, instructions_root):
        stack_dir = instructions_root / "vue"
        stack_dir.mkdir(parents=True)
        (stack_dir / "vue.md").write_text("x")

        assert remove_stack(stack_dir) is True
        assert not stack_dir.exists()
        assert remove_stack(stack_dir) is False

    def test_cleanup_removes_unknown_directories(self, instructions_root):
        for stack_id in ["php", "laravel", "vue", "old-stack"]:
            (instructions_root / stack_id).mkdir(parents=True)
        (instructions_root / "README.md").write_text("kept: not a stack directory")

        removed = cleanup_stale_stacks(instructions_root, {"php", "laravel"})

        assert removed == ["old-stack", "vue"]
        assert sorted(p.name for p in instructions_root.iterdir()) == ["README.md", "laravel", "php"]

    def test_cleanup_without_root(self, instructions_root):
        assert cleanup_stale_stacks(instructions_root, []) == []
