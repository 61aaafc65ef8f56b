"""Unit tests for path safety checks."""

from __future__ import annotations

import pytest

from stacksync.core.paths import is_inside, is_safe_component


class TestIsSafeComponent:
    @pytest.mark.parametrize("name", ["php", "nuxt-ui", "docs/theming.md", ".hidden", "a..b"])
    def test_safe(self, name):
        assert is_safe_component(name)

    @pytest.mark.parametrize(
        "name", ["", ".", "a/.", "./a", "..", "../x", "a/../b", "/abs", "a//b", "a/", "a\\b"]
    )
    def test_unsafe(self, name):
        assert not is_safe_component(name)


class TestIsInside:
    def test_child(self, tmp_path):
        assert is_inside(tmp_path, tmp_path / "php" / "testing.md")

    def test_same_directory(self, tmp_path):
        assert is_inside(tmp_path, tmp_path / ".")

    def test_escape(self, tmp_path):
        assert not is_inside(tmp_path / "root", tmp_path / "root" / ".." / "other")
