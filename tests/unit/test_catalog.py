"""Tests for catalog documents and the directory catalog source."""

from __future__ import annotations

import json

import pytest

from stacksync.catalog import DirectoryCatalog, open_catalog
from stacksync.catalog.models import Registry, StackMeta, registry_to_catalog
from stacksync.core.errors import CatalogError
from stacksync.core.models import CatalogEntry


class TestRegistry:
    def test_fetch_registry(self, catalog_dir):
        registry = DirectoryCatalog(catalog_dir).fetch_registry()

        assert registry.version == 1
        assert set(registry.stacks) == {"php", "laravel", "symfony", "vue", "nuxt", "nuxt-ui"}
        assert registry.stacks["laravel"].version == "2.0.0"
        assert registry.stacks["laravel"].depends == ["php"]

    def test_registry_to_catalog(self):
        registry = Registry(stacks={
            "php": StackMeta(version="1.0.0"),
            "laravel": StackMeta(version="2.0.0", depends=["php"]),
        })
        assert registry_to_catalog(registry) == {
            "php": CatalogEntry(id="php", depends=()),
            "laravel": CatalogEntry(id="laravel", depends=("php",)),
        }

    def test_missing_registry(self, tmp_path):
        with pytest.raises(CatalogError, match="registry not found"):
            DirectoryCatalog(tmp_path).fetch_registry()

    def test_malformed_json(self, tmp_path):
        (tmp_path / "registry.json").write_text("{not json")
        with pytest.raises(CatalogError, match="parsing registry"):
            DirectoryCatalog(tmp_path).fetch_registry()

    def test_invalid_document(self, tmp_path):
        """Every stack needs a version."""
        (tmp_path / "registry.json").write_text(json.dumps({"stacks": {"php": {"name": "php"}}}))
        with pytest.raises(CatalogError, match="invalid registry"):
            DirectoryCatalog(tmp_path).fetch_registry()


class TestCache:
    def test_registry_cached_within_ttl(self, catalog_dir):
        source = DirectoryCatalog(catalog_dir, ttl_seconds=300)
        first = source.fetch_registry()
        (catalog_dir / "registry.json").write_text(json.dumps({"stacks": {}}))

        assert source.fetch_registry() is first

    def test_clear_cache(self, catalog_dir):
        source = DirectoryCatalog(catalog_dir, ttl_seconds=300)
        source.fetch_registry()
        (catalog_dir / "registry.json").write_text(json.dumps({"stacks": {}}))

        source.clear_cache()

        assert source.fetch_registry().stacks == {}

    def test_zero_ttl_disables_cache(self, catalog_dir):
        source = DirectoryCatalog(catalog_dir, ttl_seconds=0)
        source.fetch_registry()
        (catalog_dir / "registry.json").write_text(json.dumps({"stacks": {}}))

        assert source.fetch_registry().stacks == {}

    def test_expired_entry_is_reloaded(self, catalog_dir, monkeypatch):
        import stacksync.catalog.source as source_module

        now = [1000.0]
        monkeypatch.setattr(source_module.time, "monotonic", lambda: now[0])
        source = DirectoryCatalog(catalog_dir, ttl_seconds=10)
        first = source.fetch_registry()

        now[0] += 11

        assert source.fetch_registry() is not first


class TestManifests:
    def test_fetch_manifest(self, source):
        manifest = source.fetch_manifest("nuxt-ui")

        assert manifest.name == "nuxt-ui"
        assert manifest.version == "1.0.0"
        assert manifest.files == ["components.md", "docs/theming.md"]

    def test_read_file(self, source):
        assert source.read_file("nuxt-ui", "docs/theming.md") == b"# Theming\n"

    def test_unknown_stack(self, source):
        with pytest.raises(CatalogError, match="not found"):
            source.fetch_manifest("django")

    def test_missing_file(self, source):
        with pytest.raises(CatalogError, match="php/nope.md"):
            source.read_file("php", "nope.md")

    @pytest.mark.parametrize("stack_id", ["../evil", "a/b", "", "/etc"])
    def test_unsafe_stack_id(self, source, stack_id):
        with pytest.raises(CatalogError, match="invalid stack id"):
            source.fetch_manifest(stack_id)

    @pytest.mark.parametrize("filename", ["../secret", "/etc/passwd", "a\\b.md", "docs/../../x"])
    def test_unsafe_filename(self, source, filename):
        with pytest.raises(CatalogError, match="invalid file name"):
            source.read_file("php", filename)

    def test_manifest_with_unsafe_filename(self, catalog_dir):
        (catalog_dir / "php" / "stack.json").write_text(
            json.dumps({"name": "php", "version": "1.0.0", "files": ["../../outside.md"]})
        )
        with pytest.raises(CatalogError, match="invalid file name in manifest"):
            DirectoryCatalog(catalog_dir).fetch_manifest("php")


class TestOpenCatalog:
    def test_plain_path(self, catalog_dir):
        source = open_catalog(str(catalog_dir))
        assert isinstance(source, DirectoryCatalog)
        assert source.root == catalog_dir

    def test_file_url(self, catalog_dir):
        source = open_catalog(catalog_dir.as_uri())
        assert source.root == catalog_dir
        assert "laravel" in source.fetch_registry().stacks

    def test_relative_to_base_dir(self, catalog_dir):
        source = open_catalog("catalog", base_dir=catalog_dir.parent)
        assert source.root == catalog_dir

    def test_remote_scheme_rejected(self):
        with pytest.raises(CatalogError, match="unsupported catalog location"):
            open_catalog("https://example.com/catalog")

    def test_empty_location(self):
        with pytest.raises(CatalogError):
            open_catalog("")
