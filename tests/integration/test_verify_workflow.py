"""Integration tests — verify, outdated, search and doctor reports."""

from __future__ import annotations

import shutil

import pytest

from stacksync.catalog.source import DirectoryCatalog
from stacksync.core.errors import CatalogError
from stacksync.project.state import ProjectConfig, save_project
from stacksync.workflows import diagnose_project, init_project, outdated_stacks, search_catalog, verify_project
from stacksync.workflows.report import REMOVED_FROM_CATALOG, UP_TO_DATE, UPDATE_AVAILABLE
from tests.helpers.catalog import stacks_with


@pytest.fixture
def project(project_dir, catalog_dir, source):
    init_project(project_dir, str(catalog_dir), ["laravel", "nuxt-ui"], source=source)
    return project_dir


class TestVerifyProject:
    def test_clean_project_passes(self, project, source):
        report = verify_project(project, source=source)

        assert report.passed
        assert report.catalog_reachable
        assert report.outdated == []
        assert [r.stack for r in report.results] == ["laravel", "nuxt", "nuxt-ui", "php", "vue"]

    @pytest.mark.parametrize("concurrency", [1, 8])
    def test_tampered_stack_fails(self, project, source, concurrency):
        (project / "stack-instructions" / "nuxt-ui" / "docs" / "theming.md").write_text("edited")

        report = verify_project(project, source=source, concurrency=concurrency)

        assert not report.passed
        [failed] = report.failed
        assert failed.stack == "nuxt-ui"
        assert failed.tampered == ["docs/theming.md"]

    def test_missing_file_fails(self, project, source):
        (project / "stack-instructions" / "php" / "testing.md").unlink()

        report = verify_project(project, source=source)

        assert [(r.stack, r.missing) for r in report.failed] == [("php", ["testing.md"])]

    def test_outdated_stack_fails(self, project, make_catalog, source):
        make_catalog(stacks_with(laravel={"version": "2.1.0"}))

        report = verify_project(project, source=source)

        assert not report.passed
        assert report.failed == []
        [row] = report.outdated
        assert (row.stack, row.installed, row.latest) == ("laravel", "2.0.0", "2.1.0")

    def test_unreachable_catalog_is_a_warning(self, project, catalog_dir, source):
        (catalog_dir / "registry.json").unlink()

        report = verify_project(project, source=source)

        assert report.passed
        assert not report.catalog_reachable
        assert "registry not found" in report.catalog_error

    def test_unreachable_catalog_strict(self, project, catalog_dir, source):
        (catalog_dir / "registry.json").unlink()

        with pytest.raises(CatalogError):
            verify_project(project, source=source, strict=True)

    def test_does_not_modify_project(self, project, source):
        (project / "stack-instructions" / "vue" / "vue.md").write_text("edited")
        before = (project / "stacksync.yml").read_text()

        verify_project(project, source=source)

        assert (project / "stacksync.yml").read_text() == before
        assert (project / "stack-instructions" / "vue" / "vue.md").read_text() == "edited"

    def test_to_dict(self, project, source):
        data = verify_project(project, source=source).to_dict()

        assert data["passed"] is True
        assert data["catalog_reachable"] is True
        assert data["catalog_error"] is None
        assert data["outdated"] == []
        assert len(data["stacks"]) == 5
        assert all(s["ok"] for s in data["stacks"])


class TestOutdated:
    def test_all_up_to_date(self, project):
        rows = outdated_stacks(project)

        assert [r.stack for r in rows] == ["laravel", "nuxt", "nuxt-ui", "php", "vue"]
        assert {r.status for r in rows} == {UP_TO_DATE}

    def test_statuses(self, project, make_catalog):
        make_catalog(stacks_with(laravel={"version": "2.1.0"}, **{"nuxt-ui": None}))

        rows = {r.stack: r for r in outdated_stacks(project)}

        assert rows["laravel"].status == UPDATE_AVAILABLE
        assert rows["laravel"].latest == "2.1.0"
        assert rows["nuxt-ui"].status == REMOVED_FROM_CATALOG
        assert rows["nuxt-ui"].latest is None
        assert rows["php"].status == UP_TO_DATE

    def test_catalog_unreachable(self, project, catalog_dir):
        (catalog_dir / "registry.json").unlink()

        with pytest.raises(CatalogError):
            outdated_stacks(project)


class TestSearchCatalog:
    @pytest.fixture
    def registry(self, make_catalog):
        catalog = make_catalog(
            stacks_with(
                vue={"category": "frontend"},
                symfony={"description": "Components and bundles for PHP apps"},
            )
        )
        return DirectoryCatalog(catalog, ttl_seconds=0).fetch_registry()

    def test_matches_id_case_insensitively(self, registry):
        assert [stack_id for stack_id, _ in search_catalog(registry, "NUXT")] == ["nuxt", "nuxt-ui"]

    def test_matches_description(self, registry):
        assert [stack_id for stack_id, _ in search_catalog(registry, "bundles")] == ["symfony"]

    def test_matches_category(self, registry):
        assert [stack_id for stack_id, _ in search_catalog(registry, "frontend")] == ["vue"]

    def test_results_sorted_by_id(self, registry):
        matches = search_catalog(registry, "php")

        assert [stack_id for stack_id, _ in matches] == ["php", "symfony"]
        assert matches[1][1].depends == ["php"]

    def test_no_match(self, registry):
        assert search_catalog(registry, "django") == []


class TestDiagnoseProject:
    CHECKS = [
        "project file",
        "project file valid",
        "resolved stacks",
        "catalog",
        "instructions folder",
        "file hashes",
    ]

    def test_healthy_project(self, project, source):
        report = diagnose_project(project, source=source)

        assert report.passed
        assert [c.name for c in report.checks] == self.CHECKS
        folder = report.checks[4]
        assert folder.message == "stack-instructions/ exists with 7 files"
        assert report.summary == "6/6 checks passed"

    def test_missing_project_file(self, project_dir, source):
        report = diagnose_project(project_dir, source=source)

        assert not report.passed
        [check] = report.checks
        assert check.name == "project file"
        assert "stacksync.yml not found" in check.message

    def test_unparseable_project_file(self, project_dir, source):
        (project_dir / "stacksync.yml").write_text("stacks: [unclosed\n")

        report = diagnose_project(project_dir, source=source)

        assert [c.name for c in report.checks] == ["project file", "project file valid"]
        assert [c.name for c in report.failed_checks] == ["project file valid"]

    def test_no_resolved_stacks(self, project_dir, catalog_dir, source):
        save_project(project_dir, ProjectConfig(catalog=str(catalog_dir), stacks=[]))

        report = diagnose_project(project_dir, source=source)

        assert [c.name for c in report.failed_checks] == ["resolved stacks"]
        assert len(report.checks) == 3

    def test_catalog_unreachable(self, project, catalog_dir, source):
        (catalog_dir / "registry.json").unlink()

        report = diagnose_project(project, source=source)

        [failed] = report.failed_checks
        assert failed.name == "catalog"
        assert "registry not found" in failed.details[0]
        assert len(report.checks) == 6

    def test_tampered_file(self, project, source):
        (project / "stack-instructions" / "php" / "testing.md").write_text("edited")

        report = diagnose_project(project, source=source)

        [failed] = report.failed_checks
        assert failed.name == "file hashes"
        assert failed.details == ["php: testing.md"]

    def test_missing_instructions_folder(self, project, source):
        shutil.rmtree(project / "stack-instructions")

        report = diagnose_project(project, source=source)

        assert [c.name for c in report.failed_checks] == ["instructions folder", "file hashes"]
        assert report.summary == "4/6 checks passed"

    def test_does_not_modify_project(self, project, source):
        (project / "stack-instructions" / "vue" / "vue.md").unlink()
        before = (project / "stacksync.yml").read_text()

        diagnose_project(project, source=source)

        assert (project / "stacksync.yml").read_text() == before
        assert not (project / "stack-instructions" / "vue" / "vue.md").exists()
