"""
Tests for the pagecomposer CLI, run against in-memory dependencies.
"""

import json
from unittest.mock import MagicMock

import pytest
from click.testing import CliRunner

from pagecomposer.cli.main import cli
from pagecomposer.pipelines.dependencies import CompositionDependencies
from pagecomposer.services.models import FragmentKind


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def deps():
    deps = CompositionDependencies.in_memory(scope_class="page-scope")
    deps.document_store.create("doc-1", owner_id="u1", project_id="p1")
    deps.fragment_service.add("u1", "p1", FragmentKind.HEADER, "<header>H</header>")
    deps.fragment_service.add("u1", "p1", FragmentKind.FOOTER, "<footer>F</footer>")
    return deps


def put_section(runner, deps, tmp_path, section_id, section_type, html):
    path = tmp_path / f"{section_id}.html"
    path.write_text(html)
    return runner.invoke(
        cli,
        ["section", "put", "doc-1", section_id, "--type", section_type, "-f", str(path)],
        obj=deps,
    )


class TestRootGroup:

    def test_configures_logfire(self, runner, deps, monkeypatch):
        setup = MagicMock(return_value=False)
        monkeypatch.setattr("pagecomposer.cli.main.setup_logfire", setup)

        result = runner.invoke(cli, ["section", "list", "doc-2"], obj=deps)

        assert result.exit_code == 0
        setup.assert_called_once_with()


class TestSectionCommands:

    def test_put_and_list(self, runner, deps, tmp_path):
        result = put_section(runner, deps, tmp_path, "hero", "hero", "<section>Hero</section>")

        assert result.exit_code == 0
        assert "✅ Stored section hero" in result.output
        assert deps.section_store.get("doc-1", "hero").html == "<section>Hero</section>"

        listed = runner.invoke(cli, ["section", "list", "doc-1"], obj=deps)
        assert listed.exit_code == 0
        assert "hero" in listed.output

    def test_list_empty(self, runner, deps):
        result = runner.invoke(cli, ["section", "list", "doc-2"], obj=deps)
        assert "No sections found for doc-2." in result.output

    def test_clear(self, runner, deps, tmp_path):
        put_section(runner, deps, tmp_path, "hero", "hero", "<section>Hero</section>")

        result = runner.invoke(cli, ["section", "clear", "doc-1", "--yes"], obj=deps)

        assert result.exit_code == 0
        assert "Removed 1 sections" in result.output
        assert deps.section_store.count("doc-1") == 0


class TestStageCommands:

    def test_stages_in_order(self, runner, deps, tmp_path):
        put_section(runner, deps, tmp_path, "hero", "hero", "<section>Hero</section>")

        assembled = runner.invoke(cli, ["assemble", "doc-1", "--title", "Best Tools"], obj=deps)
        assert assembled.exit_code == 0, assembled.output
        assert "✅ Assembled 1 sections" in assembled.output

        injected = runner.invoke(cli, ["inject", "doc-1"], obj=deps)
        assert injected.exit_code == 0, injected.output
        assert "Header: fetched, Footer: fetched" in injected.output

        isolated = runner.invoke(cli, ["isolate", "doc-1"], obj=deps)
        assert isolated.exit_code == 0, isolated.output
        assert "under .page-scope" in isolated.output

        again = runner.invoke(cli, ["isolate", "doc-1"], obj=deps)
        assert "Already scoped" in again.output

        finalized = runner.invoke(cli, ["finalize", "doc-1"], obj=deps)
        assert finalized.exit_code == 0, finalized.output
        assert "Header: YES, Footer: YES" in finalized.output
        assert deps.document_store.get("doc-1").status == "generated"

    def test_assemble_reports_invalid_sections(self, runner, deps, tmp_path):
        put_section(runner, deps, tmp_path, "hero", "hero", "...")

        result = runner.invoke(cli, ["assemble", "doc-1", "--title", "T"], obj=deps)

        assert result.exit_code == 1
        assert "Sections to regenerate: hero" in result.output

    def test_compose_json(self, runner, deps, tmp_path):
        put_section(runner, deps, tmp_path, "hero", "hero", "<section>Hero</section>")

        result = runner.invoke(cli, ["compose", "doc-1", "--title", "T", "--json"], obj=deps)

        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["status"] == "success"
        assert payload["has_header"] is True

    def test_compose_failure_exit_code(self, runner, deps):
        result = runner.invoke(cli, ["compose", "doc-1", "--title", "T"], obj=deps)
        assert result.exit_code == 1
        assert "Failed at assemble" in result.output


class TestScopeCssCommand:

    def test_scopes_file(self, runner, tmp_path):
        css = tmp_path / "page.css"
        css.write_text("body { color: red; } .btn-primary { color: blue; } @keyframes spin { from{} to{} }")

        result = runner.invoke(cli, [
            "scope-css", str(css), "--scope-class", "scope1", "--allow", ".btn-primary",
        ])

        assert result.exit_code == 0
        assert result.output == (
            ".scope1 { color: red; } .btn-primary { color: blue; } @keyframes spin { from{} to{} }"
        )

    def test_rejects_bad_scope_class(self, runner, tmp_path):
        css = tmp_path / "page.css"
        css.write_text("h1 {}")

        result = runner.invoke(cli, ["scope-css", str(css), "--scope-class", "1bad"])

        assert result.exit_code == 1
        assert "Invalid scope class" in result.output
