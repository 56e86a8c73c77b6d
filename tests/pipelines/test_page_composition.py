"""
Tests for the page composition pipeline.

Runs the full graph against in-memory stores.
"""

import pytest

from pagecomposer.pipelines.dependencies import CompositionDependencies
from pagecomposer.pipelines.metadata import get_pipeline_summary
from pagecomposer.pipelines.page_composition import (
    AssembleSectionsNode,
    FinalizeNode,
    InjectContextNode,
    IsolateStylesNode,
    produce_sections,
    run_page_composition,
)
from pagecomposer.services.html_document import is_well_formed, split_document
from pagecomposer.services.models import FragmentKind, Section, SectionType
from pagecomposer.services.page_template import PageMeta


HEADER = '<header class="site-header"><nav>Home</nav></header>'
FOOTER = "<footer>© Site</footer>"


def make_section(section_id, section_type, html=None, order=0):
    return Section(
        document_id="doc-1",
        section_id=section_id,
        section_type=section_type,
        section_order=order,
        html=html or f'<section id="{section_id}"><h2>{section_id}</h2></section>',
    )


@pytest.fixture
def deps():
    deps = CompositionDependencies.in_memory(scope_class="page-scope")
    deps.document_store.create("doc-1", owner_id="u1", project_id="p1")
    deps.fragment_service.add("u1", "p1", FragmentKind.HEADER, HEADER)
    deps.fragment_service.add("u1", "p1", FragmentKind.FOOTER, FOOTER)
    for section in (
        make_section("faq", SectionType.FAQ),
        make_section("p1", SectionType.PRODUCT_CARD),
        make_section("hero", SectionType.HERO),
    ):
        deps.section_store.put(section)
    return deps


class TestRunPageComposition:

    @pytest.mark.asyncio
    async def test_full_run(self, deps):
        result = await run_page_composition("doc-1", PageMeta(title="Best Tools"), deps=deps)

        assert result["status"] == "success"
        assert result["has_header"] is True
        assert result["has_footer"] is True
        assert result["warnings"] == []
        assert result["stages"]["assembly"]["section_order"] == ["hero", "p1", "faq"]
        assert result["stages"]["isolation"]["wrap_strategy"] == "main"

        record = deps.document_store.get("doc-1")
        assert record.status == "generated"
        assert is_well_formed(record.html)
        assert result["html_size"] == len(record.html)

        doc = split_document(record.html)
        assert 'data-style-scope="page-scope"' in doc.head
        assert ".page-scope {" in doc.head
        assert '<main class="page-scope">' in doc.body
        assert doc.body.index(HEADER) < doc.body.index('id="hero"') < doc.body.index(FOOTER)

    @pytest.mark.asyncio
    async def test_missing_footer_is_a_warning(self, deps):
        deps.fragment_service.add("u1", "p1", FragmentKind.FOOTER, "")

        result = await run_page_composition("doc-1", PageMeta(title="T"), deps=deps)

        assert result["status"] == "success"
        assert result["has_footer"] is False
        assert len(result["warnings"]) == 1

    @pytest.mark.asyncio
    async def test_provided_layout_used(self, deps):
        result = await run_page_composition(
            "doc-1",
            PageMeta(title="T"),
            header="<header>Given</header>",
            footer="<footer>Given</footer>",
            deps=deps,
        )

        assert result["stages"]["injection"]["header_source"] == "provided"
        html = deps.document_store.get("doc-1").html
        assert "<header>Given</header>" in html
        assert HEADER not in html

    @pytest.mark.asyncio
    async def test_invalid_section_stops_at_assemble(self, deps):
        deps.section_store.put(make_section("hero", SectionType.HERO, html="..."))

        result = await run_page_composition("doc-1", PageMeta(title="T"), deps=deps)

        assert result["status"] == "error"
        assert result["step"] == "assemble"
        assert result["error_kind"] == "invalid_section_content"
        assert result["missing_or_invalid"] == ["hero"]

    @pytest.mark.asyncio
    async def test_unknown_document_stops_at_assemble(self):
        deps = CompositionDependencies.in_memory(scope_class="page-scope")

        result = await run_page_composition("nope", PageMeta(title="T"), deps=deps)

        assert result["status"] == "error"
        assert result["step"] == "assemble"
        assert result["error_kind"] == "no_sections"

    @pytest.mark.asyncio
    async def test_rerun_is_guarded(self, deps):
        await run_page_composition("doc-1", PageMeta(title="T"), deps=deps)
        first = deps.document_store.get("doc-1").html

        isolation = deps.transformer.isolate("doc-1")

        assert isolation.already_scoped is True
        assert deps.document_store.get("doc-1").html == first


class TestProduceSections:

    @pytest.mark.asyncio
    async def test_failed_producer_does_not_cancel_others(self, deps):
        async def hero():
            return make_section("hero", SectionType.HERO, html="<section>new hero</section>")

        async def faq():
            raise RuntimeError("model timeout")

        async def cta():
            return make_section("cta", SectionType.CTA)

        report = await produce_sections(deps.section_store, {"hero": hero, "faq": faq, "cta": cta})

        assert report.success is False
        assert sorted(report.stored) == ["cta", "hero"]
        assert report.failed == {"faq": "model timeout"}
        assert deps.section_store.get("doc-1", "hero").html == "<section>new hero</section>"
        assert deps.section_store.get("doc-1", "cta") is not None

    @pytest.mark.asyncio
    async def test_all_producers_succeed(self, deps):
        async def custom():
            return make_section("extra", SectionType.CUSTOM)

        report = await produce_sections(deps.section_store, {"extra": custom})

        assert report.success is True
        assert report.stored == ["extra"]


class TestPipelineMetadata:

    def test_every_node_writes_the_document(self):
        nodes = [AssembleSectionsNode, InjectContextNode, IsolateStylesNode, FinalizeNode]
        summary = get_pipeline_summary(nodes)

        assert summary["node_count"] == 4
        assert summary["writer_nodes"] == [n.__name__ for n in nodes]
        assert FinalizeNode.metadata.writes_status == "generated"
        assert "injector.inject" in summary["services"]
