"""
Tests for SectionAssembler.
"""

import itertools

import pytest

from pagecomposer.services.document_store import InMemoryDocumentStore
from pagecomposer.services.exceptions import DocumentNotFound, InvalidSectionContent, NoSectionsError
from pagecomposer.services.html_document import is_well_formed
from pagecomposer.services.models import Section, SectionType
from pagecomposer.services.page_template import PageMeta
from pagecomposer.services.section_assembler import (
    SectionAssembler,
    is_valid_section_html,
    order_sections,
)
from pagecomposer.services.section_store import InMemorySectionStore


def make_section(section_id, section_type, order=0, html=None, document_id="doc-1"):
    return Section(
        document_id=document_id,
        section_id=section_id,
        section_type=section_type,
        section_order=order,
        html=html if html is not None else f'<section id="{section_id}">{section_id}</section>',
    )


CANONICAL_ORDER = ["hero", "comparison", "p1", "p2", "faq", "cta"]


def build_pool():
    """Pool in arbitrary producer order with colliding section_order values."""
    return [
        make_section("cta", SectionType.CTA, 0),
        make_section("p2", SectionType.PRODUCT_CARD, 2),
        make_section("faq", SectionType.FAQ, 0),
        make_section("hero", SectionType.HERO, 5),
        make_section("p1", SectionType.PRODUCT_CARD, 1),
        make_section("comparison", SectionType.COMPARISON_TABLE, 0),
    ]


@pytest.fixture
def scrambled_pool():
    return build_pool()


@pytest.fixture
def stores():
    return InMemorySectionStore(), InMemoryDocumentStore()


class TestIsValidSectionHtml:

    @pytest.mark.parametrize("html", [
        None,
        "",
        "   ",
        "...",
        "…",
        "[content]",
        "[HTML for hero section]",
        "plain text without markup",
        "<p>Cut off mid sentence...",
        "<p>Cut off…",
    ])
    def test_rejects_unusable_fragments(self, html):
        assert is_valid_section_html(html, min_length=0) is False

    def test_accepts_short_markup(self):
        assert is_valid_section_html("<p>ok</p>", min_length=0) is True

    def test_minimum_length(self):
        assert is_valid_section_html("<p>ok</p>", min_length=100) is False


class TestAssembleBody:

    def test_type_buckets_decide_placement(self, scrambled_pool):
        body = SectionAssembler.assemble_body("doc-1", scrambled_pool)

        positions = [body.index(f'id="{sid}"') for sid in CANONICAL_ORDER]
        assert positions == sorted(positions)

    def test_output_order(self, scrambled_pool):
        assert SectionAssembler.output_order(scrambled_pool) == CANONICAL_ORDER

    @pytest.mark.parametrize("permutation", list(itertools.permutations(range(6))))
    def test_placement_independent_of_pool_order(self, permutation):
        base = build_pool()
        pool = [base[i] for i in permutation]

        assert SectionAssembler.output_order(pool) == CANONICAL_ORDER

        body = SectionAssembler.assemble_body("doc-1", pool)
        positions = [body.index(f'id="{sid}"') for sid in CANONICAL_ORDER]
        assert positions == sorted(positions)

    def test_product_cards_wrapped_once(self, scrambled_pool):
        body = SectionAssembler.assemble_body("doc-1", scrambled_pool)

        assert body.count('id="products-list"') == 1
        assert "Detailed Reviews" in body
        wrapper = body.index('id="products-list"')
        assert body.index('id="comparison"') < wrapper < body.index('id="p1"')

    def test_no_wrapper_without_product_cards(self):
        body = SectionAssembler.assemble_body("doc-1", [make_section("hero", SectionType.HERO)])
        assert "products-list" not in body

    def test_equal_order_keeps_pool_order(self):
        pool = [
            make_section("b", SectionType.PRODUCT_CARD, 0),
            make_section("a", SectionType.PRODUCT_CARD, 0),
        ]
        assert [s.section_id for s in order_sections(pool)] == ["b", "a"]

    def test_custom_sections_last(self):
        pool = [
            make_section("extra", SectionType.CUSTOM, -1),
            make_section("cta", SectionType.CTA, 9),
        ]
        assert SectionAssembler.output_order(pool) == ["cta", "extra"]

    def test_placeholder_section_reported(self, scrambled_pool):
        scrambled_pool[3] = make_section("hero", SectionType.HERO, html="...")

        with pytest.raises(InvalidSectionContent) as exc_info:
            SectionAssembler.assemble_body("doc-1", scrambled_pool)

        assert exc_info.value.missing_or_invalid == ["hero"]

    def test_empty_pool(self):
        with pytest.raises(NoSectionsError):
            SectionAssembler.assemble_body("doc-1", [])


class TestAssemble:

    def test_stores_rendered_page(self, stores, scrambled_pool):
        section_store, document_store = stores
        for section in scrambled_pool:
            section_store.put(section)
        assembler = SectionAssembler(section_store, document_store)

        result = assembler.assemble("doc-1", PageMeta(title="Best Tools", description="A list"))

        assert result.success is True
        assert result.sections_assembled == 6
        assert result.section_order == ["hero", "comparison", "p1", "p2", "faq", "cta"]

        record = document_store.get("doc-1")
        assert record.status == "in_production"
        assert result.html_size == len(record.html)
        assert is_well_formed(record.html)
        assert "<title>Best Tools</title>" in record.html
        assert '<meta name="description" content="A list">' in record.html
        assert "<main>" in record.html

    def test_invalid_section_result(self, stores):
        section_store, document_store = stores
        section_store.put(make_section("hero", SectionType.HERO, html="..."))
        section_store.put(make_section("faq", SectionType.FAQ))
        assembler = SectionAssembler(section_store, document_store)

        result = assembler.assemble("doc-1", PageMeta(title="T"))

        assert result.success is False
        assert result.error_kind == "invalid_section_content"
        assert result.missing_or_invalid == ["hero"]
        with pytest.raises(DocumentNotFound):
            document_store.get("doc-1")

    def test_no_sections_result(self, stores):
        assembler = SectionAssembler(*stores)
        result = assembler.assemble("doc-1", PageMeta(title="T"))
        assert result.success is False
        assert result.error_kind == "no_sections"
