"""
Tests for the section stores.
"""

from unittest.mock import MagicMock

import pytest

from pagecomposer.services.models import Section, SectionType
from pagecomposer.services.section_store import InMemorySectionStore, SupabaseSectionStore


def make_section(section_id="hero", html="<section>v1</section>", document_id="doc-1"):
    return Section(
        document_id=document_id,
        section_id=section_id,
        section_type=SectionType.HERO if section_id == "hero" else SectionType.FAQ,
        html=html,
    )


@pytest.fixture
def mock_supabase():
    return MagicMock()


class TestInMemorySectionStore:

    def test_put_then_get(self):
        store = InMemorySectionStore()
        store.put(make_section())
        section = store.get("doc-1", "hero")
        assert section.html == "<section>v1</section>"
        assert store.get("doc-1", "missing") is None

    def test_put_replaces_same_key(self):
        store = InMemorySectionStore()
        store.put(make_section("hero", "<section>v1</section>"))
        store.put(make_section("faq", "<section>faq</section>"))
        store.put(make_section("hero", "<section>v2</section>"))

        sections = store.get_all("doc-1")

        assert [s.section_id for s in sections] == ["hero", "faq"]
        assert sections[0].html == "<section>v2</section>"

    def test_documents_are_separate(self):
        store = InMemorySectionStore()
        store.put(make_section(document_id="doc-1"))
        store.put(make_section(document_id="doc-2"))
        assert store.count("doc-1") == 1
        assert store.count("doc-3") == 0

    def test_returned_sections_are_copies(self):
        store = InMemorySectionStore()
        store.put(make_section())
        store.get_all("doc-1")[0].html = "<p>changed</p>"
        assert store.get("doc-1", "hero").html == "<section>v1</section>"

    def test_clear(self):
        store = InMemorySectionStore()
        store.put(make_section("hero"))
        store.put(make_section("faq"))
        store.put(make_section(document_id="doc-2"))

        assert store.clear("doc-1") == 2
        assert store.get_all("doc-1") == []
        assert store.count("doc-2") == 1


class TestSupabaseSectionStore:

    def test_put_upserts_on_document_and_section(self, mock_supabase):
        store = SupabaseSectionStore(supabase_client=mock_supabase)

        store.put(make_section())

        mock_supabase.table.assert_called_with("content_item_sections")
        args, kwargs = mock_supabase.table.return_value.upsert.call_args
        row = args[0]
        assert row["content_item_id"] == "doc-1"
        assert row["section_id"] == "hero"
        assert row["section_type"] == "hero"
        assert row["section_html"] == "<section>v1</section>"
        assert "updated_at" in row
        assert kwargs["on_conflict"] == "content_item_id,section_id"

    def test_get_all_maps_rows(self, mock_supabase):
        mock_supabase.table.return_value.select.return_value.eq.return_value.execute.return_value = MagicMock(
            data=[
                {"content_item_id": "doc-1", "section_id": "hero", "section_type": "hero",
                 "section_order": 0, "section_html": "<section>h</section>"},
                {"content_item_id": "doc-1", "section_id": "x", "section_type": "sidebar",
                 "section_order": None, "section_html": "<aside>x</aside>"},
            ]
        )
        store = SupabaseSectionStore(supabase_client=mock_supabase)

        sections = store.get_all("doc-1")

        assert [s.section_id for s in sections] == ["hero", "x"]
        assert sections[1].section_type == SectionType.CUSTOM
        assert sections[1].section_order == 0

    def test_get_missing(self, mock_supabase):
        chain = mock_supabase.table.return_value.select.return_value.eq.return_value.eq.return_value
        chain.limit.return_value.execute.return_value = MagicMock(data=[])
        store = SupabaseSectionStore(supabase_client=mock_supabase)

        assert store.get("doc-1", "hero") is None

    def test_count_uses_exact_count(self, mock_supabase):
        mock_supabase.table.return_value.select.return_value.eq.return_value.execute.return_value = MagicMock(count=3)
        store = SupabaseSectionStore(supabase_client=mock_supabase)

        assert store.count("doc-1") == 3
        mock_supabase.table.return_value.select.assert_called_with("id", count="exact")

    def test_clear_returns_deleted_rows(self, mock_supabase):
        mock_supabase.table.return_value.delete.return_value.eq.return_value.execute.return_value = MagicMock(
            data=[{"id": 1}, {"id": 2}]
        )
        store = SupabaseSectionStore(supabase_client=mock_supabase)

        assert store.clear("doc-1") == 2
