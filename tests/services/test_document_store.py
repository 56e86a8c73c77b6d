"""
Tests for the document stores.
"""

from unittest.mock import MagicMock

import pytest

from pagecomposer.services.document_store import InMemoryDocumentStore, SupabaseDocumentStore
from pagecomposer.services.exceptions import DocumentNotFound
from pagecomposer.services.models import DocumentStatus


@pytest.fixture
def mock_supabase():
    return MagicMock()


def _select_result(mock_supabase, data):
    chain = mock_supabase.table.return_value.select.return_value.eq.return_value
    chain.limit.return_value.execute.return_value = MagicMock(data=data)


class TestSupabaseDocumentStore:

    def test_get_maps_row(self, mock_supabase):
        _select_result(mock_supabase, [{
            "id": "doc-1",
            "generated_content": "<html></html>",
            "user_id": "u1",
            "project_id": "p1",
            "status": "in_production",
        }])
        store = SupabaseDocumentStore(supabase_client=mock_supabase)

        record = store.get("doc-1")

        assert record.html == "<html></html>"
        assert record.owner_id == "u1"
        assert record.project_id == "p1"
        mock_supabase.table.assert_called_with("content_items")
        mock_supabase.table.return_value.select.return_value.eq.assert_called_with("id", "doc-1")

    def test_get_missing_row(self, mock_supabase):
        _select_result(mock_supabase, [])
        store = SupabaseDocumentStore(supabase_client=mock_supabase)

        with pytest.raises(DocumentNotFound):
            store.get("doc-1")

    def test_get_empty_content(self, mock_supabase):
        _select_result(mock_supabase, [{"id": "doc-1", "generated_content": None}])
        store = SupabaseDocumentStore(supabase_client=mock_supabase)

        with pytest.raises(DocumentNotFound, match="empty content"):
            store.get("doc-1")

    def test_put_updates_content_and_status(self, mock_supabase):
        store = SupabaseDocumentStore(supabase_client=mock_supabase)

        store.put("doc-1", "<html>final</html>", DocumentStatus.GENERATED)

        update = mock_supabase.table.return_value.update
        payload = update.call_args[0][0]
        assert payload["generated_content"] == "<html>final</html>"
        assert payload["status"] == "generated"
        assert "updated_at" in payload
        update.return_value.eq.assert_called_with("id", "doc-1")


class TestInMemoryDocumentStore:

    def test_create_and_get(self):
        store = InMemoryDocumentStore()
        store.create("doc-1", "<html></html>", owner_id="u1", project_id="p1")

        record = store.get("doc-1")

        assert record.html == "<html></html>"
        assert record.owner_id == "u1"

    def test_get_unknown(self):
        with pytest.raises(DocumentNotFound):
            InMemoryDocumentStore().get("nope")

    def test_created_without_content_is_not_found(self):
        store = InMemoryDocumentStore()
        store.create("doc-1", owner_id="u1")
        with pytest.raises(DocumentNotFound):
            store.get("doc-1")

    def test_put_keeps_ownership(self):
        store = InMemoryDocumentStore()
        store.create("doc-1", owner_id="u1", project_id="p1")

        store.put("doc-1", "<html>v2</html>", DocumentStatus.GENERATED)

        record = store.get("doc-1")
        assert record.html == "<html>v2</html>"
        assert record.status == "generated"
        assert record.owner_id == "u1"
        assert record.project_id == "p1"

    def test_put_creates_unknown_document(self):
        store = InMemoryDocumentStore()
        store.put("doc-9", "<html></html>")
        assert store.get("doc-9").status == "in_production"
