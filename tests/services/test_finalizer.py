"""
Tests for Finalizer read retry and persistence.
"""

from unittest.mock import MagicMock

import pytest

from pagecomposer.services.document_store import InMemoryDocumentStore
from pagecomposer.services.exceptions import DocumentNotFound
from pagecomposer.services.finalizer import Finalizer
from pagecomposer.services.models import DocumentRecord, DocumentStatus


FINAL_HTML = "<html><head></head><body><header>H</header><main>x</main><footer>F</footer></body></html>"


@pytest.fixture
def sleep():
    return MagicMock()


class TestReadRetry:

    def test_succeeds_on_third_attempt(self, sleep):
        store = MagicMock()
        store.get.side_effect = [
            DocumentNotFound("doc-1"),
            DocumentNotFound("doc-1"),
            DocumentRecord(document_id="doc-1", html=FINAL_HTML),
        ]
        finalizer = Finalizer(store, attempts=3, backoff_seconds=1.0, sleep=sleep)

        result = finalizer.finalize("doc-1")

        assert result.success is True
        assert result.attempts == 3
        assert store.get.call_count == 3
        assert sleep.call_count == 2
        sleep.assert_called_with(1.0)
        store.put.assert_called_once_with("doc-1", FINAL_HTML, DocumentStatus.GENERATED)

    def test_gives_up_after_attempts(self, sleep):
        store = MagicMock()
        store.get.side_effect = DocumentNotFound("doc-1")
        finalizer = Finalizer(store, attempts=3, backoff_seconds=0.5, sleep=sleep)

        result = finalizer.finalize("doc-1")

        assert result.success is False
        assert result.error_kind == "document_not_found"
        assert result.attempts == 3
        assert store.get.call_count == 3
        store.put.assert_not_called()

    def test_first_read_succeeds(self, sleep):
        store = MagicMock()
        store.get.return_value = DocumentRecord(document_id="doc-1", html=FINAL_HTML)

        result = Finalizer(store, attempts=3, sleep=sleep).finalize("doc-1")

        assert result.attempts == 1
        sleep.assert_not_called()


class TestFinalize:

    def test_strips_null_bytes_and_marks_generated(self, sleep):
        store = InMemoryDocumentStore()
        store.create("doc-1", FINAL_HTML.replace("<main>", "<main>\x00"))

        result = Finalizer(store, sleep=sleep).finalize("doc-1")

        record = store.get("doc-1")
        assert result.success is True
        assert "\x00" not in record.html
        assert record.status == "generated"
        assert result.has_header is True
        assert result.has_footer is True
        assert result.html_size == len(FINAL_HTML)

    def test_missing_layout_is_not_fatal(self, sleep):
        store = InMemoryDocumentStore()
        store.create("doc-1", "<html><head></head><body><main>x</main></body></html>")

        result = Finalizer(store, sleep=sleep).finalize("doc-1")

        assert result.success is True
        assert result.has_header is False
        assert result.has_footer is False

    def test_malformed_document_is_not_saved(self, sleep):
        store = InMemoryDocumentStore()
        store.create("doc-1", "<div>no head or body</div>")

        result = Finalizer(store, sleep=sleep).finalize("doc-1")

        record = store.get("doc-1")
        assert result.success is False
        assert result.error_kind == "malformed_document"
        assert result.preview == "<div>no head or body</div>"
        assert result.attempts == 1
        assert record.html == "<div>no head or body</div>"
        assert record.status != "generated"
