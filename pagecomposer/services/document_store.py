"""
DocumentStore - full-document read/write keyed by document id.

Every stage reads the complete current HTML, transforms it and writes the
complete HTML back. There is no locking; concurrent writers race with
last-writer-wins semantics.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Dict, Optional

from supabase import Client

from ..core.config import Config
from .exceptions import DocumentNotFound
from .models import DocumentRecord, DocumentStatus

logger = logging.getLogger(__name__)


class DocumentStore:
    """Interface shared by the Supabase and in-memory stores."""

    def get(self, document_id: str) -> DocumentRecord:
        """Return the stored document. Raises DocumentNotFound."""
        raise NotImplementedError

    def put(
        self,
        document_id: str,
        html: str,
        status: DocumentStatus = DocumentStatus.IN_PRODUCTION,
    ) -> None:
        raise NotImplementedError


class SupabaseDocumentStore(DocumentStore):
    """Documents held in `content_items.generated_content`."""

    def __init__(self, supabase_client: Optional[Client] = None, table: Optional[str] = None):
        if supabase_client is None:
            from ..core.database import get_supabase_client
            supabase_client = get_supabase_client()
        self.client = supabase_client
        self.table = table or Config.DOCUMENTS_TABLE

    def get(self, document_id: str) -> DocumentRecord:
        result = (
            self.client.table(self.table)
            .select("id, generated_content, user_id, project_id, status")
            .eq("id", document_id)
            .limit(1)
            .execute()
        )
        if not result.data:
            raise DocumentNotFound(document_id)

        row = result.data[0]
        html = row.get("generated_content") or ""
        if not html:
            raise DocumentNotFound(document_id, "empty content")

        return DocumentRecord(
            document_id=document_id,
            html=html,
            owner_id=row.get("user_id"),
            project_id=row.get("project_id"),
            status=row.get("status"),
        )

    def put(
        self,
        document_id: str,
        html: str,
        status: DocumentStatus = DocumentStatus.IN_PRODUCTION,
    ) -> None:
        self.client.table(self.table).update({
            "generated_content": html,
            "status": DocumentStatus(status).value,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }).eq("id", document_id).execute()
        logger.info(f"[document_store] Saved document {document_id} ({len(html)} chars, status={DocumentStatus(status).value})")


class InMemoryDocumentStore(DocumentStore):
    """Dict-backed store for tests and local runs."""

    def __init__(self):
        self._records: Dict[str, DocumentRecord] = {}
        self._lock = threading.Lock()

    def create(
        self,
        document_id: str,
        html: str = "",
        owner_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> None:
        """Register a document (with ownership keys) before any stage runs."""
        with self._lock:
            self._records[document_id] = DocumentRecord(
                document_id=document_id,
                html=html,
                owner_id=owner_id,
                project_id=project_id,
            )

    def get(self, document_id: str) -> DocumentRecord:
        with self._lock:
            record = self._records.get(document_id)
            if record is None:
                raise DocumentNotFound(document_id)
            if not record.html:
                raise DocumentNotFound(document_id, "empty content")
            return record.model_copy()

    def put(
        self,
        document_id: str,
        html: str,
        status: DocumentStatus = DocumentStatus.IN_PRODUCTION,
    ) -> None:
        status_value = DocumentStatus(status).value
        with self._lock:
            record = self._records.get(document_id)
            if record is None:
                record = DocumentRecord(document_id=document_id, html=html, status=status_value)
            else:
                record = record.model_copy(update={"html": html, "status": status_value})
            self._records[document_id] = record
