"""
SectionStore - keyed, upsertable storage for generated page sections.

Producers save sections independently (possibly in parallel); the assembler
reads them back. The store gives no ordering guarantee, ordering is the
assembler's job.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from supabase import Client

from ..core.config import Config
from .models import Section

logger = logging.getLogger(__name__)


class SectionStore:
    """Interface shared by the Supabase and in-memory stores."""

    def put(self, section: Section) -> None:
        raise NotImplementedError

    def get(self, document_id: str, section_id: str) -> Optional[Section]:
        raise NotImplementedError

    def get_all(self, document_id: str) -> List[Section]:
        raise NotImplementedError

    def count(self, document_id: str) -> int:
        return len(self.get_all(document_id))

    def clear(self, document_id: str) -> int:
        raise NotImplementedError


class SupabaseSectionStore(SectionStore):
    """Sections persisted in the `content_item_sections` table."""

    def __init__(self, supabase_client: Optional[Client] = None, table: Optional[str] = None):
        if supabase_client is None:
            from ..core.database import get_supabase_client
            supabase_client = get_supabase_client()
        self.client = supabase_client
        self.table = table or Config.SECTIONS_TABLE

    def put(self, section: Section) -> None:
        """Upsert on (content_item_id, section_id)."""
        row = section.to_row()
        row["updated_at"] = datetime.now(timezone.utc).isoformat()
        self.client.table(self.table).upsert(
            row, on_conflict="content_item_id,section_id"
        ).execute()
        logger.info(f"[section_store] Saved section {section.section_id} for document {section.document_id}")

    def get(self, document_id: str, section_id: str) -> Optional[Section]:
        result = (
            self.client.table(self.table)
            .select("*")
            .eq("content_item_id", document_id)
            .eq("section_id", section_id)
            .limit(1)
            .execute()
        )
        if not result.data:
            return None
        return Section.from_row(result.data[0])

    def get_all(self, document_id: str) -> List[Section]:
        result = (
            self.client.table(self.table)
            .select("*")
            .eq("content_item_id", document_id)
            .execute()
        )
        sections = [Section.from_row(row) for row in (result.data or [])]
        logger.info(f"[section_store] Retrieved {len(sections)} sections for document {document_id}")
        return sections

    def count(self, document_id: str) -> int:
        result = (
            self.client.table(self.table)
            .select("id", count="exact")
            .eq("content_item_id", document_id)
            .execute()
        )
        return result.count or 0

    def clear(self, document_id: str) -> int:
        result = (
            self.client.table(self.table)
            .delete()
            .eq("content_item_id", document_id)
            .execute()
        )
        deleted = len(result.data or [])
        logger.info(f"[section_store] Cleared {deleted} sections for document {document_id}")
        return deleted


class InMemorySectionStore(SectionStore):
    """
    Dict-backed store for tests and local runs.

    Iteration order is first-insert order; overwriting a key keeps its
    original position.
    """

    def __init__(self):
        self._sections: Dict[Tuple[str, str], Section] = {}
        self._lock = threading.Lock()

    def put(self, section: Section) -> None:
        with self._lock:
            self._sections[section.key] = section.model_copy(deep=True)

    def get(self, document_id: str, section_id: str) -> Optional[Section]:
        with self._lock:
            section = self._sections.get((document_id, section_id))
            return section.model_copy(deep=True) if section else None

    def get_all(self, document_id: str) -> List[Section]:
        with self._lock:
            return [
                s.model_copy(deep=True)
                for (doc_id, _), s in self._sections.items()
                if doc_id == document_id
            ]

    def clear(self, document_id: str) -> int:
        with self._lock:
            keys = [k for k in self._sections if k[0] == document_id]
            for k in keys:
                del self._sections[k]
            return len(keys)
