"""
LayoutFragmentService - site header/footer/head-tag lookup.

Fragments are owned outside this system (site contexts) and keyed by
(owner, project, kind). Lookups go through an injected TTLCache so a
pipeline run does not re-query the same fragment for every document.
"""

import logging
from typing import Dict, Optional, Tuple

from supabase import Client

from ..core.cache import TTLCache
from ..core.config import Config
from .models import FragmentKind

logger = logging.getLogger(__name__)


class LayoutFragmentService:
    """
    Fetch layout fragments from the `site_contexts` table.

    A project-less owner matches rows whose project_id IS NULL.
    Returns None for missing or empty fragments.
    """

    def __init__(
        self,
        supabase_client: Optional[Client] = None,
        cache: Optional[TTLCache] = None,
        table: Optional[str] = None,
    ):
        self._client = supabase_client
        self.cache = cache
        self.table = table or Config.LAYOUT_FRAGMENTS_TABLE

    @property
    def client(self) -> Client:
        if self._client is None:
            from ..core.database import get_supabase_client
            self._client = get_supabase_client()
        return self._client

    def get(
        self,
        owner_id: Optional[str],
        project_id: Optional[str],
        kind: FragmentKind,
    ) -> Optional[str]:
        kind = FragmentKind(kind)
        if not owner_id:
            logger.warning(f"[layout_fragments] No owner for {kind.value} lookup, skipping")
            return None

        if self.cache is None:
            return self._fetch(owner_id, project_id, kind)

        return self.cache.get_or_load(
            (owner_id, project_id, kind.value),
            lambda: self._fetch(owner_id, project_id, kind),
        )

    def _fetch(
        self,
        owner_id: str,
        project_id: Optional[str],
        kind: FragmentKind,
    ) -> Optional[str]:
        query = (
            self.client.table(self.table)
            .select("type, content")
            .eq("user_id", owner_id)
            .eq("type", kind.value)
        )
        if project_id:
            query = query.eq("project_id", project_id)
        else:
            query = query.is_("project_id", "null")

        result = query.limit(1).execute()
        if not result.data:
            logger.info(f"[layout_fragments] No {kind.value} for owner={owner_id} project={project_id}")
            return None

        content = result.data[0].get("content")
        if not content or not str(content).strip():
            return None

        logger.info(f"[layout_fragments] Loaded {kind.value} ({len(content)} chars)")
        return content


class InMemoryLayoutFragmentService(LayoutFragmentService):
    """Fragments held in a dict; used by tests and local runs."""

    def __init__(self, cache: Optional[TTLCache] = None):
        super().__init__(supabase_client=None, cache=cache)
        self._fragments: Dict[Tuple[str, Optional[str], str], str] = {}
        self.fetch_count = 0

    def add(
        self,
        owner_id: str,
        project_id: Optional[str],
        kind: FragmentKind,
        content: str,
    ) -> None:
        self._fragments[(owner_id, project_id, FragmentKind(kind).value)] = content

    def _fetch(
        self,
        owner_id: str,
        project_id: Optional[str],
        kind: FragmentKind,
    ) -> Optional[str]:
        self.fetch_count += 1
        content = self._fragments.get((owner_id, project_id, kind.value))
        if not content or not content.strip():
            return None
        return content
