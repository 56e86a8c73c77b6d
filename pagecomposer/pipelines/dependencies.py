"""
Dependencies shared by the page composition pipeline nodes.

`CompositionDependencies.create()` wires the Supabase-backed stores and a
single layout fragment cache; tests build it from in-memory stores with
`CompositionDependencies.in_memory()` or by passing services directly.
"""

import logging
from typing import Optional

from pydantic import BaseModel

from ..core.cache import TTLCache
from ..core.config import Config
from ..services.context_injector import ContextInjector
from ..services.document_store import (
    DocumentStore,
    InMemoryDocumentStore,
    SupabaseDocumentStore,
)
from ..services.finalizer import Finalizer
from ..services.layout_fragment_service import (
    InMemoryLayoutFragmentService,
    LayoutFragmentService,
)
from ..services.section_assembler import SectionAssembler
from ..services.section_store import (
    InMemorySectionStore,
    SectionStore,
    SupabaseSectionStore,
)
from ..services.style_isolation import StyleIsolationTransformer

logger = logging.getLogger(__name__)


class CompositionDependencies(BaseModel):
    """Stores and stage services used by the composition graph."""

    model_config = {"arbitrary_types_allowed": True}

    section_store: SectionStore
    document_store: DocumentStore
    fragment_service: LayoutFragmentService
    assembler: SectionAssembler
    injector: ContextInjector
    transformer: StyleIsolationTransformer
    finalizer: Finalizer

    @classmethod
    def from_stores(
        cls,
        section_store: SectionStore,
        document_store: DocumentStore,
        fragment_service: LayoutFragmentService,
        scope_class: Optional[str] = None,
        finalize_attempts: Optional[int] = None,
        finalize_backoff_seconds: Optional[float] = None,
    ) -> "CompositionDependencies":
        return cls(
            section_store=section_store,
            document_store=document_store,
            fragment_service=fragment_service,
            assembler=SectionAssembler(section_store, document_store),
            injector=ContextInjector(document_store, fragment_service),
            transformer=StyleIsolationTransformer(document_store, scope_class=scope_class),
            finalizer=Finalizer(
                document_store,
                attempts=finalize_attempts,
                backoff_seconds=finalize_backoff_seconds,
            ),
        )

    @classmethod
    def create(cls, scope_class: Optional[str] = None) -> "CompositionDependencies":
        """Supabase-backed dependencies with one shared fragment cache."""
        cache = TTLCache(
            ttl_seconds=Config.LAYOUT_FRAGMENT_CACHE_TTL,
            max_entries=Config.LAYOUT_FRAGMENT_CACHE_SIZE,
        )
        deps = cls.from_stores(
            section_store=SupabaseSectionStore(),
            document_store=SupabaseDocumentStore(),
            fragment_service=LayoutFragmentService(cache=cache),
            scope_class=scope_class,
        )
        logger.info("CompositionDependencies initialized (Supabase)")
        return deps

    @classmethod
    def in_memory(
        cls,
        scope_class: Optional[str] = None,
        finalize_backoff_seconds: float = 0.0,
    ) -> "CompositionDependencies":
        """Dependencies over in-memory stores, for tests and local runs."""
        return cls.from_stores(
            section_store=InMemorySectionStore(),
            document_store=InMemoryDocumentStore(),
            fragment_service=InMemoryLayoutFragmentService(),
            scope_class=scope_class,
            finalize_backoff_seconds=finalize_backoff_seconds,
        )
