"""
Services layer for PageComposer.

Stores (sections, documents, layout fragments) and the composition stages:
SectionAssembler -> ContextInjector -> StyleIsolationTransformer -> Finalizer.
"""

from .exceptions import (
    CompositionError,
    DocumentNotFound,
    InvalidSectionContent,
    MalformedDocument,
    MissingLayoutFragment,
    NoSectionsError,
)
from .models import (
    AssemblyResult,
    DocumentRecord,
    DocumentStatus,
    FinalizeResult,
    FragmentKind,
    InjectionResult,
    IsolationResult,
    Section,
    SectionType,
    StageResult,
    StyleConflict,
)
from .section_store import InMemorySectionStore, SectionStore, SupabaseSectionStore
from .document_store import DocumentStore, InMemoryDocumentStore, SupabaseDocumentStore
from .layout_fragment_service import InMemoryLayoutFragmentService, LayoutFragmentService
from .page_template import PageMeta, render_page
from .section_assembler import SectionAssembler
from .context_injector import ContextInjector, merge_layout
from .style_isolation import StyleIsolationTransformer, scope_css
from .finalizer import Finalizer

__all__ = [
    "CompositionError",
    "DocumentNotFound",
    "InvalidSectionContent",
    "MalformedDocument",
    "MissingLayoutFragment",
    "NoSectionsError",
    "AssemblyResult",
    "DocumentRecord",
    "DocumentStatus",
    "FinalizeResult",
    "FragmentKind",
    "InjectionResult",
    "IsolationResult",
    "Section",
    "SectionType",
    "StageResult",
    "StyleConflict",
    "InMemorySectionStore",
    "SectionStore",
    "SupabaseSectionStore",
    "DocumentStore",
    "InMemoryDocumentStore",
    "SupabaseDocumentStore",
    "InMemoryLayoutFragmentService",
    "LayoutFragmentService",
    "PageMeta",
    "render_page",
    "SectionAssembler",
    "ContextInjector",
    "merge_layout",
    "StyleIsolationTransformer",
    "scope_css",
    "Finalizer",
]
