"""
Pydantic models for PageComposer services.

These models provide type-safe, validated data structures for:
- Stored page fragments (Section, SectionType)
- Stored documents (DocumentRecord, DocumentStatus)
- Per-stage outcomes (AssemblyResult, InjectionResult, IsolationResult,
  FinalizeResult)

All models use Pydantic v2 for validation and serialization.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


# ============================================================================
# Sections
# ============================================================================

class SectionType(str, Enum):
    """Kinds of independently produced page fragments."""
    HERO = "hero"
    COMPARISON_TABLE = "comparison_table"
    PRODUCT_CARD = "product_card"
    FAQ = "faq"
    CTA = "cta"
    CUSTOM = "custom"

    @property
    def priority(self) -> int:
        """Placement priority used by the assembler (lower comes first)."""
        return _SECTION_PRIORITY[self]


_SECTION_PRIORITY = {
    SectionType.HERO: 0,
    SectionType.COMPARISON_TABLE: 1,
    SectionType.PRODUCT_CARD: 2,
    SectionType.FAQ: 3,
    SectionType.CTA: 4,
    SectionType.CUSTOM: 5,
}


class Section(BaseModel):
    """
    One addressable HTML fragment of a page.

    Unique key is (document_id, section_id); storing the same key again
    replaces the previous fragment.
    """
    document_id: str = Field(..., min_length=1, description="Owning document (content item) ID")
    section_id: str = Field(..., min_length=1, description="Section key, unique per document")
    section_type: SectionType = Field(default=SectionType.CUSTOM, description="Placement bucket")
    section_order: int = Field(default=0, description="Order within the type bucket")
    html: str = Field(default="", description="Fragment HTML")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Producer metadata")

    @field_validator("section_type", mode="before")
    @classmethod
    def _coerce_unknown_type(cls, v):
        """Unknown producer types are treated as custom sections."""
        if isinstance(v, SectionType):
            return v
        try:
            return SectionType(str(v))
        except ValueError:
            return SectionType.CUSTOM

    @property
    def key(self) -> tuple:
        return (self.document_id, self.section_id)

    def to_row(self) -> Dict[str, Any]:
        """Row shape for the sections table."""
        return {
            "content_item_id": self.document_id,
            "section_id": self.section_id,
            "section_type": self.section_type.value,
            "section_order": self.section_order,
            "section_html": self.html,
            "metadata": self.metadata,
        }

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Section":
        return cls(
            document_id=row["content_item_id"],
            section_id=row["section_id"],
            section_type=row.get("section_type") or SectionType.CUSTOM,
            section_order=row.get("section_order") or 0,
            html=row.get("section_html") or "",
            metadata=row.get("metadata") or {},
        )


# ============================================================================
# Documents
# ============================================================================

class DocumentStatus(str, Enum):
    """Lifecycle status written alongside the document HTML."""
    IN_PRODUCTION = "in_production"
    GENERATED = "generated"


class DocumentRecord(BaseModel):
    """A stored document and the ownership keys used for layout lookups."""
    document_id: str
    html: str
    owner_id: Optional[str] = Field(None, description="Owning user; keys layout fragments")
    project_id: Optional[str] = Field(None, description="Owning project; keys layout fragments")
    status: Optional[str] = None


class FragmentKind(str, Enum):
    """Layout fragment kinds served by the layout fragment service."""
    HEADER = "header"
    FOOTER = "footer"
    HEAD_TAGS = "meta"


# ============================================================================
# Stage Results
# ============================================================================

class StageResult(BaseModel):
    """Common outcome of a pipeline stage; failures are data, not exceptions."""
    success: bool
    document_id: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    preview: Optional[str] = Field(None, description="Truncated document text for debugging")
    warnings: List[str] = Field(default_factory=list)


class AssemblyResult(StageResult):
    sections_assembled: int = 0
    section_order: List[str] = Field(default_factory=list, description="Section ids in output order")
    missing_or_invalid: List[str] = Field(default_factory=list)
    html_size: int = 0


class InjectionResult(StageResult):
    has_header: bool = False
    has_footer: bool = False
    has_custom_head: bool = False
    header_source: str = "none"
    footer_source: str = "none"
    html_size: int = 0


class StyleConflict(BaseModel):
    type: str
    description: str
    severity: str = Field(..., pattern="^(high|medium|low)$")


class IsolationResult(StageResult):
    scope_class: Optional[str] = None
    already_scoped: bool = False
    scoped_blocks: int = 0
    passthrough_blocks: int = 0
    wrap_strategy: Optional[str] = None
    conflicts: List[StyleConflict] = Field(default_factory=list)
    html_size: int = 0


class FinalizeResult(StageResult):
    has_header: bool = False
    has_footer: bool = False
    attempts: int = 0
    html_size: int = 0
