"""
Pipeline state dataclasses for Pydantic Graph workflows.

State is passed through pipeline nodes, accumulating each stage's result.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..services.models import (
    AssemblyResult,
    FinalizeResult,
    InjectionResult,
    IsolationResult,
)
from ..services.page_template import PageMeta


@dataclass
class PageCompositionState:
    """
    State for the page composition pipeline.

    Tracks data through the pipeline:
    AssembleSections → InjectContext → IsolateStyles → Finalize

    Attributes:
        document_id: Document (content item) being composed
        meta: Page metadata for the assembled page head
        header: Header HTML; fetched from layout fragments when None
        footer: Footer HTML; fetched from layout fragments when None
        head_tags: Extra head tags; fetched from layout fragments when None
        scope_class: Style isolation scope class (Config default when None)
        force_isolation: Re-run style isolation on an already scoped document
        assembly / injection / isolation / finalize: per-stage results
        current_step: Current pipeline step for tracking
        error: Error message if pipeline failed
    """

    # Input parameters
    document_id: str
    meta: PageMeta
    header: Optional[str] = None
    footer: Optional[str] = None
    head_tags: Optional[str] = None
    scope_class: Optional[str] = None
    force_isolation: bool = False

    # Populated by AssembleSectionsNode
    assembly: Optional[AssemblyResult] = None

    # Populated by InjectContextNode
    injection: Optional[InjectionResult] = None

    # Populated by IsolateStylesNode
    isolation: Optional[IsolationResult] = None

    # Populated by FinalizeNode
    finalize: Optional[FinalizeResult] = None

    # Tracking
    current_step: str = "pending"
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    def stage_summaries(self) -> Dict[str, Optional[dict]]:
        return {
            "assembly": self.assembly.model_dump() if self.assembly else None,
            "injection": self.injection.model_dump() if self.injection else None,
            "isolation": self.isolation.model_dump() if self.isolation else None,
            "finalize": self.finalize.model_dump() if self.finalize else None,
        }
