"""
Pydantic Graph Pipelines for PageComposer.

- page_composition: assemble sections, inject site contexts, isolate styles,
  finalize; plus the concurrent section producer fan-out
"""

from .states import PageCompositionState
from .dependencies import CompositionDependencies
from .page_composition import (
    page_composition_graph,
    run_page_composition,
    produce_sections,
    ProductionReport,
    AssembleSectionsNode,
    InjectContextNode,
    IsolateStylesNode,
    FinalizeNode,
)

__all__ = [
    "PageCompositionState",
    "CompositionDependencies",
    "page_composition_graph",
    "run_page_composition",
    "produce_sections",
    "ProductionReport",
    "AssembleSectionsNode",
    "InjectContextNode",
    "IsolateStylesNode",
    "FinalizeNode",
]
