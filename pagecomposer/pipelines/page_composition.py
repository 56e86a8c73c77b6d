"""
Page Composition Pipeline - Pydantic Graph workflow.

Pipeline: AssembleSections → InjectContext → IsolateStyles → Finalize

Each node runs one stage against the stored document (full read, transform,
full write) and stops the graph with End on a failed stage result, so a
caller can rerun the failed stage alone. Section production happens before
the graph: `produce_sections` fans producers out concurrently, each writing
its own (document_id, section_id) key.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, ClassVar, Dict, List, Mapping, Optional, Union

from pydantic_graph import BaseNode, End, Graph, GraphRunContext

from ..core.observability import stage_span
from ..services.models import Section, StageResult
from ..services.page_template import PageMeta
from ..services.section_store import SectionStore
from .dependencies import CompositionDependencies
from .metadata import NodeMetadata
from .states import PageCompositionState

logger = logging.getLogger(__name__)


def _stage_failed(state: PageCompositionState, step: str, result: StageResult, **extra) -> End[dict]:
    state.error = result.error
    state.current_step = "failed"
    state.warnings.extend(result.warnings)
    logger.error(f"Page composition stopped at {step}: {result.error}")
    return End({
        "status": "error",
        "step": step,
        "document_id": state.document_id,
        "error": result.error,
        "error_kind": result.error_kind,
        "preview": result.preview,
        **extra,
    })


@dataclass
class AssembleSectionsNode(BaseNode[PageCompositionState, CompositionDependencies, dict]):
    """
    Step 1: Combine stored sections into one page.

    Blocks on invalid section HTML and reports the offending section ids.
    """

    metadata: ClassVar[NodeMetadata] = NodeMetadata(
        inputs=["document_id", "meta"],
        outputs=["assembly"],
        services=["section_store.get_all", "assembler.assemble"],
        writes_status="in_production",
    )

    async def run(
        self,
        ctx: GraphRunContext[PageCompositionState, CompositionDependencies]
    ) -> Union["InjectContextNode", End[dict]]:
        logger.info(f"Step 1: Assembling sections for {ctx.state.document_id}")
        ctx.state.current_step = "assembling"

        with stage_span("assemble_sections", document_id=ctx.state.document_id):
            result = ctx.deps.assembler.assemble(ctx.state.document_id, ctx.state.meta)
        ctx.state.assembly = result

        if not result.success:
            return _stage_failed(
                ctx.state, "assemble", result,
                missing_or_invalid=result.missing_or_invalid,
            )

        ctx.state.current_step = "assembled"
        return InjectContextNode()


@dataclass
class InjectContextNode(BaseNode[PageCompositionState, CompositionDependencies, dict]):
    """
    Step 2: Merge header, footer and head tags.

    Fragments missing from state are fetched by owner/project; a missing
    fragment is kept as a warning.
    """

    metadata: ClassVar[NodeMetadata] = NodeMetadata(
        inputs=["document_id", "header", "footer", "head_tags"],
        outputs=["injection", "warnings"],
        services=["fragment_service.get", "injector.inject"],
        writes_status="in_production",
    )

    async def run(
        self,
        ctx: GraphRunContext[PageCompositionState, CompositionDependencies]
    ) -> Union["IsolateStylesNode", End[dict]]:
        logger.info(f"Step 2: Injecting site contexts for {ctx.state.document_id}")
        ctx.state.current_step = "injecting"

        with stage_span("inject_context", document_id=ctx.state.document_id):
            result = ctx.deps.injector.inject(
                ctx.state.document_id,
                header=ctx.state.header,
                footer=ctx.state.footer,
                head_tags=ctx.state.head_tags,
            )
        ctx.state.injection = result

        if not result.success:
            return _stage_failed(ctx.state, "inject", result)

        ctx.state.warnings.extend(result.warnings)
        ctx.state.current_step = "injected"
        return IsolateStylesNode()


@dataclass
class IsolateStylesNode(BaseNode[PageCompositionState, CompositionDependencies, dict]):
    """Step 3: Scope page styles and wrap page content under the scope class."""

    metadata: ClassVar[NodeMetadata] = NodeMetadata(
        inputs=["document_id", "scope_class", "force_isolation"],
        outputs=["isolation"],
        services=["transformer.isolate"],
        writes_status="in_production",
    )

    async def run(
        self,
        ctx: GraphRunContext[PageCompositionState, CompositionDependencies]
    ) -> Union["FinalizeNode", End[dict]]:
        logger.info(f"Step 3: Isolating styles for {ctx.state.document_id}")
        ctx.state.current_step = "isolating"

        with stage_span("isolate_styles", document_id=ctx.state.document_id):
            result = ctx.deps.transformer.isolate(
                ctx.state.document_id,
                scope_class=ctx.state.scope_class,
                force=ctx.state.force_isolation,
            )
        ctx.state.isolation = result

        if not result.success:
            return _stage_failed(ctx.state, "isolate", result)

        if result.conflicts:
            logger.info(f"Detected {len(result.conflicts)} potential style conflicts")
        ctx.state.current_step = "isolated"
        return FinalizeNode()


@dataclass
class FinalizeNode(BaseNode[PageCompositionState, CompositionDependencies, dict]):
    """Step 4: Read back with retry, strip NUL bytes and save as generated."""

    metadata: ClassVar[NodeMetadata] = NodeMetadata(
        inputs=["document_id"],
        outputs=["finalize"],
        services=["finalizer.finalize"],
        writes_status="generated",
    )

    async def run(
        self,
        ctx: GraphRunContext[PageCompositionState, CompositionDependencies]
    ) -> End[dict]:
        logger.info(f"Step 4: Finalizing {ctx.state.document_id}")
        ctx.state.current_step = "finalizing"

        with stage_span("finalize", document_id=ctx.state.document_id):
            result = ctx.deps.finalizer.finalize(ctx.state.document_id)
        ctx.state.finalize = result

        if not result.success:
            return _stage_failed(ctx.state, "finalize", result)

        ctx.state.current_step = "complete"
        logger.info(f"Page composition complete for {ctx.state.document_id}")
        return End({
            "status": "success",
            "document_id": ctx.state.document_id,
            "has_header": result.has_header,
            "has_footer": result.has_footer,
            "html_size": result.html_size,
            "warnings": list(ctx.state.warnings),
            "stages": ctx.state.stage_summaries(),
        })


# Build the graph
page_composition_graph = Graph(
    nodes=(
        AssembleSectionsNode,
        InjectContextNode,
        IsolateStylesNode,
        FinalizeNode,
    ),
    name="page_composition"
)


async def run_page_composition(
    document_id: str,
    meta: PageMeta,
    header: Optional[str] = None,
    footer: Optional[str] = None,
    head_tags: Optional[str] = None,
    scope_class: Optional[str] = None,
    force_isolation: bool = False,
    deps: Optional[CompositionDependencies] = None,
) -> dict:
    """
    Run the page composition pipeline for one document.

    Sections must already be stored (see `produce_sections`).

    Returns:
        Pipeline result dict; "status" is "success" or "error" (with "step")

    Example:
        >>> result = await run_page_composition(
        ...     document_id="item-123",
        ...     meta=PageMeta(title="Best CRM Alternatives"),
        ... )
        >>> print(result["status"])  # "success"
    """
    if deps is None:
        deps = CompositionDependencies.create(scope_class=scope_class)

    result = await page_composition_graph.run(
        AssembleSectionsNode(),
        state=PageCompositionState(
            document_id=document_id,
            meta=meta,
            header=header,
            footer=footer,
            head_tags=head_tags,
            scope_class=scope_class,
            force_isolation=force_isolation,
        ),
        deps=deps
    )

    return result.output


# ============================================================================
# Section production fan-out
# ============================================================================

SectionProducer = Callable[[], Awaitable[Section]]


@dataclass
class ProductionReport:
    """Outcome of a producer fan-out: stored section ids and failures by producer label."""
    stored: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.failed


async def produce_sections(
    section_store: SectionStore,
    producers: Mapping[str, SectionProducer],
) -> ProductionReport:
    """
    Run independent section producers concurrently and store each result.

    Every producer writes its own (document_id, section_id) key, so no
    ordering or locking is needed. A failing producer does not cancel the
    others; its error is reported under its label.

    Args:
        section_store: Store receiving the produced sections
        producers: Label -> zero-arg coroutine function returning a Section

    Returns:
        ProductionReport
    """
    labels = list(producers)

    async def _produce(label: str) -> str:
        section = await producers[label]()
        section_store.put(section)
        logger.info(f"Stored section {section.section_id} from producer {label}")
        return section.section_id

    results = await asyncio.gather(
        *(_produce(label) for label in labels),
        return_exceptions=True,
    )

    report = ProductionReport()
    for label, outcome in zip(labels, results):
        if isinstance(outcome, BaseException):
            logger.error(f"Section producer {label} failed: {outcome}")
            report.failed[label] = str(outcome) or type(outcome).__name__
        else:
            report.stored.append(outcome)

    logger.info(f"Produced {len(report.stored)} sections, {len(report.failed)} failures")
    return report
