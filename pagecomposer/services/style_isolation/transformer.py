"""
StyleIsolationTransformer - confine page styles to a scoped subtree.

Consolidates page-content <style> blocks into one scoped block marked with
`data-style-scope`, passes layout styles through unscoped, and puts the page
body under the scope class so injected header/footer styles and page styles
cannot collide.
"""

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from ...core.config import Config, validate_scope_class
from ..document_store import DocumentStore
from ..exceptions import CompositionError, MalformedDocument
from ..html_document import HtmlDocument, preview, split_document, strip_null_bytes
from ..models import DocumentStatus, IsolationResult, StyleConflict
from .body_wrapper import remove_theme_switcher, wrap_body_with_scope
from .css_scoper import scope_css

logger = logging.getLogger(__name__)

SCOPE_MARKER_ATTR = "data-style-scope"

STYLE_BLOCK_RE = re.compile(r'<style(\s[^>]*)?>([\s\S]*?)</style\s*>', re.IGNORECASE)
PAGE_CSS_RE = re.compile(
    r'\b(body|main|article|h[1-6]|p|ul|ol|li|a|strong|table|img)\s*\{', re.IGNORECASE
)

_RESET_RE = re.compile(r'\*\s*\{\s*margin:\s*0', re.IGNORECASE)
_BODY_RULE_RE = re.compile(r'body\s*\{[^}]*\}', re.IGNORECASE)
_IMPORTANT_RE = re.compile(r'!important', re.IGNORECASE)
_CLASS_VALUE_RE = re.compile(r'class=["\']([^"\']+)["\']', re.IGNORECASE)

MAX_IMPORTANT_DECLARATIONS = 5
MAX_CLASS_REUSE = 3


@dataclass
class TransformOutcome:
    """Result of the pure transform; the stage wraps it into IsolationResult."""
    html: str
    scope_class: str
    already_scoped: bool = False
    scoped_blocks: int = 0
    passthrough_blocks: int = 0
    wrap_strategy: Optional[str] = None
    theme_fragments_removed: int = 0
    conflicts: List[StyleConflict] = field(default_factory=list)


def isolation_preamble(scope_class: str) -> str:
    return f"""
    /* Minimal CSS isolation for page content */
    .{scope_class} {{
      display: block;
      box-sizing: border-box;
    }}
    .{scope_class} * {{
      box-sizing: border-box;
    }}
"""


def is_page_content_css(css: str) -> bool:
    """True if the stylesheet targets generic page elements."""
    return bool(PAGE_CSS_RE.search(css))


def is_already_scoped(head: str, scope_class: str) -> bool:
    marker = re.compile(
        rf'<style\b[^>]*\b{SCOPE_MARKER_ATTR}\s*=\s*["\']{re.escape(scope_class)}["\']',
        re.IGNORECASE,
    )
    return bool(marker.search(head))


def analyze_style_conflicts(html: str) -> List[StyleConflict]:
    """Heuristic report of style clashes between page content and layout."""
    conflicts: List[StyleConflict] = []

    reset_count = len(_RESET_RE.findall(html))
    if reset_count > 1:
        conflicts.append(StyleConflict(
            type="multiple_resets",
            description=f"Detected {reset_count} CSS reset rules that may conflict",
            severity="medium",
        ))

    body_rule_count = len(_BODY_RULE_RE.findall(html))
    if body_rule_count > 1:
        conflicts.append(StyleConflict(
            type="body_style_conflict",
            description=f"Multiple body style rules ({body_rule_count}) may override each other",
            severity="high",
        ))

    important_count = len(_IMPORTANT_RE.findall(html))
    if important_count > MAX_IMPORTANT_DECLARATIONS:
        conflicts.append(StyleConflict(
            type="excessive_important",
            description=f"Found {important_count} !important declarations, suggesting style conflicts",
            severity="medium",
        ))

    class_counts: Counter = Counter()
    for value in _CLASS_VALUE_RE.findall(html):
        class_counts.update(value.split())
    repeated = [name for name, count in class_counts.items() if count > MAX_CLASS_REUSE]
    if repeated:
        conflicts.append(StyleConflict(
            type="duplicate_classes",
            description=f"Common class names used in multiple contexts: {', '.join(repeated[:3])}",
            severity="low",
        ))

    return conflicts


class StyleIsolationTransformer:
    """
    Scope page styles and wrap page content under a scope class.

    The transform runs once per document version: a head that already holds
    a `data-style-scope="<scope>"` block is left alone unless `force=True`,
    in which case the body is wrapped again.
    """

    def __init__(
        self,
        document_store: Optional[DocumentStore] = None,
        scope_class: Optional[str] = None,
        global_utility_classes: Optional[Iterable[str]] = None,
    ):
        self.document_store = document_store
        self.scope_class = validate_scope_class(scope_class or Config.PAGE_SCOPE_CLASS)
        self.global_utility_classes = list(
            global_utility_classes
            if global_utility_classes is not None
            else Config.GLOBAL_UTILITY_CLASSES
        )

    def transform(
        self,
        html: str,
        scope_class: Optional[str] = None,
        force: bool = False,
        document_id: Optional[str] = None,
    ) -> TransformOutcome:
        """
        Pure transform of a full document.

        Raises:
            MalformedDocument: If the document lacks one <head> and one <body>
        """
        scope = validate_scope_class(scope_class) if scope_class else self.scope_class
        html = strip_null_bytes(html)
        doc = split_document(html, document_id=document_id)

        if not force and is_already_scoped(doc.head, scope):
            logger.info(f"[isolate] Document already scoped under .{scope}, skipping")
            return TransformOutcome(html=html, scope_class=scope, already_scoped=True)

        head, head_removed = remove_theme_switcher(doc.head)
        body, body_removed = remove_theme_switcher(doc.body)

        page_css: List[str] = []
        passthrough: List[str] = []
        for match in STYLE_BLOCK_RE.finditer(head):
            content = match.group(2)
            if is_page_content_css(content):
                page_css.append(content)
            else:
                passthrough.append(match.group(0))
        head = STYLE_BLOCK_RE.sub('', head).rstrip()

        scoped = scope_css("\n".join(page_css), scope, self.global_utility_classes)
        new_head = (
            f'{head}\n<style {SCOPE_MARKER_ATTR}="{scope}">\n'
            f'{isolation_preamble(scope)}\n{scoped}\n</style>'
        )
        if passthrough:
            new_head += "\n" + "\n".join(passthrough)

        new_body, strategy = wrap_body_with_scope(body, scope)

        fixed = HtmlDocument(
            head=new_head,
            body=new_body,
            head_attrs=doc.head_attrs,
            body_attrs=doc.body_attrs,
            html_attrs=doc.html_attrs,
        ).render()

        logger.info(
            f"[isolate] Scoped {len(page_css)} style blocks under .{scope}, "
            f"passed through {len(passthrough)}, body wrap: {strategy}"
        )

        return TransformOutcome(
            html=fixed,
            scope_class=scope,
            scoped_blocks=len(page_css),
            passthrough_blocks=len(passthrough),
            wrap_strategy=strategy,
            theme_fragments_removed=head_removed + body_removed,
            conflicts=analyze_style_conflicts(html),
        )

    def isolate(
        self,
        document_id: str,
        scope_class: Optional[str] = None,
        force: bool = False,
    ) -> IsolationResult:
        """Read the document, transform it and write it back (status in_production)."""
        if self.document_store is None:
            raise ValueError("StyleIsolationTransformer.isolate requires a document store")

        logger.info(f"[isolate] Fixing style conflicts for document: {document_id}")

        try:
            record = self.document_store.get(document_id)
            outcome = self.transform(
                record.html, scope_class=scope_class, force=force, document_id=document_id
            )
        except MalformedDocument as e:
            logger.error(f"[isolate] {e}")
            return IsolationResult(
                success=False,
                document_id=document_id,
                error=str(e),
                error_kind=e.error_kind,
                preview=e.preview,
            )
        except CompositionError as e:
            logger.error(f"[isolate] {e}")
            return IsolationResult(
                success=False,
                document_id=document_id,
                error=str(e),
                error_kind=e.error_kind,
            )

        if not outcome.already_scoped:
            self.document_store.put(document_id, outcome.html, DocumentStatus.IN_PRODUCTION)

        return IsolationResult(
            success=True,
            document_id=document_id,
            scope_class=outcome.scope_class,
            already_scoped=outcome.already_scoped,
            scoped_blocks=outcome.scoped_blocks,
            passthrough_blocks=outcome.passthrough_blocks,
            wrap_strategy=outcome.wrap_strategy,
            conflicts=outcome.conflicts,
            html_size=len(outcome.html),
            preview=preview(outcome.html),
        )
