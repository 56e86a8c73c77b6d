"""
ContextInjector - merge site layout fragments into an assembled page.

Header and footer come from the caller or, when omitted, from the layout
fragment service keyed by the document's owner and project. A missing
fragment is a warning: the page is still merged and written back.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from ..core.config import Config
from .document_store import DocumentStore
from .exceptions import CompositionError, MalformedDocument, MissingLayoutFragment
from .html_document import HtmlDocument, preview, split_document
from .layout_fragment_service import LayoutFragmentService
from .models import DocumentStatus, FragmentKind, InjectionResult

logger = logging.getLogger(__name__)

_HEAD_WRAPPER_RE = re.compile(r'<head[^>]*>([\s\S]*)</head\s*>', re.IGNORECASE)
_TITLE_RE = re.compile(r'<title[^>]*>[\s\S]*?</title\s*>', re.IGNORECASE)
_TITLE_OPEN_RE = re.compile(r'<title[\s>]', re.IGNORECASE)
_TITLE_CLOSE_RE = re.compile(r'</title\s*>', re.IGNORECASE)
_META_DESCRIPTION_RE = re.compile(
    r'<meta[^>]+name\s*=\s*["\']description["\'][^>]*>', re.IGNORECASE
)


def _framework_script_re(url: str) -> re.Pattern:
    return re.compile(
        rf'<script[^>]+src\s*=\s*["\']{re.escape(url)}["\'][^>]*>', re.IGNORECASE
    )


def merge_head(head: str, head_tags: Optional[str]) -> str:
    """Append supplied head tags; the page's own title and description win."""
    if not head_tags:
        return head

    wrapped = _HEAD_WRAPPER_RE.search(head_tags)
    extra = wrapped.group(1) if wrapped else head_tags

    if _TITLE_OPEN_RE.search(head) and _TITLE_OPEN_RE.search(extra):
        extra = _TITLE_RE.sub('', extra)
    if _META_DESCRIPTION_RE.search(head) and _META_DESCRIPTION_RE.search(extra):
        extra = _META_DESCRIPTION_RE.sub('', extra)

    extra = extra.strip()
    if not extra:
        return head
    return f"{head.rstrip()}\n{extra}"


def ensure_framework_script(head: str, url: Optional[str] = None) -> str:
    """Insert the CSS framework loader after </title>, or at the end of head."""
    url = url or Config.CSS_FRAMEWORK_SCRIPT_URL
    if _framework_script_re(url).search(head):
        return head

    tag = f'<script src="{url}"></script>'
    title_close = _TITLE_CLOSE_RE.search(head)
    if title_close:
        pos = title_close.end()
        return f"{head[:pos]}\n  {tag}{head[pos:]}"
    return f"{head.rstrip()}\n  {tag}"


def merge_body(body: str, header: Optional[str], footer: Optional[str]) -> str:
    """Prepend header and append footer, keeping the body's outer whitespace."""
    content = body.strip()
    leading = body[:len(body) - len(body.lstrip())]
    trailing = body[len(body.rstrip()):] if content else ""

    if header and header.strip():
        content = f"{header.strip()}\n{content}" if content else header.strip()
    if footer and footer.strip():
        content = f"{content}\n{footer.strip()}" if content else footer.strip()

    return f"{leading}{content}{trailing}"


@dataclass
class MergedDocument:
    html: str
    has_header: bool
    has_footer: bool
    has_custom_head: bool


def merge_layout(
    html: str,
    header: Optional[str] = None,
    footer: Optional[str] = None,
    head_tags: Optional[str] = None,
    document_id: Optional[str] = None,
) -> MergedDocument:
    """
    Merge layout fragments into a full document (pure).

    Raises:
        MalformedDocument: If the document, or the merged result, lacks one
            <head> and one <body>
    """
    doc = split_document(html, document_id=document_id)

    head = ensure_framework_script(merge_head(doc.head, head_tags))
    body = merge_body(doc.body, header, footer)

    merged = HtmlDocument(
        head=head,
        body=body,
        head_attrs=doc.head_attrs,
        body_attrs=doc.body_attrs,
        html_attrs=doc.html_attrs,
    ).render()
    # A fragment carrying its own <head> or <body> breaks the merged page
    split_document(merged, document_id=document_id)

    return MergedDocument(
        html=merged,
        has_header=bool(header and header.strip()),
        has_footer=bool(footer and footer.strip()),
        has_custom_head=bool(head_tags and head_tags.strip()),
    )


class ContextInjector:
    """Merge header, footer and head tags into a stored document."""

    def __init__(
        self,
        document_store: DocumentStore,
        fragment_service: Optional[LayoutFragmentService] = None,
    ):
        self.document_store = document_store
        self.fragment_service = fragment_service

    def _fetch(
        self,
        kind: FragmentKind,
        owner_id: Optional[str],
        project_id: Optional[str],
        warnings: List[str],
        warn_if_missing: bool = True,
    ) -> Optional[str]:
        if self.fragment_service is None:
            content = None
        else:
            content = self.fragment_service.get(owner_id, project_id, kind)

        if content is None and warn_if_missing:
            missing = MissingLayoutFragment(kind.value, owner_id, project_id)
            logger.warning(f"[inject] {missing}")
            warnings.append(str(missing))
        return content

    def inject(
        self,
        document_id: str,
        header: Optional[str] = None,
        footer: Optional[str] = None,
        head_tags: Optional[str] = None,
    ) -> InjectionResult:
        """
        Merge layout fragments into the stored document and write it back.

        Fragments not supplied are fetched by the document's owner/project.
        Head tags are fetched too but their absence is not reported.

        Returns:
            InjectionResult; failures are reported, not raised
        """
        logger.info(f"[inject] Merging site contexts for document: {document_id}")
        warnings: List[str] = []

        try:
            record = self.document_store.get(document_id)

            header_source = "provided" if header else "none"
            footer_source = "provided" if footer else "none"

            if not header:
                header = self._fetch(FragmentKind.HEADER, record.owner_id, record.project_id, warnings)
                if header:
                    header_source = "fetched"
            if not footer:
                footer = self._fetch(FragmentKind.FOOTER, record.owner_id, record.project_id, warnings)
                if footer:
                    footer_source = "fetched"
            if head_tags is None:
                head_tags = self._fetch(
                    FragmentKind.HEAD_TAGS, record.owner_id, record.project_id,
                    warnings, warn_if_missing=False,
                )

            merged = merge_layout(
                record.html, header=header, footer=footer,
                head_tags=head_tags, document_id=document_id,
            )
        except MalformedDocument as e:
            logger.error(f"[inject] {e}")
            return InjectionResult(
                success=False,
                document_id=document_id,
                error=str(e),
                error_kind=e.error_kind,
                preview=e.preview,
                warnings=warnings,
            )
        except CompositionError as e:
            logger.error(f"[inject] {e}")
            return InjectionResult(
                success=False,
                document_id=document_id,
                error=str(e),
                error_kind=e.error_kind,
                warnings=warnings,
            )

        self.document_store.put(document_id, merged.html, DocumentStatus.IN_PRODUCTION)
        logger.info(
            f"[inject] Saved merged document ({len(merged.html)} bytes). "
            f"Header: {header_source}, Footer: {footer_source}"
        )

        return InjectionResult(
            success=True,
            document_id=document_id,
            has_header=merged.has_header,
            has_footer=merged.has_footer,
            has_custom_head=merged.has_custom_head,
            header_source=header_source,
            footer_source=footer_source,
            html_size=len(merged.html),
            preview=preview(merged.html),
            warnings=warnings,
        )
