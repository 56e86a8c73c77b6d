"""
SectionAssembler - combine stored sections into one ordered page.

Placement is decided by section type first (hero and comparison table
before the product cards, FAQ and CTA after them, custom sections last)
and by section_order only within a type. Producers may assign colliding
or non-monotonic section_order values; typed buckets keep the semantic
placement stable regardless.
"""

import logging
import re
from typing import Iterable, List, Optional, Sequence

from ..core.config import Config
from .document_store import DocumentStore
from .exceptions import CompositionError, InvalidSectionContent, NoSectionsError
from .models import AssemblyResult, DocumentStatus, Section, SectionType
from .page_template import PageMeta, render_page
from .section_store import SectionStore

logger = logging.getLogger(__name__)

BEFORE_PRODUCT_TYPES = (SectionType.HERO, SectionType.COMPARISON_TABLE)
PRODUCT_TYPES = (SectionType.PRODUCT_CARD,)
AFTER_PRODUCT_TYPES = (SectionType.FAQ, SectionType.CTA)

PRODUCTS_HEADING = "Detailed Reviews"

_ELLIPSIS_RE = re.compile(r'^(?:\.{2,}|…+)$')
_BRACKET_PLACEHOLDER_RE = re.compile(r'^\[.*\]$', re.DOTALL)
_TRUNCATED_TAIL_RE = re.compile(r'(?:\.{3}|…)$')


def is_valid_section_html(html: Optional[str], min_length: Optional[int] = None) -> bool:
    """Reject empty, truncated or placeholder fragments ("...", "[content]")."""
    if min_length is None:
        min_length = Config.MIN_SECTION_HTML_LENGTH
    if not html:
        return False
    trimmed = html.strip()
    if not trimmed:
        return False
    if _ELLIPSIS_RE.match(trimmed):
        return False
    if _BRACKET_PLACEHOLDER_RE.match(trimmed):
        return False
    if '<' not in trimmed:
        return False
    # Producer output cut off mid-fragment
    if _TRUNCATED_TAIL_RE.search(trimmed):
        return False
    if len(trimmed) < min_length:
        return False
    return True


def find_invalid_sections(sections: Iterable[Section]) -> List[str]:
    """Section ids with unusable HTML, in pool order."""
    return [s.section_id for s in sections if not is_valid_section_html(s.html)]


def order_sections(sections: Sequence[Section]) -> List[Section]:
    """Stable order by (type priority, section_order); ties keep pool order."""
    return sorted(sections, key=lambda s: (s.section_type.priority, s.section_order))


def _bucket(sections: Sequence[Section], types) -> List[Section]:
    return [s for s in sections if s.section_type in types]


def wrap_product_cards(cards_html: List[str]) -> str:
    """Wrap product cards in the single product list container."""
    cards = "\n".join(cards_html)
    return f"""
  <!-- Product Cards Section -->
  <section id="products-list" class="py-16 md:py-20 px-4 md:px-6 bg-gray-50">
    <div class="max-w-6xl mx-auto">
      <h2 class="text-2xl md:text-3xl font-bold text-gray-900 text-center mb-12">{PRODUCTS_HEADING}</h2>
      <div class="space-y-6 md:space-y-8">
        {cards}
      </div>
    </div>
  </section>"""


class SectionAssembler:
    """
    Assemble a document from its stored sections.

    `assemble_body` is pure (pool in, body string out); `assemble` reads the
    pool from the section store, renders the full page and writes it to the
    document store, returning an AssemblyResult instead of raising.
    """

    def __init__(self, section_store: SectionStore, document_store: DocumentStore):
        self.section_store = section_store
        self.document_store = document_store

    @staticmethod
    def assemble_body(document_id: str, sections: Sequence[Section]) -> str:
        """
        Combine a pool of sections into one ordered body.

        Raises:
            NoSectionsError: If the pool is empty
            InvalidSectionContent: If any section HTML is empty or a placeholder
        """
        if not sections:
            raise NoSectionsError(document_id)

        invalid = find_invalid_sections(sections)
        if invalid:
            raise InvalidSectionContent(document_id, invalid)

        before = order_sections(_bucket(sections, BEFORE_PRODUCT_TYPES))
        products = order_sections(_bucket(sections, PRODUCT_TYPES))
        after = order_sections(_bucket(sections, AFTER_PRODUCT_TYPES))
        custom = _bucket(sections, (SectionType.CUSTOM,))

        parts: List[str] = []
        if before:
            parts.append("\n\n".join(s.html for s in before))
        if products:
            parts.append(wrap_product_cards([s.html for s in products]))
        if after:
            parts.append("\n\n".join(s.html for s in after))
        if custom:
            parts.append("\n\n".join(s.html for s in custom))

        return "\n\n".join(parts)

    @staticmethod
    def output_order(sections: Sequence[Section]) -> List[str]:
        """Section ids in the order assemble_body emits them."""
        ordered: List[Section] = []
        for types in (BEFORE_PRODUCT_TYPES, PRODUCT_TYPES, AFTER_PRODUCT_TYPES):
            ordered.extend(order_sections(_bucket(sections, types)))
        ordered.extend(_bucket(sections, (SectionType.CUSTOM,)))
        return [s.section_id for s in ordered]

    def assemble(self, document_id: str, meta: PageMeta) -> AssemblyResult:
        """Read all sections, render the page and store it (status in_production)."""
        logger.info(f"[assemble] Starting assembly for document: {document_id}")

        try:
            sections = self.section_store.get_all(document_id)
            body = self.assemble_body(document_id, sections)
        except InvalidSectionContent as e:
            logger.error(f"[assemble] {e}")
            return AssemblyResult(
                success=False,
                document_id=document_id,
                error=str(e),
                error_kind=e.error_kind,
                missing_or_invalid=e.missing_or_invalid,
            )
        except CompositionError as e:
            logger.error(f"[assemble] {e}")
            return AssemblyResult(
                success=False,
                document_id=document_id,
                error=str(e),
                error_kind=e.error_kind,
            )

        html = render_page(body, meta)
        self.document_store.put(document_id, html, DocumentStatus.IN_PRODUCTION)

        order = self.output_order(sections)
        logger.info(f"[assemble] Page assembled from {len(sections)} sections: {len(html)} bytes")

        return AssemblyResult(
            success=True,
            document_id=document_id,
            sections_assembled=len(sections),
            section_order=order,
            html_size=len(html),
        )
