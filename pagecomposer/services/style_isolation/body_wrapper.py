"""Body wrapping and markup cleanup over a minimal element tree.

`parse_elements` walks the markup with html.parser and records each
element's source span, so edits are applied to the original text instead
of a re-serialized tree. Unclosed elements run to the end of the input.
"""

import logging
import re
from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

VOID_ELEMENTS = frozenset([
    'area', 'base', 'br', 'col', 'embed', 'hr', 'img', 'input',
    'link', 'meta', 'param', 'source', 'track', 'wbr',
])

LAYOUT_CHROME_TAGS = frozenset(['header', 'nav', 'footer'])

_HEADER_NAME_RE = re.compile(r'header|nav|navbar|menu|site-header', re.IGNORECASE)
_FOOTER_NAME_RE = re.compile(r'footer', re.IGNORECASE)
_CLASS_ATTR_RE = re.compile(r'(\sclass\s*=\s*)(?:"([^"]*)"|\'([^\']*)\'|([^\s>"\']+))', re.IGNORECASE)

_THEME_SWITCHER_COMMENT_RE = re.compile(r'[ \t]*<!--\s*Theme Switcher\s*-->[ \t]*\n?', re.IGNORECASE)
_THEME_SCRIPT_RE = re.compile(
    r'function\s+setTheme\b|\b(?:const|let|var)\s+(?:setTheme|themePresets)\b|\bthemePresets\s*='
)


@dataclass
class Element:
    """One element and its span in the source text."""
    tag: str
    attrs: Dict[str, str]
    start: int
    start_tag_end: int
    end: int
    parent: Optional[int] = None
    children: List[int] = field(default_factory=list)

    @property
    def classes(self) -> List[str]:
        return self.attrs.get('class', '').split()

    def names(self) -> str:
        """Class and id values, used for header/footer heuristics."""
        return f"{self.attrs.get('class', '')} {self.attrs.get('id', '')}"


class _ElementSpanParser(HTMLParser):
    """Record element spans; tolerant of unclosed and stray tags."""

    def __init__(self, source: str):
        super().__init__(convert_charrefs=False)
        self._source = source
        self._line_starts = [0] + [m.end() for m in re.finditer('\n', source)]
        self._stack: List[int] = []
        self.elements: List[Element] = []

    def _offset(self) -> int:
        line, col = self.getpos()
        return self._line_starts[line - 1] + col

    def handle_starttag(self, tag, attrs):
        start = self._offset()
        text = self.get_starttag_text() or ''
        parent = self._stack[-1] if self._stack else None
        element = Element(
            tag=tag,
            attrs={name: (value or '') for name, value in attrs},
            start=start,
            start_tag_end=start + len(text),
            end=start + len(text),
            parent=parent,
        )
        self.elements.append(element)
        index = len(self.elements) - 1
        if parent is not None:
            self.elements[parent].children.append(index)
        if tag not in VOID_ELEMENTS:
            self._stack.append(index)

    def handle_endtag(self, tag):
        pos = self._offset()
        for depth in range(len(self._stack) - 1, -1, -1):
            if self.elements[self._stack[depth]].tag == tag:
                break
        else:
            return

        # Elements left open inside this one end where it closes
        for index in self._stack[depth + 1:]:
            self.elements[index].end = pos
        close = self._source.find('>', pos)
        self.elements[self._stack[depth]].end = close + 1 if close >= 0 else len(self._source)
        del self._stack[depth:]

    def finish(self) -> List[Element]:
        self.close()
        for index in self._stack:
            self.elements[index].end = len(self._source)
        self._stack = []
        return self.elements


def parse_elements(html: str) -> List[Element]:
    """Elements of `html` in document order."""
    parser = _ElementSpanParser(html)
    parser.feed(html)
    return parser.finish()


def _has_ancestor(elements: List[Element], index: int, tags: Iterable[str]) -> bool:
    tags = set(tags)
    parent = elements[index].parent
    while parent is not None:
        if elements[parent].tag in tags:
            return True
        parent = elements[parent].parent
    return False


def add_class_to_start_tag(html: str, element: Element, class_name: str) -> str:
    """Prepend `class_name` to the element's class attribute, creating it if absent."""
    start_tag = html[element.start:element.start_tag_end]
    m = _CLASS_ATTR_RE.search(start_tag)
    if m:
        existing = next((g for g in m.groups()[1:] if g is not None), '')
        value = f"{class_name} {existing}".strip()
        new_tag = f'{start_tag[:m.start()]}{m.group(1)}"{value}"{start_tag[m.end():]}'
    else:
        close = len(start_tag) - 2 if start_tag.endswith('/>') else len(start_tag) - 1
        new_tag = f'{start_tag[:close].rstrip()} class="{class_name}"{start_tag[close:]}'
    return html[:element.start] + new_tag + html[element.start_tag_end:]


def _find_header_end(elements: List[Element]) -> int:
    """End offset of the header region, or 0 when no header marker exists."""
    header_end = 0
    firsts: Dict[str, Element] = {}
    for el in elements:
        if el.tag in ('header', 'nav'):
            firsts.setdefault(el.tag, el)
        elif el.tag == 'div' and _HEADER_NAME_RE.search(el.names()):
            firsts.setdefault('div', el)
    for el in firsts.values():
        header_end = max(header_end, el.end)
    return header_end


def _find_footer_start(elements: List[Element], header_end: int, default: int) -> int:
    """Start offset of the last footer region after the header."""
    footer_start = default
    lasts: Dict[str, Element] = {}
    for el in elements:
        if el.tag == 'footer':
            lasts['footer'] = el
        elif el.tag == 'div' and _FOOTER_NAME_RE.search(el.names()):
            lasts['div'] = el
    for el in lasts.values():
        if el.start > header_end:
            footer_start = min(footer_start, el.start)
    return footer_start


def wrap_body_with_scope(body: str, scope_class: str) -> Tuple[str, str]:
    """
    Put the page content of `body` under the scope class.

    Strategy, first that applies:
        main: add the class to the first <main> outside header/nav/footer
        article: add the class to the first <article>
        between_layout: wrap the region between header and footer markers
            in a scope div
        whole_body: wrap everything in a scope div

    Returns:
        (new body, strategy name)
    """
    elements = parse_elements(body)

    for index, el in enumerate(elements):
        if el.tag == 'main' and not _has_ancestor(elements, index, LAYOUT_CHROME_TAGS):
            return add_class_to_start_tag(body, el, scope_class), 'main'

    for el in elements:
        if el.tag == 'article':
            return add_class_to_start_tag(body, el, scope_class), 'article'

    header_end = _find_header_end(elements)
    footer_start = _find_footer_start(elements, header_end, len(body))

    if header_end == 0 and footer_start == len(body):
        logger.info("No layout markers found, wrapping the whole body")
        return f'<div class="{scope_class}">\n{body}\n</div>', 'whole_body'

    before = body[:header_end]
    middle = body[header_end:footer_start]
    after = body[footer_start:]
    wrapped = f'{before}\n<div class="{scope_class}">\n{middle}\n</div>\n{after}'
    return wrapped, 'between_layout'


def _is_theme_button_group(html: str, elements: List[Element], el: Element) -> bool:
    if el.tag != 'div' or not el.children:
        return False
    text = html[el.start_tag_end:el.end]
    for child_index in el.children:
        child = elements[child_index]
        if child.tag != 'button' or 'setTheme(' not in child.attrs.get('onclick', ''):
            return False
        text = text.replace(html[child.start:child.end], '', 1)
    close = text.rfind('</')
    remainder = text[:close] if close >= 0 else text
    return not remainder.strip()


def _is_theme_script(html: str, el: Element) -> bool:
    return el.tag == 'script' and bool(_THEME_SCRIPT_RE.search(html[el.start_tag_end:el.end]))


def remove_theme_switcher(html: str) -> Tuple[str, int]:
    """
    Remove leftover theme switcher widgets.

    Drops elements with class `theme-switcher`, divs holding only
    setTheme(...) buttons, `<!-- Theme Switcher -->` comments and scripts
    defining setTheme/themePresets.

    Returns:
        (cleaned html, number of removed pieces)
    """
    html, comments = _THEME_SWITCHER_COMMENT_RE.subn('', html)
    elements = parse_elements(html)

    spans: List[Tuple[int, int]] = []
    for el in elements:
        if ('theme-switcher' in el.classes
                or _is_theme_button_group(html, elements, el)
                or _is_theme_script(html, el)):
            spans.append((el.start, el.end))

    # Keep only outermost spans
    spans.sort()
    outer: List[Tuple[int, int]] = []
    for start, end in spans:
        if outer and start < outer[-1][1]:
            continue
        outer.append((start, end))

    for start, end in reversed(outer):
        html = html[:start] + html[end:]

    removed = comments + len(outer)
    if removed:
        logger.info(f"Removed {removed} theme switcher fragments")
    return html, removed
