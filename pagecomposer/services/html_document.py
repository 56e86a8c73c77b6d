"""Whole-document helpers shared by every composition stage.

A document is a complete HTML string with exactly one <head> and one
<body>. Stages split it, transform head/body text and rebuild it.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from ..core.config import Config
from .exceptions import MalformedDocument

logger = logging.getLogger(__name__)

_HEAD_OPEN_RE = re.compile(r'<head(\s[^>]*)?>', re.IGNORECASE)
_HEAD_CLOSE_RE = re.compile(r'</head\s*>', re.IGNORECASE)
_BODY_OPEN_RE = re.compile(r'<body(\s[^>]*)?>', re.IGNORECASE)
_BODY_CLOSE_RE = re.compile(r'</body\s*>', re.IGNORECASE)
_HTML_OPEN_RE = re.compile(r'<html(\s[^>]*)?>', re.IGNORECASE)

_DEFAULT_HTML_ATTRS = ' lang="en"'


@dataclass
class HtmlDocument:
    """A document split into its head and body parts."""
    head: str
    body: str
    head_attrs: str = ""
    body_attrs: str = ""
    html_attrs: str = _DEFAULT_HTML_ATTRS

    def render(self) -> str:
        return build_document(
            self.head,
            self.body,
            head_attrs=self.head_attrs,
            body_attrs=self.body_attrs,
            html_attrs=self.html_attrs,
        )


def preview(html: str, limit: Optional[int] = None) -> str:
    """Truncated copy of a document for debugging output."""
    limit = limit or Config.PREVIEW_CHARS
    if len(html) <= limit:
        return html
    return html[:limit] + '... (truncated)'


def strip_null_bytes(html: str) -> str:
    """Remove NUL characters, which most text stores reject."""
    if '\x00' not in html:
        return html
    count = html.count('\x00')
    logger.info(f"Stripped {count} null bytes")
    return html.replace('\x00', '')


def split_document(html: str, document_id: Optional[str] = None) -> HtmlDocument:
    """Split a full document into head and body.

    Raises:
        MalformedDocument: If there is not exactly one <head>...</head> and
            exactly one <body>...</body>, in that order.
    """
    if not html:
        raise MalformedDocument("empty document", "", document_id=document_id)

    head_opens = list(_HEAD_OPEN_RE.finditer(html))
    head_closes = list(_HEAD_CLOSE_RE.finditer(html))
    body_opens = list(_BODY_OPEN_RE.finditer(html))
    body_closes = list(_BODY_CLOSE_RE.finditer(html))

    if not head_opens or not head_closes or not body_opens or not body_closes:
        raise MalformedDocument(
            "missing <head> or <body> tags", preview(html), document_id=document_id
        )
    if len(head_opens) > 1 or len(head_closes) > 1:
        raise MalformedDocument(
            "more than one <head> element", preview(html), document_id=document_id
        )
    if len(body_opens) > 1 or len(body_closes) > 1:
        raise MalformedDocument(
            "more than one <body> element", preview(html), document_id=document_id
        )

    head_open, head_close = head_opens[0], head_closes[0]
    body_open, body_close = body_opens[0], body_closes[0]

    if not (head_open.end() <= head_close.start() <= body_open.start()
            and body_open.end() <= body_close.start()):
        raise MalformedDocument(
            "<head> and <body> are out of order", preview(html), document_id=document_id
        )

    html_open = _HTML_OPEN_RE.search(html, 0, head_open.start())
    html_attrs = (html_open.group(1) or "") if html_open else _DEFAULT_HTML_ATTRS

    return HtmlDocument(
        head=_trim_boundary_newline(html[head_open.end():head_close.start()]),
        body=_trim_boundary_newline(html[body_open.end():body_close.start()]),
        head_attrs=head_open.group(1) or "",
        body_attrs=body_open.group(1) or "",
        html_attrs=html_attrs,
    )


def _trim_boundary_newline(text: str) -> str:
    # build_document() pads head/body with one newline on each side
    if text.startswith("\n"):
        text = text[1:]
    if text.endswith("\n"):
        text = text[:-1]
    return text


def build_document(
    head: str,
    body: str,
    head_attrs: str = "",
    body_attrs: str = "",
    html_attrs: str = _DEFAULT_HTML_ATTRS,
) -> str:
    """Render a complete document from head and body content."""
    return (
        f"<!DOCTYPE html>\n"
        f"<html{html_attrs}>\n"
        f"<head{head_attrs}>\n{head}\n</head>\n"
        f"<body{body_attrs}>\n{body}\n</body>\n"
        f"</html>"
    )


def is_well_formed(html: str) -> bool:
    """True when the document has exactly one head/body pair."""
    try:
        split_document(html)
    except MalformedDocument:
        return False
    return True
