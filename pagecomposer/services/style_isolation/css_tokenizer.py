"""Recursive-descent stylesheet tokenizer.

Parses a stylesheet into a flat list of rule objects (comments, keyframes,
conditional groups, qualified rules and verbatim at-rules). Each rule keeps
the whitespace that preceded it and its raw text, so `serialize_stylesheet`
reproduces an untouched stylesheet byte-for-byte. Strings and comments are
skipped while matching braces.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Tuple, Union

logger = logging.getLogger(__name__)

_WHITESPACE = " \t\n\r\f"
_AT_KEYWORD_RE = re.compile(r'@[-a-zA-Z0-9_]+')
_KEYFRAMES_NAME_RE = re.compile(r'@[-a-zA-Z]*keyframes\s+([^\s{]+)', re.IGNORECASE)

# Grouping at-rules whose inner rules are scoped like top-level rules
CONDITIONAL_GROUP_RULES = frozenset(["media", "supports", "container", "layer"])


@dataclass
class CommentRule:
    text: str
    leading: str = ""


@dataclass
class KeyframesRule:
    """@keyframes block kept verbatim; its body is never inspected."""
    name: str
    raw: str
    leading: str = ""


@dataclass
class MediaRule:
    """A grouping at-rule (@media, @supports, @container, @layer) holding nested rules.

    `prelude` is the raw text from the at-keyword up to the opening brace,
    `inner_trailing` the whitespace before the closing brace.
    """
    prelude: str
    inner: List["StyleRule"] = field(default_factory=list)
    inner_trailing: str = ""
    leading: str = ""
    closed: bool = True

    @property
    def keyword(self) -> str:
        m = _AT_KEYWORD_RE.match(self.prelude)
        return m.group(0)[1:].lower() if m else ""

    @property
    def query(self) -> str:
        m = _AT_KEYWORD_RE.match(self.prelude)
        return self.prelude[m.end():].strip() if m else self.prelude.strip()


@dataclass
class QualifiedRule:
    """`selector, selector { properties }`.

    `selectors` holds the raw comma branches (each keeps its own leading
    whitespace), `selector_gap` the whitespace between the last branch and
    the opening brace, `properties` the raw text between the braces.
    """
    selectors: List[str]
    properties: str
    selector_gap: str = ""
    leading: str = ""
    closed: bool = True

    @property
    def selector_text(self) -> str:
        return ",".join(self.selectors)


@dataclass
class VerbatimRule:
    """@font-face, @import, @charset, @page, unknown at-rules and garbage."""
    raw: str
    leading: str = ""


StyleRule = Union[CommentRule, KeyframesRule, MediaRule, QualifiedRule, VerbatimRule]


@dataclass
class Stylesheet:
    rules: List[StyleRule] = field(default_factory=list)
    trailing: str = ""

    def serialize(self) -> str:
        return serialize_stylesheet(self)


# ============================================================================
# Scanning helpers
# ============================================================================

def _skip_string(css: str, pos: int) -> int:
    """Return the index just past the string literal starting at `pos`."""
    quote = css[pos]
    i = pos + 1
    n = len(css)
    while i < n:
        ch = css[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote or ch == "\n":
            return i + 1
        i += 1
    return n


def _skip_comment(css: str, pos: int) -> int:
    """Return the index just past the comment starting at `pos`."""
    end = css.find("*/", pos + 2)
    return end + 2 if end >= 0 else len(css)


def find_matching_brace(css: str, open_pos: int) -> int:
    """Find the brace closing the one at `open_pos`, or -1 if unclosed."""
    depth = 0
    i = open_pos
    n = len(css)
    while i < n:
        ch = css[i]
        if ch in ("'", '"'):
            i = _skip_string(css, i)
            continue
        if ch == "/" and css.startswith("/*", i):
            i = _skip_comment(css, i)
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def _find_top_level(css: str, start: int, stops: str) -> int:
    """First index of any char in `stops` outside strings, comments and parens."""
    depth = 0
    i = start
    n = len(css)
    while i < n:
        ch = css[i]
        if ch in ("'", '"'):
            i = _skip_string(css, i)
            continue
        if ch == "/" and css.startswith("/*", i):
            i = _skip_comment(css, i)
            continue
        if ch in ("(", "["):
            depth += 1
        elif ch in (")", "]"):
            depth = max(0, depth - 1)
        elif depth == 0 and ch in stops:
            return i
        i += 1
    return -1


def split_selector_list(selector: str) -> List[str]:
    """Split comma-separated selectors, respecting brackets, parens,
    strings and comments.

    Branches are returned raw (surrounding whitespace kept) so that
    ",".join(parts) == selector.
    """
    parts: List[str] = []
    depth = 0
    current: List[str] = []
    i = 0
    n = len(selector)

    while i < n:
        ch = selector[i]
        if ch in ("'", '"'):
            end = _skip_string(selector, i)
            current.append(selector[i:end])
            i = end
            continue
        if ch == "/" and selector.startswith("/*", i):
            end = _skip_comment(selector, i)
            current.append(selector[i:end])
            i = end
            continue
        if ch in ("(", "["):
            depth += 1
        elif ch in (")", "]"):
            depth = max(0, depth - 1)
        elif ch == "," and depth == 0:
            parts.append("".join(current))
            current = []
            i += 1
            continue
        current.append(ch)
        i += 1

    parts.append("".join(current))
    return parts


def _split_trailing_whitespace(text: str) -> Tuple[str, str]:
    stripped = text.rstrip(_WHITESPACE)
    return stripped, text[len(stripped):]


# ============================================================================
# Parser
# ============================================================================

def parse_stylesheet(css: str) -> Stylesheet:
    """Parse stylesheet text into rules. Never raises on malformed input."""
    rules, trailing = _parse_rules(css or "")
    return Stylesheet(rules=rules, trailing=trailing)


def _parse_rules(css: str) -> Tuple[List[StyleRule], str]:
    rules: List[StyleRule] = []
    i = 0
    n = len(css)

    while True:
        ws_start = i
        while i < n and css[i] in _WHITESPACE:
            i += 1
        leading = css[ws_start:i]
        if i >= n:
            return rules, leading

        if css.startswith("/*", i):
            end = _skip_comment(css, i)
            rules.append(CommentRule(text=css[i:end], leading=leading))
            i = end
        elif css[i] == "@":
            rule, i = _parse_at_rule(css, i, leading)
            rules.append(rule)
        elif css[i] == "}":
            # Stray closing brace
            rules.append(VerbatimRule(raw="}", leading=leading))
            i += 1
        else:
            rule, i = _parse_qualified_rule(css, i, leading)
            rules.append(rule)


def _parse_at_rule(css: str, start: int, leading: str) -> Tuple[StyleRule, int]:
    m = _AT_KEYWORD_RE.match(css, start)
    keyword = m.group(0)[1:].lower() if m else ""
    stop = _find_top_level(css, start, ";{}")

    if stop < 0:
        return VerbatimRule(raw=css[start:], leading=leading), len(css)

    if css[stop] == ";":
        # Statement at-rule (@import, @charset, @namespace, @layer list)
        return VerbatimRule(raw=css[start:stop + 1], leading=leading), stop + 1

    if css[stop] == "}":
        # Unterminated statement inside a block; leave the brace to the caller
        return VerbatimRule(raw=css[start:stop], leading=leading), stop

    close = find_matching_brace(css, stop)
    end = close + 1 if close >= 0 else len(css)

    if keyword.endswith("keyframes"):
        name_match = _KEYFRAMES_NAME_RE.match(css, start)
        name = name_match.group(1) if name_match else ""
        return KeyframesRule(name=name, raw=css[start:end], leading=leading), end

    if keyword in CONDITIONAL_GROUP_RULES:
        body = css[stop + 1:close] if close >= 0 else css[stop + 1:]
        inner, inner_trailing = _parse_rules(body)
        if close < 0:
            logger.debug(f"Unclosed @{keyword} block at end of stylesheet")
        return MediaRule(
            prelude=css[start:stop],
            inner=inner,
            inner_trailing=inner_trailing,
            leading=leading,
            closed=close >= 0,
        ), end

    return VerbatimRule(raw=css[start:end], leading=leading), end


def _parse_qualified_rule(css: str, start: int, leading: str) -> Tuple[StyleRule, int]:
    brace = _find_top_level(css, start, "{}")

    if brace < 0:
        return VerbatimRule(raw=css[start:], leading=leading), len(css)

    if css[brace] == "}":
        # Declarations with no selector block ("color: red; }")
        return VerbatimRule(raw=css[start:brace + 1], leading=leading), brace + 1

    selector_text, gap = _split_trailing_whitespace(css[start:brace])
    close = find_matching_brace(css, brace)

    if close < 0:
        logger.debug(f"Unclosed rule block for selector {selector_text!r}")
        return QualifiedRule(
            selectors=split_selector_list(selector_text),
            properties=css[brace + 1:],
            selector_gap=gap,
            leading=leading,
            closed=False,
        ), len(css)

    return QualifiedRule(
        selectors=split_selector_list(selector_text),
        properties=css[brace + 1:close],
        selector_gap=gap,
        leading=leading,
    ), close + 1


# ============================================================================
# Serializer
# ============================================================================

def serialize_rule(rule: StyleRule) -> str:
    if isinstance(rule, CommentRule):
        return rule.leading + rule.text
    if isinstance(rule, KeyframesRule):
        return rule.leading + rule.raw
    if isinstance(rule, MediaRule):
        inner = "".join(serialize_rule(r) for r in rule.inner)
        # Unclosed blocks are closed on output
        return f"{rule.leading}{rule.prelude}{{{inner}{rule.inner_trailing}}}"
    if isinstance(rule, QualifiedRule):
        return f"{rule.leading}{rule.selector_text}{rule.selector_gap}{{{rule.properties}}}"
    if isinstance(rule, VerbatimRule):
        return rule.leading + rule.raw
    raise TypeError(f"Unknown style rule: {type(rule).__name__}")


def serialize_stylesheet(sheet: Stylesheet) -> str:
    return "".join(serialize_rule(r) for r in sheet.rules) + sheet.trailing


def iter_qualified_rules(rules: List[StyleRule]):
    """Yield every qualified rule, descending into conditional groups."""
    for rule in rules:
        if isinstance(rule, QualifiedRule):
            yield rule
        elif isinstance(rule, MediaRule):
            yield from iter_qualified_rules(rule.inner)
