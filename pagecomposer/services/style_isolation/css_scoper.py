"""Selector scoping over parsed stylesheets.

Every qualified rule outside @keyframes gets the scope class prepended as
an ancestor, per comma branch. Document-level selectors (`:root`, `body`,
`body *`) collapse onto the scope class itself, and branches starting with
a global utility class are left byte-identical.
"""

import logging
import re
from typing import Iterable, List, Optional

from ...core.config import Config
from .css_tokenizer import (
    MediaRule,
    QualifiedRule,
    StyleRule,
    Stylesheet,
    parse_stylesheet,
    serialize_stylesheet,
)

logger = logging.getLogger(__name__)

_DOCUMENT_SELECTOR_RE = re.compile(r'^(?::root|body|body\s+\*)$', re.IGNORECASE)
_COMMENT_RE = re.compile(r'/\*[\s\S]*?\*/')

# Characters that may follow a class name without extending it
_CLASS_BOUNDARY = r'(?=$|[\s:.>+~\[,#])'


def _as_class_selector(name: str) -> str:
    name = name.strip()
    return name if name.startswith(".") else f".{name}"


def _class_prefix_re(class_selector: str) -> re.Pattern:
    return re.compile(rf'^{re.escape(class_selector)}{_CLASS_BOUNDARY}')


def is_global_utility(branch: str, allowlist: Iterable[str]) -> bool:
    """True if the selector branch starts with an allow-listed class.

    Matches the exact class, class+pseudo, class+descendant or combinator,
    compound class and class+attribute; `.badge` does not match
    `.badge-winner`.
    """
    branch = branch.strip()
    for utility in allowlist:
        if _class_prefix_re(_as_class_selector(utility)).match(branch):
            return True
    return False


def scope_selector_branch(branch: str, scope_class: str, allowlist: Iterable[str]) -> str:
    """Scope one comma branch, keeping its surrounding whitespace.

    Matching ignores comments inside the branch; the comments themselves
    stay in the output.
    """
    stripped = branch.strip()
    comments = _COMMENT_RE.findall(stripped)
    bare = _COMMENT_RE.sub("", stripped).strip() if comments else stripped
    if not bare:
        return branch

    lead = branch[:len(branch) - len(branch.lstrip())]
    trail = branch[len(branch.rstrip()):]
    scope_selector = f".{scope_class}"

    if _DOCUMENT_SELECTOR_RE.match(bare):
        kept = "".join(f" {c}" for c in comments)
        return f"{lead}{scope_selector}{kept}{trail}"
    if is_global_utility(bare, allowlist):
        return branch
    if _class_prefix_re(scope_selector).match(bare):
        return branch
    return f"{lead}{scope_selector} {stripped}{trail}"


def scope_rules(
    rules: List[StyleRule],
    scope_class: str,
    allowlist: Iterable[str],
) -> List[StyleRule]:
    """Return a scoped copy of `rules`; keyframes, comments and verbatim rules are shared."""
    allowlist = list(allowlist)
    scoped: List[StyleRule] = []
    for rule in rules:
        if isinstance(rule, QualifiedRule):
            scoped.append(QualifiedRule(
                selectors=[
                    scope_selector_branch(b, scope_class, allowlist) for b in rule.selectors
                ],
                properties=rule.properties,
                selector_gap=rule.selector_gap,
                leading=rule.leading,
                closed=rule.closed,
            ))
        elif isinstance(rule, MediaRule):
            scoped.append(MediaRule(
                prelude=rule.prelude,
                inner=scope_rules(rule.inner, scope_class, allowlist),
                inner_trailing=rule.inner_trailing,
                leading=rule.leading,
                closed=rule.closed,
            ))
        else:
            scoped.append(rule)
    return scoped


def scope_stylesheet(
    sheet: Stylesheet,
    scope_class: str,
    allowlist: Optional[Iterable[str]] = None,
) -> Stylesheet:
    if allowlist is None:
        allowlist = Config.GLOBAL_UTILITY_CLASSES
    return Stylesheet(
        rules=scope_rules(sheet.rules, scope_class, allowlist),
        trailing=sheet.trailing,
    )


def scope_css(
    css: str,
    scope_class: str,
    allowlist: Optional[Iterable[str]] = None,
) -> str:
    """
    Scope page CSS under `.scope_class`.

    Args:
        css: Stylesheet text
        scope_class: Class name without the leading dot
        allowlist: Global utility class selectors left unscoped
            (defaults to Config.GLOBAL_UTILITY_CLASSES)

    Returns:
        The rewritten stylesheet; untouched rules keep their exact text.
    """
    if not css or not css.strip():
        return css
    sheet = scope_stylesheet(parse_stylesheet(css), scope_class, allowlist)
    return serialize_stylesheet(sheet)
